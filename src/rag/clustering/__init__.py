# src/rag/clustering/__init__.py — v1
"""Clustering engines: Neo4j GDS and NetworkX."""
