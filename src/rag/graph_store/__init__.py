# src/rag/graph_store/__init__.py — v1
"""Cypher execution against the graph database."""
