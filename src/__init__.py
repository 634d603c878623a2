# src/__init__.py — v1
"""graphdrift: hierarchical concept communities and DRIFT search over a Neo4j knowledge graph."""
