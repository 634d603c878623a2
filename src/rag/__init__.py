# src/rag/__init__.py — v1
"""Graph store, clustering and embedding backends."""
