# src/rag/embeddings/__init__.py — v1
"""Embedding providers."""
