# src/batch/__init__.py — v1
"""Per-scope batch detection and status reporting."""
