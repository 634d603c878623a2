# src/community/__init__.py — v1
"""Community detection, hierarchy, staleness and summaries."""
