# src/drift/__init__.py — v1
"""DRIFT search: HyDE, community primer, follow-ups, synthesis."""
