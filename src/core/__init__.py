# src/core/__init__.py — v1
"""Shared models and scope context."""
