# src/llm/__init__.py — v1
"""LLM clients and structured output."""
