# src/llm/adapters/__init__.py — v1
"""Provider adapters for BaseLLMClient."""
