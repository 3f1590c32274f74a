"""Categorizer adapters for LLM-powered release note summaries.

Implementations support multiple model backends:
- OpenAI (chat completions or responses API, any compatible base URL)
- Anthropic (messages API)
"""
