"""LLM provider adapters."""

from mediaquery.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
