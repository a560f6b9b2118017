"""LLM provider adapters.

One concrete implementation of ILLMProvider (src/interfaces/llm_provider.py):
    - OpenAILLMProvider — chat completions (gpt-4 / gpt-4o), also usable
      against an OpenAI-compatible endpoint via OPENAI_BASE_URL.
"""

from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider"]
