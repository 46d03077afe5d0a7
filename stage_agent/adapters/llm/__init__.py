"""LLM adapters."""

from stage_agent.adapters.llm.gemini_adapter import GeminiAdapter, LLMConfigurationError

__all__ = ["GeminiAdapter", "LLMConfigurationError"]
