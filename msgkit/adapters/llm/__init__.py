"""LLM adapters — generative backends implementing GenerativePort."""

from msgkit.adapters.llm.openai_adapter import OpenAIGenerator

__all__ = ["OpenAIGenerator"]
