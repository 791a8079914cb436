"""
LLM factory for creating LLM instances based on configuration.
"""

from typing import Protocol


class LLMProtocol(Protocol):
    """Protocol that all LLM clients must implement."""

    def invoke(self, prompt: str) -> str:
        """Call the LLM with a prompt and return the response."""
        ...


def create_llm(temperature: float | None = None) -> LLMProtocol:
    """
    Create an LLM client based on configuration settings.

    Args:
        temperature: Optional temperature override. If None, uses settings.llm_temperature

    Returns:
        LLM client that implements the LLMProtocol
    """
    from snacksage.config import settings
    from snacksage.llm.gemini import GeminiLLM

    temp = temperature if temperature is not None else settings.llm_temperature

    return GeminiLLM(
        api_key=settings.gemini_api_key_value,
        model=settings.llm_model,
        base_url=settings.gemini_base_url,
        temperature=temp,
        max_tokens=settings.llm_max_tokens,
        timeout=settings.llm_timeout_seconds,
    )
