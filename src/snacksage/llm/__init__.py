"""LLM clients for snacksage."""

from snacksage.llm.factory import LLMProtocol, create_llm
from snacksage.llm.gemini import GeminiLLM

__all__ = ["GeminiLLM", "LLMProtocol", "create_llm"]
