"""
LLM client for the Gemini ``generateContent`` REST endpoint.
"""

import logging
import time
from typing import Any, Optional

import requests

from snacksage.errors import GenerationError

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = (429, 502, 503, 504)


class GeminiLLM:
    """LLM client for Gemini generative models."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.0-flash-exp",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        temperature: float = 0.7,
        max_tokens: int = 2048,
        timeout: int = 120,
        max_retries: int = 3,
        retry_delay: float = 2.0,
    ):
        """
        Initialize the Gemini client.

        Args:
            api_key: Generative Language API key
            model: Model name, without the ``models/`` prefix
            base_url: API base URL
            temperature: Sampling temperature (0.0 to 2.0)
            max_tokens: Maximum tokens to generate
            timeout: Request timeout in seconds
            max_retries: Maximum number of attempts for retryable failures
            retry_delay: Initial delay between retries (uses exponential backoff)
        """
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url}/models/{self.model}:generateContent"

    def invoke(self, prompt: str) -> str:
        """
        Call the LLM with a prompt.

        Retries rate limits, gateway errors, timeouts and connection errors
        with exponential backoff.

        Args:
            prompt: The input prompt text

        Returns:
            The generated response text

        Raises:
            GenerationError: If the request fails after all retries or the
                response has no text
        """
        if not self.api_key:
            raise GenerationError("GEMINI_API_KEY is not configured")

        payload = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_tokens,
            },
        }
        headers = {"x-goog-api-key": self.api_key}

        for attempt in range(self.max_retries):
            try:
                response = requests.post(
                    self.endpoint_url, json=payload, headers=headers, timeout=self.timeout
                )
                response.raise_for_status()
                return self._extract_text(response.json())

            except requests.HTTPError as e:
                status_code = e.response.status_code if e.response is not None else None
                if status_code in RETRYABLE_STATUS_CODES and attempt < self.max_retries - 1:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Endpoint returned {status_code}, "
                        f"retrying in {delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise GenerationError(f"Generation request failed with HTTP {status_code}") from e

            except (requests.Timeout, requests.ConnectionError) as e:
                if attempt < self.max_retries - 1:
                    delay = self.retry_delay * (2 ** attempt)
                    logger.warning(
                        f"Connection error: {str(e)}, "
                        f"retrying in {delay:.1f}s (attempt {attempt + 1}/{self.max_retries})"
                    )
                    time.sleep(delay)
                    continue
                raise GenerationError(f"Generation request failed: {e}") from e

        raise GenerationError("All retry attempts failed")

    @staticmethod
    def _extract_text(result: dict[str, Any]) -> str:
        try:
            parts = result["candidates"][0]["content"]["parts"]
            text = "".join(part.get("text", "") for part in parts)
        except (KeyError, IndexError, TypeError) as e:
            raise GenerationError(f"Malformed generation response: {e!r}") from e

        if not text:
            raise GenerationError("Generation response contained no text")
        return text
