"""
Embedding generation via the Google Generative Language API.

Provides the embedding provider used to vectorise document chunks at index
time and user queries at request time.
"""

import asyncio
import logging
import time
from typing import Any, Optional, Protocol

import httpx

from snacksage.config import settings
from snacksage.errors import EmbeddingError

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Protocol that all embedding providers must implement."""

    def embed(self, text: str) -> list[float]:
        """Return the embedding vector for a text."""
        ...

    async def aembed(self, text: str) -> list[float]:
        """Async version of embed."""
        ...


class GeminiEmbedder:
    """
    Generate embeddings using the Gemini ``embedContent`` endpoint.

    One text per request. Rate-limited requests (HTTP 429) are retried with
    exponential backoff; every other failure surfaces as EmbeddingError.

    Example:
        >>> embedder = GeminiEmbedder()
        >>> vector = embedder.embed("How long can I freeze bread?")
        >>> len(vector)
        768
    """

    def __init__(
        self,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_retries: Optional[int] = None,
    ) -> None:
        """
        Initialize the embedder.

        Args:
            model: Embedding model name (default from settings)
            api_key: API key (default from settings)
            base_url: API base URL (default from settings)
            timeout: Request timeout in seconds (default from settings)
            max_retries: Attempts per call when rate limited (default from settings)
        """
        self.model = model or settings.embedding_model
        self.api_key = api_key or settings.gemini_api_key_value
        self.base_url = (base_url or settings.gemini_base_url).rstrip("/")
        self.timeout = timeout or settings.embedding_timeout_seconds
        self.max_retries = max_retries or settings.embedding_max_retries
        self.initial_retry_delay = 1.0  # seconds

    @property
    def url(self) -> str:
        return f"{self.base_url}/models/{self.model}:embedContent"

    def _request(self, text: str) -> tuple[dict[str, str], dict[str, Any]]:
        if not self.api_key:
            raise EmbeddingError("GEMINI_API_KEY is not configured")
        if not text or not text.strip():
            raise EmbeddingError("Cannot embed empty text")

        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = {
            "model": f"models/{self.model}",
            "content": {"parts": [{"text": text}]},
        }
        return headers, payload

    def embed(self, text: str) -> list[float]:
        """
        Generate the embedding for a single text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            EmbeddingError: On HTTP, network, timeout or response-format failure
        """
        headers, payload = self._request(text)
        retry_delay = self.initial_retry_delay

        try:
            with httpx.Client(timeout=self.timeout) as client:
                for attempt in range(self.max_retries):
                    response = client.post(self.url, json=payload, headers=headers)

                    # Handle rate limiting with exponential backoff
                    if response.status_code == 429 and attempt < self.max_retries - 1:
                        logger.warning(
                            f"Embedding rate limited, retrying in {retry_delay:.1f}s "
                            f"(attempt {attempt + 1}/{self.max_retries})"
                        )
                        time.sleep(retry_delay)
                        retry_delay *= 2
                        continue

                    response.raise_for_status()
                    return self._parse_embedding(response)

        except httpx.HTTPStatusError as e:
            raise EmbeddingError(
                f"Embedding request failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding request failed: {e!r}") from e

        # This shouldn't be reached, but just in case
        raise EmbeddingError("Embedding request failed after retries")

    async def aembed(self, text: str) -> list[float]:
        """
        Async version of embed.

        Args:
            text: Text to embed

        Returns:
            Embedding vector

        Raises:
            EmbeddingError: On HTTP, network, timeout or response-format failure
        """
        headers, payload = self._request(text)
        retry_delay = self.initial_retry_delay

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                for attempt in range(self.max_retries):
                    response = await client.post(self.url, json=payload, headers=headers)

                    if response.status_code == 429 and attempt < self.max_retries - 1:
                        logger.warning(
                            f"Embedding rate limited, retrying in {retry_delay:.1f}s "
                            f"(attempt {attempt + 1}/{self.max_retries})"
                        )
                        await asyncio.sleep(retry_delay)
                        retry_delay *= 2
                        continue

                    response.raise_for_status()
                    return self._parse_embedding(response)

        except httpx.HTTPStatusError as e:
            raise EmbeddingError(
                f"Embedding request failed with HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise EmbeddingError(f"Embedding request failed: {e!r}") from e

        raise EmbeddingError("Embedding request failed after retries")

    @staticmethod
    def _parse_embedding(response: httpx.Response) -> list[float]:
        """Pull ``embedding.values`` out of an embedContent response."""
        try:
            values = response.json()["embedding"]["values"]
            vector = [float(v) for v in values]
        except (KeyError, TypeError, ValueError) as e:
            raise EmbeddingError(f"Malformed embedding response: {e!r}") from e

        if not vector:
            raise EmbeddingError("Provider returned an empty embedding")
        return vector
