"""
Exception hierarchy for the knowledge retrieval engine.

Error Categories:
    - DocumentSourceError: the reference document could not be read
    - EmbeddingError: one embedding call failed (network, auth, rate limit,
      malformed response). Fatal while indexing, per-query while retrieving.
    - IndexBuildError: an index build attempt was aborted. The index keeps
      its prior state.
    - NotInitializedError: retrieval was attempted before the index is ready.
      Callers treat it as "no context available".
    - GenerationError: the text generation call failed.

Usage:
    from snacksage.errors import EmbeddingError, NotInitializedError

    try:
        results = index.get_context(question)
    except (NotInitializedError, EmbeddingError) as e:
        logger.warning(f"Proceeding without grounding: {e}")
        results = []
"""


class SnackSageError(Exception):
    """Base exception for all SnackSage errors."""


class DocumentSourceError(SnackSageError):
    """Raised when text cannot be extracted from a document source."""


class EmbeddingError(SnackSageError):
    """
    Raised when the embedding provider fails to return a vector.

    Attributes:
        status_code: HTTP status returned by the provider, if any
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class IndexBuildError(SnackSageError):
    """
    Raised when building the knowledge index fails.

    Attributes:
        chunk_index: Position of the chunk being embedded when the build
            failed, or None if it failed before embedding started
        total_chunks: Number of chunks the document produced, if known
    """

    def __init__(
        self,
        message: str,
        chunk_index: int | None = None,
        total_chunks: int | None = None,
    ) -> None:
        super().__init__(message)
        self.chunk_index = chunk_index
        self.total_chunks = total_chunks


class NotInitializedError(SnackSageError):
    """Raised when the index is queried before a successful build."""


class GenerationError(SnackSageError):
    """Raised when the text generation endpoint fails."""
