"""
In-memory knowledge index with exact cosine-similarity search.

The index is built once from a single reference document: the text is
chunked, every chunk is embedded in order with a pause between calls, and
the result is published as an immutable snapshot. Queries run a linear scan
over that snapshot, so any number of request handlers can search it
concurrently while a rebuild runs.
"""

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import Callable, Optional, Protocol, Sequence

import numpy as np
from numpy.typing import NDArray

from snacksage.config import settings
from snacksage.errors import (
    DocumentSourceError,
    EmbeddingError,
    IndexBuildError,
    NotInitializedError,
)
from snacksage.retrieval.chunker import split_into_chunks
from snacksage.retrieval.documents import DocumentSource, as_document_source
from snacksage.retrieval.embeddings import EmbeddingProvider
from snacksage.retrieval.models import Chunk, IndexState, RetrievalResult
from snacksage.tracing import add_span_attributes, record_exception, traced

logger = logging.getLogger(__name__)


class Pacer(Protocol):
    """Rate-limiting policy applied between consecutive embedding calls."""

    def wait(self) -> None:
        ...


@dataclass
class FixedDelayPacer:
    """Sleep a fixed interval between embedding calls."""

    delay_seconds: float = 0.1
    sleep: Callable[[float], None] = field(default=time.sleep, repr=False)

    def wait(self) -> None:
        if self.delay_seconds > 0:
            self.sleep(self.delay_seconds)


@dataclass(frozen=True)
class _Snapshot:
    chunks: tuple[Chunk, ...]
    vectors: NDArray[np.float64]
    ids: NDArray[np.int64]

    @property
    def dimension(self) -> int:
        return int(self.vectors.shape[1])


def cosine_similarities(
    query: Sequence[float],
    vectors: NDArray[np.float64],
) -> NDArray[np.float64]:
    """
    Cosine similarity between a query and each row of a matrix.

    A pair in which either vector has zero magnitude scores 0.0.

    Args:
        query: Vector of shape (dimension,)
        vectors: Matrix of shape (n, dimension)

    Returns:
        Array of shape (n,)
    """
    q = np.asarray(query, dtype=np.float64)
    dots = vectors @ q
    magnitudes = np.linalg.norm(vectors, axis=1) * np.linalg.norm(q)
    with np.errstate(divide="ignore", invalid="ignore"):
        return np.where(magnitudes == 0, 0.0, dots / magnitudes)


class KnowledgeIndex:
    """
    Chunked, embedded reference document held in memory.

    Lifecycle: ``uninitialized -> initializing -> ready`` (or ``failed``).
    A failed rebuild leaves the previous snapshot answering queries.

    Example:
        >>> index = KnowledgeIndex(GeminiEmbedder())
        >>> index.initialize("data/goodfood.pdf")
        >>> results = index.get_context("storing fresh herbs", top_k=3)
    """

    def __init__(
        self,
        embedder: EmbeddingProvider,
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
        pacer: Optional[Pacer] = None,
    ) -> None:
        """
        Initialize an empty index.

        Args:
            embedder: Provider used for chunk and query embeddings
            chunk_size: Target chunk size in characters (default from settings)
            chunk_overlap: Overlap in characters (default from settings)
            pacer: Policy applied between embedding calls while building
                (default: FixedDelayPacer with settings.embedding_delay_seconds)
        """
        self.embedder = embedder
        self.chunk_size = chunk_size or settings.chunk_size
        self.chunk_overlap = settings.chunk_overlap if chunk_overlap is None else chunk_overlap
        if not 0 <= self.chunk_overlap < self.chunk_size:
            raise ValueError(
                f"chunk_overlap ({self.chunk_overlap}) must be in [0, chunk_size ({self.chunk_size}))"
            )
        self.pacer = pacer or FixedDelayPacer(settings.embedding_delay_seconds)

        self._snapshot: Optional[_Snapshot] = None
        self._state = IndexState.UNINITIALIZED
        self._build_lock = threading.Lock()
        self._next_id = 0
        self.last_error: Optional[IndexBuildError] = None

    @property
    def state(self) -> IndexState:
        return self._state

    def is_ready(self) -> bool:
        """Check if a built index is available for queries."""
        return self._snapshot is not None

    @property
    def size(self) -> int:
        """Number of chunks in the current snapshot."""
        snapshot = self._snapshot
        return len(snapshot.chunks) if snapshot else 0

    @property
    def dimension(self) -> Optional[int]:
        snapshot = self._snapshot
        return snapshot.dimension if snapshot else None

    @property
    def chunks(self) -> tuple[Chunk, ...]:
        snapshot = self._snapshot
        return snapshot.chunks if snapshot else ()

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    @traced("knowledge_index.initialize")
    def initialize(self, source: DocumentSource | str) -> None:
        """
        Build (or rebuild) the index from a document.

        Calls are serialized; a second call waits for the first to finish and
        then replaces its result.

        Args:
            source: Document source, or a path to a .pdf/.txt file

        Raises:
            IndexBuildError: If the document cannot be read, an embedding
                call fails, or the build fails unexpectedly. The index keeps
                its previous state.
        """
        document = as_document_source(source)

        with self._build_lock:
            self._state = IndexState.INITIALIZING
            started = time.perf_counter()
            try:
                snapshot = self._build(document)
            except IndexBuildError as e:
                self._fail(e)
                raise
            except Exception as e:
                error = IndexBuildError(f"Unexpected error while building index: {e!r}")
                self._fail(error)
                raise error from e

            self._snapshot = snapshot
            self._next_id += len(snapshot.chunks)
            self.last_error = None
            self._state = IndexState.READY

        elapsed = time.perf_counter() - started
        add_span_attributes(chunks_indexed=len(snapshot.chunks), dimension=snapshot.dimension)
        logger.info(
            f"Knowledge index ready: {len(snapshot.chunks)} chunks, "
            f"dimension {snapshot.dimension} ({elapsed:.1f}s)"
        )

    def _fail(self, error: IndexBuildError) -> None:
        """Record a failed build; the previous snapshot, if any, stays live."""
        self.last_error = error
        self._state = IndexState.READY if self._snapshot is not None else IndexState.FAILED
        record_exception(error)
        add_span_attributes(
            chunk_index=-1 if error.chunk_index is None else error.chunk_index,
            total_chunks=-1 if error.total_chunks is None else error.total_chunks,
        )
        logger.error(f"Knowledge index build failed ({self._state.value}): {error}")

    def _build(self, document: DocumentSource) -> _Snapshot:
        logger.info(f"Initializing knowledge index from {document!r}")

        try:
            text = document.extract_text()
        except DocumentSourceError as e:
            raise IndexBuildError(f"Failed to read document: {e}") from e

        texts = split_into_chunks(text, self.chunk_size, self.chunk_overlap)
        total = len(texts)
        if total == 0:
            raise IndexBuildError("Document contains no text to index", total_chunks=0)
        logger.info(f"Created {total} chunks (size={self.chunk_size}, overlap={self.chunk_overlap})")

        chunks: list[Chunk] = []
        dimension: Optional[int] = None

        for position, chunk_text in enumerate(texts):
            if position > 0:
                self.pacer.wait()

            try:
                vector = self.embedder.embed(chunk_text)
                chunk = Chunk.create(self._next_id + position, chunk_text, vector)
            except (EmbeddingError, ValueError) as e:
                raise IndexBuildError(
                    f"Embedding failed for chunk {position + 1}/{total}: {e}",
                    chunk_index=position,
                    total_chunks=total,
                ) from e

            if dimension is None:
                dimension = chunk.dimension
            elif chunk.dimension != dimension:
                raise IndexBuildError(
                    f"Chunk {position + 1}/{total} has dimension {chunk.dimension}, "
                    f"expected {dimension}",
                    chunk_index=position,
                    total_chunks=total,
                )

            chunks.append(chunk)
            logger.debug(f"Embedded chunk {position + 1}/{total}")

        return _Snapshot(
            chunks=tuple(chunks),
            vectors=np.array([c.embedding for c in chunks], dtype=np.float64),
            ids=np.array([c.id for c in chunks], dtype=np.int64),
        )

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def _require_snapshot(self) -> _Snapshot:
        snapshot = self._snapshot
        if snapshot is None:
            raise NotInitializedError(
                f"Knowledge index is not ready (state: {self._state.value}). "
                "Call initialize() first."
            )
        return snapshot

    def _rank(
        self,
        snapshot: _Snapshot,
        query_vector: Sequence[float],
        top_k: int,
    ) -> list[RetrievalResult]:
        if len(query_vector) != snapshot.dimension:
            raise EmbeddingError(
                f"Query embedding has dimension {len(query_vector)}, "
                f"index has {snapshot.dimension}"
            )

        scores = cosine_similarities(query_vector, snapshot.vectors)
        # Descending similarity, then ascending chunk id
        order = np.lexsort((snapshot.ids, -scores))[:top_k]

        return [
            RetrievalResult(
                chunk_id=snapshot.chunks[i].id,
                text=snapshot.chunks[i].text,
                similarity=float(scores[i]),
            )
            for i in order
        ]

    @traced("knowledge_index.retrieve")
    def retrieve_relevant(self, query: str, top_k: int) -> list[RetrievalResult]:
        """
        Rank indexed chunks by cosine similarity to a query.

        Args:
            query: Query text
            top_k: Maximum number of results

        Returns:
            At most min(top_k, size) results, most similar first

        Raises:
            NotInitializedError: If no index has been built
            EmbeddingError: If embedding the query fails
        """
        snapshot = self._require_snapshot()
        if top_k <= 0:
            return []

        results = self._rank(snapshot, self.embedder.embed(query), top_k)
        add_span_attributes(query=query, chunks_retrieved=len(results))
        return results

    async def aretrieve_relevant(self, query: str, top_k: int) -> list[RetrievalResult]:
        """Async version of retrieve_relevant."""
        snapshot = self._require_snapshot()
        if top_k <= 0:
            return []

        query_vector = await self.embedder.aembed(query)
        return self._rank(snapshot, query_vector, top_k)

    def get_context(self, query: str, top_k: Optional[int] = None) -> list[RetrievalResult]:
        """
        Retrieve grounding context for a prompt.

        Args:
            query: Query text
            top_k: Number of chunks (default from settings)
        """
        return self.retrieve_relevant(query, settings.retrieval_top_k if top_k is None else top_k)

    async def aget_context(self, query: str, top_k: Optional[int] = None) -> list[RetrievalResult]:
        """Async version of get_context."""
        return await self.aretrieve_relevant(
            query, settings.retrieval_top_k if top_k is None else top_k
        )
