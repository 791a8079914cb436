"""
Data types for the in-memory knowledge index.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Sequence


class IndexState(str, Enum):
    """Lifecycle of a KnowledgeIndex."""

    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"
    FAILED = "failed"


@dataclass(frozen=True)
class Chunk:
    """A segment of the reference document with its embedding."""

    id: int
    """Sequence number assigned at build time, never reused by an index."""

    text: str
    """The text content of the chunk."""

    embedding: tuple[float, ...]
    """Embedding vector returned by the provider."""

    def __post_init__(self) -> None:
        if not self.text or not self.text.strip():
            raise ValueError(f"Chunk {self.id} has empty text")
        if not self.embedding:
            raise ValueError(f"Chunk {self.id} has an empty embedding")
        object.__setattr__(self, "embedding", tuple(float(v) for v in self.embedding))

    @property
    def dimension(self) -> int:
        return len(self.embedding)

    @classmethod
    def create(cls, id: int, text: str, embedding: Sequence[float]) -> "Chunk":
        return cls(id=id, text=text, embedding=tuple(embedding))


@dataclass(frozen=True)
class RetrievalResult:
    """A chunk ranked against a query."""

    chunk_id: int
    """Id of the matched chunk."""

    text: str
    """The text content of the matched chunk."""

    similarity: float
    """Raw cosine similarity to the query (-1.0 to 1.0)."""

    @property
    def display_similarity(self) -> str:
        """Similarity rounded to three decimals for prompts and logs."""
        return f"{self.similarity:.3f}"
