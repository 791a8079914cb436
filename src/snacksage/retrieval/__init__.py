"""
Knowledge retrieval components for the RAG pipeline.

Components:
    - chunker: Split a document into overlapping, sentence-respecting chunks
    - documents: Read text from PDF or plain-text sources
    - embeddings: Generate vector embeddings via the Gemini API
    - index: In-memory index with exact cosine-similarity search
    - formatter: Render retrieved chunks as prompt context
"""

from snacksage.retrieval.chunker import split_into_chunks
from snacksage.retrieval.documents import DocumentSource, FileDocument, TextDocument
from snacksage.retrieval.embeddings import EmbeddingProvider, GeminiEmbedder
from snacksage.retrieval.formatter import NO_CONTEXT_SENTINEL, format_context_for_prompt
from snacksage.retrieval.index import FixedDelayPacer, KnowledgeIndex
from snacksage.retrieval.models import Chunk, IndexState, RetrievalResult

__all__ = [
    "Chunk",
    "DocumentSource",
    "EmbeddingProvider",
    "FileDocument",
    "FixedDelayPacer",
    "GeminiEmbedder",
    "IndexState",
    "KnowledgeIndex",
    "NO_CONTEXT_SENTINEL",
    "RetrievalResult",
    "TextDocument",
    "format_context_for_prompt",
    "split_into_chunks",
]
