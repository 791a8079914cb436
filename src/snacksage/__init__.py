"""
SnackSage: pantry-aware recipe assistant grounded in a food knowledge base.

This package provides the retrieval-augmented context engine behind the
SnackSage recipe features: a reference document is chunked, embedded and
held in memory, then queried to ground generated recipes and chat replies.

Key Components:
    - retrieval: Chunking, embeddings, in-memory index and context formatting
    - recipes: Prompt assembly for recommendations, chat and knowledge Q&A
    - llm: Text generation client
    - api: FastAPI REST endpoints
    - tracing: Optional Arize Phoenix observability integration

Example:
    >>> from snacksage.retrieval import KnowledgeIndex, format_context_for_prompt
    >>> index = KnowledgeIndex(embedder)
    >>> index.initialize("data/goodfood.pdf")
    >>> results = index.get_context("how long does cooked rice keep?", top_k=3)
    >>> print(format_context_for_prompt(results))
"""

__version__ = "0.1.0"

from snacksage.config import settings

__all__ = [
    "__version__",
    "settings",
]
