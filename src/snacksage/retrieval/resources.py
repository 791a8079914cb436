"""
Construction and startup of the long-lived retrieval resources.

The embedder is an HTTP client with no state, so a cached instance is shared.
The knowledge index is created once per process by the application entry
point (API lifespan or CLI command) and passed by reference to the code that
needs it.

Usage:
    # In API startup
    index = create_knowledge_index()
    build_in_background(index)

    # In a CLI command
    index = create_knowledge_index()
    status = initialize_resources(index, "data/goodfood.pdf")

    # In tests (reset cache)
    clear_resource_cache()
"""

import logging
import threading
from functools import lru_cache
from pathlib import Path
from typing import Optional

from snacksage.config import settings
from snacksage.errors import IndexBuildError
from snacksage.retrieval.embeddings import GeminiEmbedder
from snacksage.retrieval.index import FixedDelayPacer, KnowledgeIndex

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def get_embedder() -> GeminiEmbedder:
    """
    Get or create the shared GeminiEmbedder instance.

    Returns:
        GeminiEmbedder: Client configured from settings
    """
    logger.info(f"Initializing Gemini embedder for model: {settings.embedding_model}")

    return GeminiEmbedder(
        model=settings.embedding_model,
        api_key=settings.gemini_api_key_value,
    )


def create_knowledge_index() -> KnowledgeIndex:
    """
    Create an empty knowledge index wired to the shared embedder.

    Returns:
        KnowledgeIndex in the ``uninitialized`` state
    """
    return KnowledgeIndex(
        embedder=get_embedder(),
        chunk_size=settings.chunk_size,
        chunk_overlap=settings.chunk_overlap,
        pacer=FixedDelayPacer(settings.embedding_delay_seconds),
    )


def initialize_resources(
    index: KnowledgeIndex,
    document_path: Optional[str | Path] = None,
) -> dict[str, bool]:
    """
    Build the knowledge index from the configured reference document.

    Args:
        index: Index to build
        document_path: Document to index (default: settings.knowledge_base_path)

    Returns:
        dict: Status of each resource
            - "knowledge_index": True if the index is ready
            - "embedder": True if an API key is configured

    Raises:
        IndexBuildError: If the build fails
    """
    path = Path(document_path or settings.knowledge_base_path)

    logger.info(f"Building knowledge index from {path} (this may take a while)...")
    index.initialize(path)

    return {
        "knowledge_index": index.is_ready(),
        "embedder": getattr(index.embedder, "api_key", None) is not None,
    }


def build_in_background(
    index: KnowledgeIndex,
    document_path: Optional[str | Path] = None,
) -> threading.Thread:
    """
    Build the knowledge index on a daemon thread.

    A failed build is logged and the application keeps running without
    grounding context.

    Returns:
        The started thread
    """

    def _run() -> None:
        try:
            status = initialize_resources(index, document_path)
            logger.info(f"Resource initialization status: {status}")
        except IndexBuildError as e:
            logger.error(f"Failed to initialize knowledge index, continuing without it: {e}")

    thread = threading.Thread(target=_run, name="knowledge-index-build", daemon=True)
    thread.start()
    return thread


def clear_resource_cache() -> None:
    """
    Clear all cached resources.

    Used in tests to reset state between test cases.
    """
    get_embedder.cache_clear()
    logger.debug("Resource cache cleared")
