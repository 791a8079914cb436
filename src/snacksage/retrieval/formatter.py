"""
Render retrieval results as a grounding block for generation prompts.
"""

from typing import Sequence

from snacksage.retrieval.models import RetrievalResult

NO_CONTEXT_SENTINEL = "No relevant context found in the knowledge base."

CONTEXT_DELIMITER = "\n\n---\n\n"


def format_context_for_prompt(results: Sequence[RetrievalResult]) -> str:
    """
    Format retrieved chunks into one prompt-ready string.

    Each chunk becomes a numbered block with its relevance score, and blocks
    are separated by a horizontal rule so the model can tell them apart.

    Args:
        results: Retrieval results, most relevant first

    Returns:
        Formatted context, or NO_CONTEXT_SENTINEL when results is empty
    """
    if not results:
        return NO_CONTEXT_SENTINEL

    return CONTEXT_DELIMITER.join(
        f"[Context {n}] (Relevance: {result.display_similarity})\n{result.text}"
        for n, result in enumerate(results, start=1)
    )
