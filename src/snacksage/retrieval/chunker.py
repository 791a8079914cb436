"""
Sentence-respecting document chunking with overlap.

Splits a long reference document into segments of roughly ``chunk_size``
characters. Segments never cut through a sentence; each new segment
starts with the trailing words of the previous one so that facts spanning
a boundary remain retrievable.
"""

import re

# A sentence is a run of non-terminators closed by any number of . ! ?
# The closing run is empty only for text after the last terminator.
SENTENCE_PATTERN = re.compile(r"[^.!?]+[.!?]*")

# Average English word length used to turn a character overlap into words.
CHARS_PER_WORD = 5


def split_sentences(text: str) -> list[str]:
    """
    Split text into sentence-like units.

    Text after the last terminator forms a final unit of its own. When the
    text has no terminators at all, it is returned as a single sentence.

    Args:
        text: Text to split

    Returns:
        Non-blank sentences in document order, each keeping its leading whitespace
    """
    sentences = [s for s in SENTENCE_PATTERN.findall(text) if s.strip()]
    return sentences or [text]


def split_into_chunks(
    text: str,
    chunk_size: int = 1000,
    overlap: int = 200,
) -> list[str]:
    """
    Split text into overlapping chunks on sentence boundaries.

    Sentences are accumulated into a buffer. When the next sentence would push
    the buffer past ``chunk_size`` the buffer is closed, and the next one is
    seeded with the last ``overlap // 5`` words of the closed chunk followed by
    the sentence that triggered the cut. A chunk can therefore exceed
    ``chunk_size`` by at most one sentence.

    Args:
        text: Document text to chunk
        chunk_size: Soft upper bound on chunk length in characters
        overlap: Approximate number of characters repeated between chunks

    Returns:
        Non-empty, stripped chunk strings in document order

    Raises:
        ValueError: If chunk_size <= 0 or overlap is negative or >= chunk_size
    """
    if chunk_size <= 0:
        raise ValueError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ValueError(f"overlap must be non-negative, got {overlap}")
    if overlap >= chunk_size:
        raise ValueError(
            f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
        )

    if not text or not text.strip():
        return []

    overlap_words = overlap // CHARS_PER_WORD
    chunks: list[str] = []
    current = ""

    for sentence in split_sentences(text):
        if len(current + sentence) > chunk_size and current:
            chunks.append(current.strip())
            current = _carry_over(current, overlap_words) + " " + sentence
        else:
            current += sentence

    if current.strip():
        chunks.append(current.strip())

    return chunks


def _carry_over(chunk: str, word_count: int) -> str:
    """Return the last ``word_count`` space-separated words of a chunk."""
    if word_count <= 0:
        return ""
    words = chunk.split(" ")
    return " ".join(words[-word_count:])
