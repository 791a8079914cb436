"""
Document sources for the knowledge index.

A document source is anything with an ``extract_text()`` method. Files are
read as plain text unless they are PDFs, which go through ``pypdf``.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, Union

from pypdf import PdfReader
from pypdf.errors import DependencyError, PyPdfError

from snacksage.errors import DocumentSourceError

logger = logging.getLogger(__name__)


class DocumentSource(Protocol):
    """Protocol that all document sources must implement."""

    def extract_text(self) -> str:
        """Return the raw text of the document."""
        ...


@dataclass(frozen=True)
class FileDocument:
    """A document on disk."""

    path: Path

    def extract_text(self) -> str:
        return extract_text(self.path)


@dataclass(frozen=True)
class TextDocument:
    """A document whose text has already been extracted."""

    text: str
    name: str = "<text>"

    def extract_text(self) -> str:
        return self.text


def as_document_source(source: Union[DocumentSource, str, os.PathLike]) -> DocumentSource:
    """
    Coerce a path into a FileDocument; pass document sources through.

    Plain strings are treated as paths. Wrap raw text in TextDocument.
    """
    if isinstance(source, (str, os.PathLike)):
        return FileDocument(Path(source))
    return source


def extract_text(path: Union[str, Path]) -> str:
    """
    Extract plain text from a file.

    Args:
        path: Path to a .pdf or plain-text file

    Returns:
        Extracted text

    Raises:
        DocumentSourceError: If the file is missing or cannot be parsed
    """
    p = Path(path)
    if not p.is_file():
        raise DocumentSourceError(f"Document not found: {p}")

    if p.suffix.lower() == ".pdf":
        return _extract_pdf(p)

    try:
        return p.read_text(encoding="utf-8", errors="ignore")
    except OSError as e:
        raise DocumentSourceError(f"Failed to read {p}: {e}") from e


def _extract_pdf(p: Path) -> str:
    try:
        reader = PdfReader(str(p))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, DependencyError, OSError, ValueError) as e:
        raise DocumentSourceError(f"Failed to parse PDF {p}: {e}") from e

    logger.info(f"PDF extracted from {p.name}: {len(pages)} pages")
    return "\n".join(pages)
