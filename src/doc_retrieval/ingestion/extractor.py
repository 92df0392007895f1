"""Text extraction — turn uploaded bytes into plain text by file suffix."""

from __future__ import annotations

import io
import logging
from abc import ABC, abstractmethod
from pathlib import PurePosixPath

from doc_retrieval.errors import ExtractionError, UnsupportedFormatError

logger = logging.getLogger(__name__)

PLAIN_TEXT_SUFFIXES = frozenset({".txt", ".md", ".markdown", ".csv", ".json", ".log", ".html", ".htm", ".xml"})


def file_suffix(filename: str) -> str:
    """Return the lower-cased suffix of *filename* (``""`` when there is none)."""
    return PurePosixPath(filename).suffix.lower()


class TextExtractor(ABC):
    """Extracts plain text from the raw bytes of an uploaded file."""

    @abstractmethod
    def extract(self, filename: str, data: bytes) -> str:
        """Return the text content of *data*.

        Raises
        ------
        UnsupportedFormatError
            If the extension of *filename* is not handled.
        ExtractionError
            If a supported file cannot be read.
        """
        ...


class DefaultTextExtractor(TextExtractor):
    """Decodes plain-text formats as UTF-8 and reads PDFs with ``pdfplumber``."""

    def extract(self, filename: str, data: bytes) -> str:
        suffix = file_suffix(filename)
        if suffix in PLAIN_TEXT_SUFFIXES:
            return data.decode("utf-8", errors="replace")
        if suffix == ".pdf":
            return self._extract_pdf(filename, data)
        raise UnsupportedFormatError(f"Unsupported file type: {suffix or '<none>'} ({filename})")

    @staticmethod
    def _extract_pdf(filename: str, data: bytes) -> str:
        import pdfplumber

        try:
            with pdfplumber.open(io.BytesIO(data)) as pdf:
                texts: list[str] = []
                for page_number, page in enumerate(pdf.pages, 1):
                    page_text = page.extract_text()
                    if page_text:
                        texts.append(page_text)
                    else:
                        logger.warning("No text on page %d of %s", page_number, filename)
        except Exception as exc:
            raise ExtractionError(f"Could not read PDF {filename}: {exc}") from exc

        return "\n\n".join(texts)
