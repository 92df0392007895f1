"""Exception taxonomy for the retrieval pipeline.

Only :class:`ConfigurationError` is meant to escape a batch operation.
Everything else is item-scoped: the pipelines catch it, record it (a
``failed`` document status, an error count, a dropped search hit) and
carry on with the next item.
"""

from __future__ import annotations


class DocRetrievalError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(DocRetrievalError):
    """A required setting is missing; the whole invocation must stop."""


class NotFoundError(DocRetrievalError):
    """A record the caller depends on does not exist."""


class UnsupportedFormatError(DocRetrievalError):
    """The text extractor has no handler for the file's extension."""


class ExtractionError(DocRetrievalError):
    """A supported file could not be turned into text."""


class EmbeddingError(DocRetrievalError):
    """Base class for embedding-model failures."""


class ModelUnavailableError(EmbeddingError):
    """The embedding model could not be reached or returned garbage."""


class InvalidInputError(EmbeddingError):
    """The embedding model (or this package) rejected the input text."""


class DimensionMismatchError(DocRetrievalError, ValueError):
    """Two vectors that must share a dimension do not."""
