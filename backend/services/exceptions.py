"""Exceptions raised by the embedding and similarity services."""


class EmbeddingServiceError(Exception):
    """Base class for embedding pipeline errors."""


class InitializationError(EmbeddingServiceError):
    """The embedding model could not be loaded."""


class EmptyInputError(EmbeddingServiceError, ValueError):
    """Text was empty after normalization."""


class EmbeddingError(EmbeddingServiceError):
    """The model failed to embed a specific text."""


class DimensionMismatchError(EmbeddingServiceError, ValueError):
    """Two vectors of different length were compared."""
