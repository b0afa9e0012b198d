"""Services for the document search pipeline."""
from .exceptions import (
    EmbeddingServiceError,
    InitializationError,
    EmptyInputError,
    EmbeddingError,
    DimensionMismatchError,
)
from .chunking_engine import ChunkingEngine
from .embedding_backends import EmbeddingBackend, HuggingFaceInferenceBackend, LocalTransformersBackend, create_backend
from .embedding_model import EmbeddingModel, EmbedderState
from .similarity_engine import SimilarityEngine, calculate_cosine_similarity
from .retrieval_engine import RetrievalEngine, SearchResponse, IngestionResult

__all__ = ['EmbeddingServiceError', 'InitializationError', 'EmptyInputError', 'EmbeddingError', 'DimensionMismatchError', 'ChunkingEngine', 'EmbeddingBackend', 'HuggingFaceInferenceBackend', 'LocalTransformersBackend', 'create_backend', 'EmbeddingModel', 'EmbedderState', 'SimilarityEngine', 'calculate_cosine_similarity', 'RetrievalEngine', 'SearchResponse', 'IngestionResult']
