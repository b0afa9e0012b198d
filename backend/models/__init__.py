"""Data models for the document search pipeline."""
from .chunk import ChunkMetadata, DocumentChunk, SimilarityResult

__all__ = [
    "ChunkMetadata",
    "DocumentChunk",
    "SimilarityResult",
]
