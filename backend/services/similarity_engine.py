"""Cosine similarity ranking of embedded chunks against a query."""
import math
import logging
from typing import List, Sequence

from config import DEFAULT_TOP_K, RELEVANCE_THRESHOLD
from models.chunk import DocumentChunk, SimilarityResult
from services.embedding_model import EmbeddingModel
from services.exceptions import DimensionMismatchError

logger = logging.getLogger(__name__)


def calculate_cosine_similarity(vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
    """
    Cosine of the angle between two vectors.

    Similarity against a zero vector is defined as 0.0.

    Raises:
        DimensionMismatchError: If the vectors differ in length
    """
    if len(vec_a) != len(vec_b):
        raise DimensionMismatchError(
            f"Vectors must have the same length ({len(vec_a)} != {len(vec_b)})"
        )

    dot_product = 0.0
    norm_a = 0.0
    norm_b = 0.0

    for a, b in zip(vec_a, vec_b):
        dot_product += a * b
        norm_a += a * a
        norm_b += b * b

    if norm_a == 0 or norm_b == 0:
        return 0.0

    return dot_product / (math.sqrt(norm_a) * math.sqrt(norm_b))


class SimilarityEngine:
    """Rank chunks by cosine similarity to a query embedding."""

    def __init__(self, embedding_model: EmbeddingModel):
        """
        Initialize the similarity engine.

        Args:
            embedding_model: EmbeddingModel used to embed queries
        """
        self.embedding_model = embedding_model

    def calculate_cosine_similarity(self, vec_a: Sequence[float], vec_b: Sequence[float]) -> float:
        return calculate_cosine_similarity(vec_a, vec_b)

    def find_similar_chunks(
        self,
        query: str,
        chunks: List[DocumentChunk],
        top_k: int = DEFAULT_TOP_K,
        threshold: float = RELEVANCE_THRESHOLD
    ) -> List[SimilarityResult]:
        """
        Find the chunks most similar to a query.

        Chunks without an embedding are skipped. Order among equal scores is
        unspecified.

        Args:
            query: Query text
            chunks: Candidate chunks
            top_k: Maximum number of results
            threshold: Minimum similarity (inclusive)

        Returns:
            At most ``top_k`` results sorted by similarity, highest first

        Raises:
            EmbeddingServiceError: If the query cannot be embedded
        """
        query_embedding = self.embedding_model.generate_embedding(query)

        results: List[SimilarityResult] = []
        for chunk in chunks:
            if chunk.embedding is None:
                continue

            similarity = calculate_cosine_similarity(query_embedding, chunk.embedding)
            if similarity >= threshold:
                results.append(SimilarityResult(chunk=chunk, similarity=similarity))

        results.sort(key=lambda result: result.similarity, reverse=True)
        logger.debug(f"{len(results)} chunks above threshold {threshold}, returning top {top_k}")
        return results[:max(top_k, 0)]
