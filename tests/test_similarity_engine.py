"""Unit tests for SimilarityEngine."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock

from models.chunk import ChunkMetadata, DocumentChunk
from services.embedding_model import EmbeddingModel
from services.exceptions import DimensionMismatchError, EmbeddingError
from services.similarity_engine import SimilarityEngine, calculate_cosine_similarity


def make_chunk(index, embedding):
    return DocumentChunk(
        id=f"d1-chunk-{index}",
        content=f"chunk {index}",
        metadata=ChunkMetadata(doc_id="d1", doc_name="doc", chunk_index=index, source="page"),
        embedding=embedding
    )


class TestCosineSimilarity:
    """Test suite for cosine similarity."""

    @pytest.mark.parametrize("vector", [
        [1.0, 0.0, 0.0],
        [0.3, -1.2, 4.5, 0.01],
        [-2.0, -2.0],
    ])
    def test_identical_vectors(self, vector):
        assert calculate_cosine_similarity(vector, vector) == pytest.approx(1.0)

    def test_orthogonal_and_opposite(self):
        assert calculate_cosine_similarity([1, 0], [0, 1]) == pytest.approx(0.0)
        assert calculate_cosine_similarity([1, 2], [-1, -2]) == pytest.approx(-1.0)

    def test_scale_invariant(self):
        assert calculate_cosine_similarity([1, 2, 3], [2, 4, 6]) == pytest.approx(1.0)

    def test_zero_vector(self):
        assert calculate_cosine_similarity([0, 0, 0], [1, 2, 3]) == 0
        assert calculate_cosine_similarity([1, 2, 3], [0, 0, 0]) == 0
        assert calculate_cosine_similarity([0, 0], [0, 0]) == 0

    def test_dimension_mismatch(self):
        with pytest.raises(DimensionMismatchError, match="same length"):
            calculate_cosine_similarity([1, 2], [1, 2, 3])

    def test_engine_method(self):
        engine = SimilarityEngine(Mock(spec=EmbeddingModel))
        assert engine.calculate_cosine_similarity([1, 0], [1, 0]) == pytest.approx(1.0)


class TestFindSimilarChunks:
    """Test suite for top-K similarity search."""

    @pytest.fixture
    def mock_embedding_model(self):
        model = Mock(spec=EmbeddingModel)
        model.generate_embedding.return_value = [1.0, 0.0]
        return model

    @pytest.fixture
    def engine(self, mock_embedding_model):
        return SimilarityEngine(mock_embedding_model)

    @pytest.fixture
    def chunks(self):
        return [
            make_chunk(0, [0.0, 1.0]),    # 0.0
            make_chunk(1, [1.0, 0.0]),    # 1.0
            make_chunk(2, None),
            make_chunk(3, [1.0, 1.0]),    # ~0.707
            make_chunk(4, [1.0, 3.0]),    # ~0.316
            make_chunk(5, [-1.0, 0.0]),   # -1.0
        ]

    def test_sorted_and_thresholded(self, engine, chunks, mock_embedding_model):
        results = engine.find_similar_chunks("query", chunks, top_k=10, threshold=0.3)

        assert [r.chunk.id for r in results] == ["d1-chunk-1", "d1-chunk-3", "d1-chunk-4"]
        assert results[0].similarity == pytest.approx(1.0)
        mock_embedding_model.generate_embedding.assert_called_once_with("query")

    def test_top_k_limit(self, engine, chunks):
        results = engine.find_similar_chunks("query", chunks, top_k=2, threshold=-1.0)

        assert len(results) == 2
        assert [r.chunk.id for r in results] == ["d1-chunk-1", "d1-chunk-3"]

    def test_threshold_inclusive(self, engine):
        chunk = make_chunk(0, [0.0, 1.0])

        results = engine.find_similar_chunks("query", [chunk], threshold=0.0)

        assert len(results) == 1

    def test_unembedded_chunks_excluded(self, engine, chunks):
        results = engine.find_similar_chunks("query", chunks, top_k=100, threshold=-1.0)

        assert len(results) == 5
        assert all(r.chunk.embedding is not None for r in results)
        assert all(-1.0 <= r.similarity <= 1.0 + 1e-9 for r in results)

    def test_defaults(self, engine):
        chunks = [make_chunk(i, [1.0, 0.1 * i]) for i in range(8)]

        results = engine.find_similar_chunks("query", chunks)

        assert len(results) == 5
        assert all(r.similarity >= 0.3 for r in results)

    def test_no_candidates(self, engine):
        assert engine.find_similar_chunks("query", []) == []

    def test_query_failure_propagates(self, engine, chunks, mock_embedding_model):
        mock_embedding_model.generate_embedding.side_effect = EmbeddingError("model down")

        with pytest.raises(EmbeddingError):
            engine.find_similar_chunks("query", chunks)

    def test_mismatched_chunk_dimension(self, engine):
        with pytest.raises(DimensionMismatchError):
            engine.find_similar_chunks("query", [make_chunk(0, [1.0, 0.0, 0.0])])

    def test_with_real_embedding_model(self, embedding_model):
        engine = SimilarityEngine(embedding_model)
        chunks = embedding_model.embed_document_chunks([
            DocumentChunk(
                id=f"d1-chunk-{i}",
                content=text,
                metadata=ChunkMetadata(doc_id="d1", doc_name="doc", chunk_index=i, source="page")
            )
            for i, text in enumerate(["Deploy the release today.", "The cat sat.", "Budget numbers."])
        ])

        results = engine.find_similar_chunks("when do we deploy the release", chunks)

        assert len(results) == 1
        assert results[0].chunk.id == "d1-chunk-0"
        assert results[0].similarity == pytest.approx(1.0)
