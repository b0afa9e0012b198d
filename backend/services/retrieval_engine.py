"""Retrieval engine orchestrating chunking, embedding and similarity search."""
import time
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Literal, Optional

from config import MAX_CHUNK_SIZE, RELEVANCE_THRESHOLD, SEARCH_TOP_K, SOURCE_PREVIEW_LENGTH
from models.chunk import DocumentChunk, SimilarityResult
from services.chunking_engine import ChunkingEngine
from services.embedding_model import EmbeddingModel
from services.similarity_engine import SimilarityEngine

logger = logging.getLogger(__name__)

Confidence = Literal["high", "medium", "low"]


@dataclass
class IngestionResult:
    """Chunks produced for one document, embedded where possible."""
    chunks: List[DocumentChunk]
    total_chunks: int
    embeddings_generated: int
    duration_seconds: float


@dataclass
class Source:
    """Short citation for a search result."""
    doc_name: str
    doc_id: str
    similarity: float
    chunk_content: str


@dataclass
class SearchResponse:
    """Ranked results for a query with a confidence estimate."""
    query: str
    results: List[SimilarityResult]
    search_duration_seconds: float
    confidence: Confidence
    sources: List[Source] = field(default_factory=list)


def determine_confidence(results: List[SimilarityResult]) -> Confidence:
    """
    Grade a result set by average similarity and result count.

    high: average > 0.7 with at least 3 results
    medium: average > 0.5 with at least 2 results
    """
    if not results:
        return "low"

    avg_similarity = sum(result.similarity for result in results) / len(results)
    if avg_similarity > 0.7 and len(results) >= 3:
        return "high"
    if avg_similarity > 0.5 and len(results) >= 2:
        return "medium"
    return "low"


def preview(content: str, length: int = SOURCE_PREVIEW_LENGTH) -> str:
    if len(content) <= length:
        return content
    return content[:length] + "..."


class RetrievalEngine:
    """Chunk → embed → rank pipeline over in-memory chunks."""

    def __init__(
        self,
        embedding_model: EmbeddingModel,
        chunking_engine: Optional[ChunkingEngine] = None,
        similarity_engine: Optional[SimilarityEngine] = None
    ):
        """
        Initialize the retrieval engine.

        Args:
            embedding_model: EmbeddingModel for chunk and query embeddings
            chunking_engine: ChunkingEngine (default settings if omitted)
            similarity_engine: SimilarityEngine (built on embedding_model if omitted)
        """
        self.embedding_model = embedding_model
        self.chunking_engine = chunking_engine or ChunkingEngine()
        self.similarity_engine = similarity_engine or SimilarityEngine(embedding_model)
        logger.info("Initialized RetrievalEngine")

    def ingest_document(
        self,
        content: str,
        doc_id: str,
        doc_name: str,
        tables: Optional[Dict[str, Iterable[Any]]] = None,
        max_chunk_size: int = MAX_CHUNK_SIZE
    ) -> IngestionResult:
        """
        Chunk a document's text and tables, then embed every chunk.

        Args:
            content: Page text of the document
            doc_id: Document identifier
            doc_name: Document display name
            tables: Optional mapping of table name to rows
            max_chunk_size: Page chunk size limit in characters

        Returns:
            IngestionResult with all chunks in order: page chunks first, then
            table rows table by table
        """
        start_time = time.time()

        chunks = self.chunking_engine.chunk_document(content, doc_id, doc_name, max_chunk_size)
        for table_name, rows in (tables or {}).items():
            chunks.extend(self.chunking_engine.chunk_table_data(rows, table_name, doc_id, doc_name))

        embedded_chunks = self.embedding_model.embed_document_chunks(chunks)
        embeddings_generated = sum(1 for chunk in embedded_chunks if chunk.has_embedding)
        duration = time.time() - start_time

        logger.info(
            f"Ingested {doc_name}: {len(embedded_chunks)} chunks, "
            f"{embeddings_generated} embedded in {duration:.2f}s"
        )

        return IngestionResult(
            chunks=embedded_chunks,
            total_chunks=len(embedded_chunks),
            embeddings_generated=embeddings_generated,
            duration_seconds=duration
        )

    def search(
        self,
        query: str,
        chunks: List[DocumentChunk],
        top_k: int = SEARCH_TOP_K,
        threshold: float = RELEVANCE_THRESHOLD
    ) -> SearchResponse:
        """
        Rank chunks against a query and summarize the result.

        Args:
            query: User question
            chunks: Candidate chunks, usually from ``ingest_document``
            top_k: Maximum number of results
            threshold: Minimum similarity (inclusive)

        Returns:
            SearchResponse; empty with "low" confidence for a blank query

        Raises:
            EmbeddingServiceError: If the query cannot be embedded
        """
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return SearchResponse(query=query, results=[], search_duration_seconds=0.0, confidence="low")

        start_time = time.time()
        results = self.similarity_engine.find_similar_chunks(query, chunks, top_k, threshold)
        duration = time.time() - start_time

        confidence = determine_confidence(results)
        sources = [
            Source(
                doc_name=result.chunk.metadata.doc_name,
                doc_id=result.chunk.metadata.doc_id,
                similarity=result.similarity,
                chunk_content=preview(result.chunk.content)
            )
            for result in results[:5]
        ]

        logger.info(
            f"Retrieved {len(results)} chunks in {duration:.2f}s (confidence: {confidence})"
        )

        return SearchResponse(
            query=query,
            results=results,
            search_duration_seconds=duration,
            confidence=confidence,
            sources=sources
        )
