"""Chunk data models."""
from dataclasses import dataclass
from typing import List, Literal, Optional

ChunkSource = Literal["table", "page", "section"]


@dataclass
class ChunkMetadata:
    """Provenance of a chunk within its source document."""
    doc_id: str
    doc_name: str
    chunk_index: int  # 0-based position within its document or table
    source: ChunkSource
    source_id: Optional[str] = None  # e.g. table name


@dataclass
class DocumentChunk:
    """Represents a document chunk for embedding and retrieval."""
    id: str  # "{doc_id}-chunk-{i}" or "{doc_id}-table-{table}-row-{i}"
    content: str
    metadata: ChunkMetadata
    embedding: Optional[List[float]] = None

    @property
    def has_embedding(self) -> bool:
        return self.embedding is not None


@dataclass
class SimilarityResult:
    """Chunk with cosine similarity score from a query."""
    chunk: DocumentChunk
    similarity: float  # -1.0 to 1.0
