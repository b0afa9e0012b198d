"""Chunking engine for page text and table rows."""
import json
import logging
import re
from typing import Any, Iterable, List, Mapping

from models.chunk import ChunkMetadata, DocumentChunk
from config import MAX_CHUNK_SIZE

logger = logging.getLogger(__name__)

# A run of terminators counts as one sentence boundary ("Wait?!" -> "Wait")
SENTENCE_TERMINATORS = re.compile(r"[.!?]+")


class ChunkingEngine:
    """Segments documents and tables into bounded-size chunks with provenance metadata."""

    def __init__(self, max_chunk_size: int = MAX_CHUNK_SIZE):
        """
        Initialize ChunkingEngine.

        Args:
            max_chunk_size: Default chunk size limit in characters
        """
        self.max_chunk_size = max_chunk_size

    def chunk_document(
        self,
        content: str,
        doc_id: str,
        doc_name: str,
        max_chunk_size: int = None
    ) -> List[DocumentChunk]:
        """
        Chunk page text by greedily packing whole sentences.

        A sentence is never split: when a single sentence is longer than
        ``max_chunk_size`` it becomes its own oversized chunk.

        Args:
            content: Raw document text
            doc_id: Source document identifier
            doc_name: Source document display name
            max_chunk_size: Chunk size limit in characters (defaults to the engine's)

        Returns:
            Ordered list of "page" chunks, empty if content has no sentences
        """
        if max_chunk_size is None:
            max_chunk_size = self.max_chunk_size

        chunks: List[DocumentChunk] = []
        current_chunk = ""
        chunk_index = 0

        for sentence in self._split_into_sentences(content or ""):
            if len(current_chunk) + len(sentence) > max_chunk_size and current_chunk:
                chunks.append(self._page_chunk(current_chunk, doc_id, doc_name, chunk_index))
                current_chunk = sentence
                chunk_index += 1
            else:
                current_chunk = f"{current_chunk} {sentence}" if current_chunk else sentence

        if current_chunk.strip():
            chunks.append(self._page_chunk(current_chunk, doc_id, doc_name, chunk_index))

        logger.debug(f"Created {len(chunks)} page chunks for document {doc_id}")
        return chunks

    def chunk_table_data(
        self,
        rows: Iterable[Any],
        table_name: str,
        doc_id: str,
        doc_name: str
    ) -> List[DocumentChunk]:
        """
        Create one chunk per table row.

        Each row exposes a ``values`` mapping of column name to cell value,
        either as a dict key or an attribute. Rows without values are skipped
        but still consume their position index.

        Args:
            rows: Table rows in display order
            table_name: Table name, recorded as the chunk source_id
            doc_id: Source document identifier
            doc_name: Source document display name

        Returns:
            List of "table" chunks, chunk_index equal to the row position
        """
        chunks: List[DocumentChunk] = []

        for index, row in enumerate(rows or []):
            row_text = self._row_to_text(row, table_name)
            if not row_text.strip():
                continue

            chunks.append(DocumentChunk(
                id=f"{doc_id}-table-{table_name}-row-{index}",
                content=row_text,
                metadata=ChunkMetadata(
                    doc_id=doc_id,
                    doc_name=doc_name,
                    chunk_index=index,
                    source="table",
                    source_id=table_name
                )
            ))

        logger.debug(f"Created {len(chunks)} row chunks for table {table_name}")
        return chunks

    def chunk_section(
        self,
        content: str,
        doc_id: str,
        doc_name: str,
        section_id: str
    ) -> List[DocumentChunk]:
        """Wrap a whole section (e.g. a document description) as a single chunk."""
        text = (content or "").strip()
        if not text:
            return []

        return [DocumentChunk(
            id=f"{doc_id}-section-{section_id}",
            content=text,
            metadata=ChunkMetadata(
                doc_id=doc_id,
                doc_name=doc_name,
                chunk_index=0,
                source="section",
                source_id=section_id
            )
        )]

    def _split_into_sentences(self, text: str) -> List[str]:
        """Split on terminator runs and re-terminate every sentence with a period."""
        sentences = (part.strip() for part in SENTENCE_TERMINATORS.split(text))
        return [f"{sentence}." for sentence in sentences if sentence]

    def _page_chunk(self, text: str, doc_id: str, doc_name: str, chunk_index: int) -> DocumentChunk:
        return DocumentChunk(
            id=f"{doc_id}-chunk-{chunk_index}",
            content=text.strip(),
            metadata=ChunkMetadata(
                doc_id=doc_id,
                doc_name=doc_name,
                chunk_index=chunk_index,
                source="page"
            )
        )

    def _row_to_text(self, row: Any, table_name: str) -> str:
        """
        Render a row as "Table {name} - col: value, col: value".

        Returns an empty string when the row has no values.
        """
        values = self._row_values(row)
        if not values:
            return ""

        rendered = ", ".join(
            f"{column}: {self._value_to_string(value)}"
            for column, value in values.items()
        )
        return f"Table {table_name} - {rendered}"

    @staticmethod
    def _row_values(row: Any) -> Mapping[str, Any]:
        if isinstance(row, Mapping):
            values = row.get("values")
        else:
            values = getattr(row, "values", None)
        return values if isinstance(values, Mapping) else {}

    @staticmethod
    def _value_to_string(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (dict, list, tuple)):
            return json.dumps(value, separators=(",", ":"), default=str)
        return str(value)
