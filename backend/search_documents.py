"""
Document Search Script.

This script:
1. Loads text (.txt/.md) and table (.csv) files
2. Chunks them into page and table-row chunks
3. Generates embeddings with the configured backend
4. Ranks chunks against a query by cosine similarity

Usage:
    python search_documents.py --query "deployment checklist" notes.md releases.csv
"""
import csv
import sys
import argparse
import logging
from pathlib import Path
from typing import List

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from config import LOG_LEVEL, MAX_CHUNK_SIZE, RELEVANCE_THRESHOLD, SEARCH_TOP_K
from logger import setup_logging
from models.chunk import DocumentChunk
from services.embedding_model import EmbeddingModel
from services.retrieval_engine import RetrievalEngine

logger = logging.getLogger(__name__)

TEXT_SUFFIXES = {".txt", ".md"}


def load_file_chunks(engine: RetrievalEngine, path: Path, max_chunk_size: int) -> List[DocumentChunk]:
    """
    Ingest one file.

    Text files are chunked as pages; CSV files as table rows named after the
    file stem.

    Raises:
        ValueError: If the file type is not supported
    """
    doc_id = path.stem
    if path.suffix.lower() in TEXT_SUFFIXES:
        content = path.read_text(encoding="utf-8")
        result = engine.ingest_document(content, doc_id, path.name, max_chunk_size=max_chunk_size)
    elif path.suffix.lower() == ".csv":
        with path.open(newline="", encoding="utf-8") as handle:
            rows = [{"values": row} for row in csv.DictReader(handle)]
        result = engine.ingest_document("", doc_id, path.name, tables={path.stem: rows})
    else:
        raise ValueError(f"Unsupported file type: {path.suffix}")

    logger.info(f"  ✓ {path.name}: {result.total_chunks} chunks, {result.embeddings_generated} embedded")
    return result.chunks


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Semantic search over local text and CSV files")
    parser.add_argument("files", nargs="+", type=Path, help="Input .txt, .md or .csv files")
    parser.add_argument("-q", "--query", required=True, help="Search query")
    parser.add_argument("-k", "--top-k", type=int, default=SEARCH_TOP_K, help="Maximum results")
    parser.add_argument("-t", "--threshold", type=float, default=RELEVANCE_THRESHOLD,
                        help="Minimum cosine similarity")
    parser.add_argument("--max-chunk-size", type=int, default=MAX_CHUNK_SIZE,
                        help="Page chunk size limit in characters")
    parser.add_argument("--log-level", default=LOG_LEVEL)
    parser.add_argument("--json-logs", action="store_true", help="Emit structured JSON logs")
    return parser


def main(argv: List[str] = None) -> int:
    """Main search process."""
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level, json_output=args.json_logs)

    try:
        embedding_model = EmbeddingModel()
        engine = RetrievalEngine(embedding_model)

        logger.info("Initializing embedding model...")
        embedding_model.initialize()

        all_chunks: List[DocumentChunk] = []
        for path in args.files:
            all_chunks.extend(load_file_chunks(engine, path, args.max_chunk_size))

        response = engine.search(args.query, all_chunks, top_k=args.top_k, threshold=args.threshold)

        print(f"Query: {response.query}")
        print(f"Confidence: {response.confidence} ({len(response.results)} results, "
              f"{response.search_duration_seconds:.2f}s)")
        for rank, result in enumerate(response.results, start=1):
            metadata = result.chunk.metadata
            print(f"{rank:>2}. [{result.similarity:.3f}] {metadata.doc_name} "
                  f"({metadata.source} #{metadata.chunk_index})")
            print(f"    {result.chunk.content[:200]}")
        return 0

    except KeyboardInterrupt:
        logger.warning("Search interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Search failed: {str(e)}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
