"""Embedding model: text cleaning, pooling and per-chunk embedding."""
import re
import time
import logging
import threading
from dataclasses import replace
from enum import Enum
from typing import List, Optional

import numpy as np

from config import MAX_EMBEDDING_TEXT_LENGTH
from models.chunk import DocumentChunk
from services.embedding_backends import EmbeddingBackend, create_backend
from services.exceptions import EmbeddingError, EmptyInputError, InitializationError

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
# ASCII word characters, any whitespace and common punctuation survive cleaning
_DISALLOWED_CHARS = re.compile(r"[^A-Za-z0-9_\s\-.,!?;:()\"']")


class EmbedderState(Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"
    FAILED = "failed"


def clean_text(text: str, max_length: int = MAX_EMBEDDING_TEXT_LENGTH) -> str:
    """
    Normalize text before encoding.

    Collapses whitespace runs, strips characters outside the allow-list,
    trims and truncates to ``max_length`` characters.
    """
    text = _WHITESPACE.sub(" ", text or "")
    text = _DISALLOWED_CHARS.sub("", text)
    return text.strip()[:max_length]


def mean_pool(features: np.ndarray) -> np.ndarray:
    """Average per-token vectors into one vector; 1-D input is already pooled."""
    if features.ndim == 1:
        return features
    if features.ndim == 2:
        return features.mean(axis=0)
    raise ValueError(f"Unexpected feature shape {features.shape}")


def l2_normalize(vector: np.ndarray) -> np.ndarray:
    norm = np.linalg.norm(vector)
    if norm == 0:
        return vector
    return vector / norm


class EmbeddingModel:
    """
    Fixed-length text embeddings from a lazily loaded feature-extraction model.

    The backend is loaded once on first use (or by an explicit ``initialize()``)
    and reused for every call. All embeddings from one instance share the
    model's output dimensionality.
    """

    def __init__(
        self,
        backend: Optional[EmbeddingBackend] = None,
        max_text_length: int = MAX_EMBEDDING_TEXT_LENGTH
    ):
        """
        Initialize the embedding model wrapper.

        Args:
            backend: Feature-extraction runtime (defaults to the configured backend)
            max_text_length: Characters kept after cleaning
        """
        self.backend = backend if backend is not None else create_backend()
        self.max_text_length = max_text_length
        self.state = EmbedderState.UNINITIALIZED
        self.dimension: Optional[int] = None
        self._init_lock = threading.Lock()

        logger.info(f"Created EmbeddingModel with backend: {type(self.backend).__name__}")

    @property
    def is_ready(self) -> bool:
        return self.state is EmbedderState.READY

    def initialize(self) -> None:
        """
        Load the model. Safe to call repeatedly; only the first success loads.

        A failed load leaves the model in the FAILED state and the next call
        retries.

        Raises:
            InitializationError: If the backend fails to load
        """
        if self.state is EmbedderState.READY:
            return

        with self._init_lock:
            if self.state is EmbedderState.READY:
                return

            try:
                self.backend.ensure_ready()
            except Exception as e:
                self.state = EmbedderState.FAILED
                logger.error(f"Embedding model failed to initialize: {str(e)}")
                raise InitializationError(f"Failed to initialize embedding model: {str(e)}") from e

            self.state = EmbedderState.READY
            logger.info("Embedding model initialized")

    def generate_embedding(self, text: str) -> List[float]:
        """
        Generate a mean-pooled, L2-normalized embedding for a text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as list of floats

        Raises:
            InitializationError: If the model could not be loaded
            EmptyInputError: If text is empty after cleaning
            EmbeddingError: If the model fails on this text
        """
        self.initialize()

        cleaned = clean_text(text, self.max_text_length)
        if not cleaned:
            raise EmptyInputError("Empty text provided for embedding")

        try:
            features = np.asarray(self.backend.embed(cleaned), dtype=np.float64)
            vector = l2_normalize(mean_pool(features))
        except Exception as e:
            raise EmbeddingError(f"Failed to generate embedding: {str(e)}") from e

        if self.dimension is None:
            self.dimension = int(vector.shape[0])
        elif vector.shape[0] != self.dimension:
            raise EmbeddingError(
                f"Model returned {vector.shape[0]} dimensions, expected {self.dimension}"
            )

        return vector.tolist()

    def embed_document_chunks(self, chunks: List[DocumentChunk]) -> List[DocumentChunk]:
        """
        Attach embeddings to chunks, one at a time in input order.

        Partial-failure tolerant: a chunk that cannot be embedded is logged
        and returned unchanged, so the output always has one entry per input
        chunk in the same order.

        Args:
            chunks: Chunks to embed

        Returns:
            Chunks with ``embedding`` attached where embedding succeeded
        """
        embedded_chunks: List[DocumentChunk] = []
        failures = 0

        for chunk in chunks:
            try:
                embedding = self.generate_embedding(chunk.content)
                embedded_chunks.append(replace(chunk, embedding=embedding))
            except Exception as e:
                failures += 1
                logger.warning(f"Failed to embed chunk {chunk.id}: {str(e)}")
                embedded_chunks.append(chunk)

        logger.info(f"Embedded {len(chunks) - failures}/{len(chunks)} chunks")
        return embedded_chunks

    def warmup(self) -> bool:
        """
        Load the model and embed a dummy text to avoid cold start delays.

        Returns:
            True if warmup successful, False otherwise
        """
        try:
            logger.info("Warming up embedding model...")
            start_time = time.time()

            self.generate_embedding("warmup query")

            elapsed = time.time() - start_time
            logger.info(f"Model warmup completed in {elapsed:.1f}s")
            return True

        except Exception as e:
            logger.error(f"Model warmup failed: {str(e)}")
            return False
