"""Shared fixtures for the test suite."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import numpy as np
import pytest

from services.embedding_backends import EmbeddingBackend
from services.embedding_model import EmbeddingModel


class KeywordBackend(EmbeddingBackend):
    """Deterministic backend: one dimension per vocabulary word, valued by occurrence count."""

    VOCABULARY = ["deploy", "release", "budget", "cat", "dog", "table"]

    def __init__(self, fail_on=None):
        self.fail_on = fail_on or set()
        self.ready_calls = 0
        self.embedded = []

    def ensure_ready(self):
        self.ready_calls += 1

    def embed(self, text):
        self.embedded.append(text)
        lowered = text.lower()
        if any(marker in lowered for marker in self.fail_on):
            raise RuntimeError(f"model crashed on: {text[:20]}")
        # Per-token features, two "tokens" per text so pooling is exercised
        counts = np.array([lowered.count(word) for word in self.VOCABULARY], dtype=float)
        return np.vstack([counts, counts])


@pytest.fixture
def keyword_backend():
    return KeywordBackend()


@pytest.fixture
def embedding_model(keyword_backend):
    return EmbeddingModel(backend=keyword_backend)
