"""Feature-extraction backends behind the embedding model."""
import time
import logging
from abc import ABC, abstractmethod
from typing import Optional

import httpx
import numpy as np
from transformers import AutoModel, AutoTokenizer

from config import HUGGINGFACE_API_KEY, EMBEDDING_MODEL, EMBEDDING_BACKEND, HF_INFERENCE_URL

logger = logging.getLogger(__name__)

MAX_BACKOFF_SECONDS = 60.0


class EmbeddingBackend(ABC):
    """
    Runtime that turns text into raw model features.

    Implementations return either one pooled vector (1-D) or one vector per
    token (2-D); pooling and normalization happen in EmbeddingModel.
    """

    @abstractmethod
    def ensure_ready(self) -> None:
        """Load the model, raising on failure. Called once by EmbeddingModel."""

    @abstractmethod
    def embed(self, text: str) -> np.ndarray:
        """Run feature extraction for a single cleaned text."""


class HuggingFaceInferenceBackend(EmbeddingBackend):
    """Hugging Face Inference API feature-extraction endpoint."""

    def __init__(
        self,
        api_key: Optional[str] = HUGGINGFACE_API_KEY,
        model_name: str = EMBEDDING_MODEL,
        max_retries: int = 5,
        initial_delay: float = 5.0,
        timeout: float = 120.0
    ):
        """
        Initialize the inference API client.

        Args:
            api_key: Hugging Face API key
            model_name: Model identifier (default: sentence-transformers/all-MiniLM-L6-v2)
            max_retries: Maximum number of retry attempts for 503 errors
            initial_delay: Initial delay in seconds for exponential backoff
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model_name = model_name
        self.max_retries = max_retries
        self.initial_delay = initial_delay
        self.timeout = timeout
        self.api_url = HF_INFERENCE_URL.format(model=model_name)

    def ensure_ready(self) -> None:
        """
        Check credentials and wake the hosted model.

        HF free tier models "sleep" and take 15-20s to load on first query,
        so a warm-up request is sent here rather than on the first real text.

        Raises:
            ValueError: If no API key is configured
            RuntimeError: If the warm-up request fails after all retries
        """
        if not self.api_key:
            raise ValueError("HUGGINGFACE_API_KEY environment variable is required")

        start_time = time.time()
        self._request("warmup query")
        logger.info(f"Hosted model {self.model_name} ready in {time.time() - start_time:.1f}s")

    def embed(self, text: str) -> np.ndarray:
        return self._request(text)

    def _request(self, text: str) -> np.ndarray:
        """
        Call the HF API, retrying cold starts and transport errors with exponential backoff.

        401, 429 and other non-200 answers are not retried.

        Args:
            text: Text to embed

        Returns:
            Model output for the text as a float array

        Raises:
            RuntimeError: If the API rejects the request or all retries fail
        """
        payload = {
            "inputs": [text],
            "options": {
                "wait_for_model": True  # Wait for model to load if sleeping
            }
        }

        delay = self.initial_delay
        last_error = None

        for attempt in range(1, self.max_retries + 1):
            start_time = time.time()
            try:
                with httpx.Client(timeout=self.timeout) as client:
                    response = client.post(self.api_url, headers=self._headers(), json=payload)
            except httpx.TimeoutException:
                last_error = f"Request timeout after {self.timeout}s"
            except httpx.RequestError as e:
                last_error = f"Network error: {str(e)}"
            else:
                if response.status_code != 503:
                    features = self._parse_features(response)
                    logger.debug(f"Generated features in {time.time() - start_time:.2f}s (attempt {attempt})")
                    return features

                error_data = response.json() if response.text else {}
                last_error = f"Model still loading (estimated {error_data.get('estimated_time', '?')}s)"

            logger.warning(f"{last_error} on attempt {attempt}/{self.max_retries}")
            if attempt < self.max_retries:
                delay = self._backoff(delay)

        error_msg = f"Failed to generate embeddings after {self.max_retries} attempts. Last error: {last_error}"
        logger.error(error_msg)
        raise RuntimeError(error_msg)

    def _headers(self) -> dict:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json"
        }

    @staticmethod
    def _backoff(delay: float) -> float:
        """Sleep for ``delay`` and return the next, doubled delay."""
        time.sleep(delay)
        return min(delay * 2, MAX_BACKOFF_SECONDS)

    @staticmethod
    def _parse_features(response: httpx.Response) -> np.ndarray:
        if response.status_code == 429:
            logger.error("Rate limit exceeded for Hugging Face API")
            raise RuntimeError("Rate limit exceeded. Please try again later.")

        if response.status_code == 401:
            logger.error("Authentication failed for Hugging Face API")
            raise RuntimeError("Invalid API key")

        if response.status_code != 200:
            error_msg = f"API request failed with status {response.status_code}: {response.text}"
            logger.error(error_msg)
            raise RuntimeError(error_msg)

        features = response.json()
        if not features:
            raise RuntimeError("API returned no features")
        return np.asarray(features[0], dtype=np.float32)


class LocalTransformersBackend(EmbeddingBackend):
    """In-process model loaded with Hugging Face transformers."""

    def __init__(self, model_name: str = EMBEDDING_MODEL):
        self.model_name = model_name
        self.tokenizer = None
        self.model = None

    def ensure_ready(self) -> None:
        # First load downloads the weights into the HF cache
        logger.info(f"Loading local embedding model {self.model_name}...")
        self.tokenizer = AutoTokenizer.from_pretrained(self.model_name)
        self.model = AutoModel.from_pretrained(self.model_name)
        self.model.eval()

    def embed(self, text: str) -> np.ndarray:
        if self.model is None:
            raise RuntimeError("Local model is not loaded")

        # torch ships with the "local" extra
        import torch

        inputs = self.tokenizer(text, return_tensors="pt", truncation=True)
        with torch.no_grad():
            outputs = self.model(**inputs)
        # One sequence, no padding: every token position is real
        return outputs.last_hidden_state[0].cpu().numpy()


def create_backend(name: str = EMBEDDING_BACKEND, model_name: str = EMBEDDING_MODEL) -> EmbeddingBackend:
    """
    Build the backend selected by configuration.

    Args:
        name: "huggingface" or "local"
        model_name: Model identifier passed to the backend

    Raises:
        ValueError: If the backend name is unknown
    """
    if name == "huggingface":
        return HuggingFaceInferenceBackend(model_name=model_name)
    if name == "local":
        return LocalTransformersBackend(model_name=model_name)
    raise ValueError(f"Unknown embedding backend: {name}")
