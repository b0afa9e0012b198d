"""Configuration management for the document search pipeline."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# API Keys
HUGGINGFACE_API_KEY = os.getenv("HUGGINGFACE_API_KEY")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Model Configuration
# "huggingface" calls the hosted inference API, "local" runs the model with transformers
EMBEDDING_BACKEND = os.getenv("EMBEDDING_BACKEND", "huggingface")
EMBEDDING_MODEL = os.getenv("EMBEDDING_MODEL", "sentence-transformers/all-MiniLM-L6-v2")
# Hugging Face router route for the hf-inference provider; the legacy
# api-inference.huggingface.co host is deprecated. Override for a self-hosted
# Text Embeddings Inference server or a dedicated endpoint ("{model}" is substituted).
HF_INFERENCE_URL = os.getenv(
    "HF_INFERENCE_URL",
    "https://router.huggingface.co/hf-inference/models/{model}/pipeline/feature-extraction"
)
MAX_EMBEDDING_TEXT_LENGTH = 8192  # characters

# Chunking Configuration
MAX_CHUNK_SIZE = 1000  # characters

# Retrieval Configuration
DEFAULT_TOP_K = 5
SEARCH_TOP_K = 10
RELEVANCE_THRESHOLD = 0.3
SOURCE_PREVIEW_LENGTH = 200

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
