"""
Application configuration management.

All settings are read from environment variables (a local .env file is loaded
first) into a single frozen PipelineSettings object. The object is built once
at startup and handed to every component, so batch sizes and delays live in
one place instead of being scattered across services.

Configuration categories:
- Gemini embedding credentials and model
- Qdrant connection and collection
- Batch sizes and delays for embedding, indexing and orchestration
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional
import os

from dotenv import load_dotenv

from catalog_indexer.exceptions import ConfigurationError

# Hard limit of texts per embed_content request in the Gemini API
GEMINI_MAX_BATCH_SIZE = 100


@dataclass(frozen=True)
class PipelineSettings:
    """
    Central, immutable configuration for the indexing pipeline.

    Attributes:
        gemini_api_key: API key for the Gemini embedding service.
        qdrant_url: Base URL of the Qdrant service.
        qdrant_api_key: Optional API key for Qdrant.
        collection_name: Target Qdrant collection.
        embedding_model: Gemini embedding model name.
        embedding_dimension: Vector size requested from Gemini and declared in Qdrant.
        embedding_batch_size: Texts per embedding request (sub-batch).
        embedding_max_retries: Attempts per embedding sub-batch.
        embedding_retry_delay: Base backoff in seconds, multiplied by the attempt number.
        embedding_rate_limit_delay: Extra wait in seconds on 429/quota errors, multiplied by the attempt number.
        embedding_batch_delay: Wait in seconds between embedding sub-batches.
        requests_per_minute: Request budget the batch delay is tuned for.
        index_batch_size: Points per Qdrant upsert request.
        index_batch_delay: Wait in seconds between Qdrant upsert requests.
        product_batch_size: Products per orchestration chunk.
        chunk_delay: Wait in seconds between chunks.
        products_file: Optional JSON dump used as the upstream product source.
    """

    gemini_api_key: str
    qdrant_url: str
    qdrant_api_key: Optional[str] = None
    collection_name: str = "supermarket_products"
    embedding_model: str = "gemini-embedding-001"
    embedding_dimension: int = 768
    embedding_batch_size: int = GEMINI_MAX_BATCH_SIZE
    embedding_max_retries: int = 3
    embedding_retry_delay: float = 2.0
    embedding_rate_limit_delay: float = 5.0
    embedding_batch_delay: float = 2.0
    requests_per_minute: int = 60
    index_batch_size: int = 100
    index_batch_delay: float = 0.5
    product_batch_size: int = 200
    chunk_delay: float = 2.0
    products_file: Optional[str] = None

    def __post_init__(self):
        if not self.gemini_api_key:
            raise ConfigurationError("GEMINI_API_KEY is required")
        if not self.qdrant_url:
            raise ConfigurationError("QDRANT_URL is required")
        if not self.collection_name:
            raise ConfigurationError("QDRANT_COLLECTION cannot be empty")

        for name in ("embedding_dimension", "embedding_batch_size", "embedding_max_retries",
                     "index_batch_size", "product_batch_size"):
            if getattr(self, name) < 1:
                raise ConfigurationError(f"{name} must be a positive integer", {name: getattr(self, name)})

        for name in ("embedding_retry_delay", "embedding_rate_limit_delay", "embedding_batch_delay",
                     "index_batch_delay", "chunk_delay"):
            if getattr(self, name) < 0:
                raise ConfigurationError(f"{name} cannot be negative", {name: getattr(self, name)})

        if self.embedding_batch_size > GEMINI_MAX_BATCH_SIZE:
            raise ConfigurationError(
                f"embedding_batch_size cannot exceed {GEMINI_MAX_BATCH_SIZE}",
                {"embedding_batch_size": self.embedding_batch_size},
            )

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "PipelineSettings":
        """Build settings from environment variables, loading .env when reading os.environ."""
        if environ is None:
            load_dotenv()
            environ = os.environ

        return cls(
            gemini_api_key=environ.get("GEMINI_API_KEY") or environ.get("GOOGLE_API_KEY") or "",
            qdrant_url=environ.get("QDRANT_URL", ""),
            qdrant_api_key=environ.get("QDRANT_API_KEY") or None,
            collection_name=environ.get("QDRANT_COLLECTION", "supermarket_products"),
            embedding_model=environ.get("EMBEDDING_MODEL", "gemini-embedding-001"),
            embedding_dimension=_int_env(environ, "EMBEDDING_DIMENSION", 768),
            embedding_batch_size=_int_env(environ, "EMBEDDING_BATCH_SIZE", GEMINI_MAX_BATCH_SIZE),
            embedding_max_retries=_int_env(environ, "EMBEDDING_MAX_RETRIES", 3),
            embedding_retry_delay=_float_env(environ, "EMBEDDING_RETRY_DELAY", 2.0),
            embedding_rate_limit_delay=_float_env(environ, "EMBEDDING_RATE_LIMIT_DELAY", 5.0),
            embedding_batch_delay=_float_env(environ, "EMBEDDING_BATCH_DELAY", 2.0),
            requests_per_minute=_int_env(environ, "EMBEDDING_REQUESTS_PER_MINUTE", 60),
            index_batch_size=_int_env(environ, "QDRANT_BATCH_SIZE", 100),
            index_batch_delay=_float_env(environ, "QDRANT_BATCH_DELAY", 0.5),
            product_batch_size=_int_env(environ, "PRODUCT_BATCH_SIZE", 200),
            chunk_delay=_float_env(environ, "CHUNK_DELAY", 2.0),
            products_file=environ.get("PRODUCTS_FILE") or None,
        )


def _int_env(environ: Mapping[str, str], key: str, default: int) -> int:
    value = environ.get(key)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer", {key: value})


def _float_env(environ: Mapping[str, str], key: str, default: float) -> float:
    value = environ.get(key)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number", {key: value})


@lru_cache(maxsize=1)
def get_settings() -> PipelineSettings:
    """Return the process-wide settings, validating them on first use."""
    return PipelineSettings.from_env()
