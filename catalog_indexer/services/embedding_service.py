from typing import Any, Awaitable, Callable, Dict, List, Optional
import asyncio
import logging
import time

import numpy as np
from google import genai
from google.genai import types
from langsmith import traceable

from catalog_indexer.config import PipelineSettings
from catalog_indexer.exceptions import EmbeddingError
from catalog_indexer.models.embedding_models import (
    EmbeddingBatchResult,
    EmbeddingMode,
    EmbeddingResult,
    EmbeddingStatus,
)

logger = logging.getLogger(__name__)

HEALTH_CHECK_TEXT = "health check"

_TASK_TYPES = {
    EmbeddingMode.DOCUMENT: "RETRIEVAL_DOCUMENT",
    EmbeddingMode.QUERY: "RETRIEVAL_QUERY",
}

_RATE_LIMIT_SIGNATURES = ("429", "quota", "resource_exhausted")


def is_rate_limit_error(error: BaseException) -> bool:
    message = str(error).lower()
    return any(signature in message for signature in _RATE_LIMIT_SIGNATURES)


class GeminiEmbeddingService:
    """
    Embedding client for the Gemini embedding API.

    Documents are sent in sub-batches of at most embedding_batch_size texts,
    each retried with linear backoff and an extra wait on rate-limit errors.
    A sub-batch that exhausts its retries gets zero vectors, so the output
    always has one vector per input text. Queries are embedded in a single
    call without retries.
    """

    def __init__(self, settings: PipelineSettings,
                 client: Optional[genai.Client] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.settings = settings
        self.client = client or genai.Client(api_key=settings.gemini_api_key)
        self._sleep = sleep
        logger.info(
            f"Gemini embedding service initialized - model: {settings.embedding_model}, "
            f"dimension: {settings.embedding_dimension}"
        )

    async def embed(self, texts: List[str], mode: EmbeddingMode = EmbeddingMode.DOCUMENT) -> List[List[float]]:
        """Embed texts, returning exactly len(texts) vectors"""
        if mode == EmbeddingMode.QUERY:
            return await self._embed_queries(texts)
        result = await self.embed_documents(texts)
        return result.vectors

    @traceable(name="embed_documents")
    async def embed_documents(self, texts: List[str]) -> EmbeddingResult:
        """
        Embed documents for indexing, tagging the result as ok, degraded or error
        depending on how many sub-batches fell back to zero vectors.
        """
        if not texts:
            return EmbeddingResult(status=EmbeddingStatus.OK, vectors=[])

        batch_size = self.settings.embedding_batch_size
        total_batches = (len(texts) + batch_size - 1) // batch_size
        logger.info(f"Generating embeddings for {len(texts)} texts in {total_batches} batches")

        start_time = time.perf_counter()
        vectors: List[List[float]] = []
        failed_batches: List[int] = []
        fallback_count = 0
        last_error = None

        for batch_index in range(total_batches):
            batch = texts[batch_index * batch_size:(batch_index + 1) * batch_size]
            batch_num = batch_index + 1

            batch_result = await self._process_batch_with_retry(batch, batch_num)

            if batch_result.success:
                vectors.extend(batch_result.embeddings)
                logger.info(f"Batch {batch_num}/{total_batches} completed: {len(batch_result.embeddings)} embeddings")
            else:
                logger.warning(
                    f"Batch {batch_num}/{total_batches} failed permanently, using zero-vector fallback. "
                    f"Error: {batch_result.error}"
                )
                vectors.extend(self.create_zero_embeddings(len(batch)))
                failed_batches.append(batch_num)
                fallback_count += len(batch)
                last_error = batch_result.error

            # Respect the provider's requests-per-minute budget
            if batch_num < total_batches:
                await self._sleep(self.settings.embedding_batch_delay)

        processing_time = time.perf_counter() - start_time
        logger.info(
            f"Embeddings completed: {len(vectors)} in {processing_time:.2f}s "
            f"({fallback_count} fallback vectors)"
        )

        if fallback_count == 0:
            status = EmbeddingStatus.OK
        elif fallback_count == len(texts):
            status = EmbeddingStatus.ERROR
        else:
            status = EmbeddingStatus.DEGRADED

        return EmbeddingResult(
            status=status,
            vectors=vectors,
            fallback_count=fallback_count,
            failed_batches=failed_batches,
            reason=last_error,
        )

    async def _process_batch_with_retry(self, batch: List[str], batch_num: int) -> EmbeddingBatchResult:
        max_retries = self.settings.embedding_max_retries
        last_error: Optional[BaseException] = None

        for attempt in range(1, max_retries + 1):
            try:
                if attempt > 1:
                    backoff_delay = self.settings.embedding_retry_delay * attempt
                    logger.info(f"Retry {attempt}/{max_retries} for batch {batch_num} after {backoff_delay:.1f}s")
                    await self._sleep(backoff_delay)

                embeddings = await self._request_embeddings(batch, EmbeddingMode.DOCUMENT)
                return EmbeddingBatchResult(success=True, embeddings=embeddings, attempts=attempt)

            except Exception as e:
                last_error = e
                logger.warning(f"Attempt {attempt} for batch {batch_num} failed: {str(e)}")

                if is_rate_limit_error(e) and attempt < max_retries:
                    rate_limit_delay = self.settings.embedding_rate_limit_delay * attempt
                    logger.warning(f"Rate limit detected, waiting {rate_limit_delay:.1f}s")
                    await self._sleep(rate_limit_delay)

        return EmbeddingBatchResult(
            success=False,
            error=str(last_error) if last_error else "All retries failed without a specific error",
            attempts=max_retries,
        )

    async def _request_embeddings(self, batch: List[str], mode: EmbeddingMode) -> List[List[float]]:
        response = await self.client.aio.models.embed_content(
            model=self.settings.embedding_model,
            contents=batch,
            config=types.EmbedContentConfig(
                task_type=_TASK_TYPES[mode],
                output_dimensionality=self.settings.embedding_dimension,
            ),
        )

        embeddings = response.embeddings or []
        if len(embeddings) != len(batch):
            raise EmbeddingError(
                f"Incomplete API response: received {len(embeddings)} of {len(batch)} embeddings"
            )

        vectors = []
        for embedding in embeddings:
            values = list(embedding.values or [])
            if len(values) != self.settings.embedding_dimension:
                raise EmbeddingError(
                    f"Unexpected embedding dimension {len(values)}, expected {self.settings.embedding_dimension}"
                )
            vectors.append(values)
        return vectors

    async def _embed_queries(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        try:
            return await self._request_embeddings(texts, EmbeddingMode.QUERY)
        except Exception as e:
            logger.error(f"Error generating query embedding: {str(e)}")
            return self.create_zero_embeddings(len(texts))

    @traceable(name="embed_query")
    async def embed_query(self, text: str) -> List[float]:
        """Single low-latency embedding for search; zero vector on any error"""
        vectors = await self._embed_queries([text])
        return vectors[0]

    def create_zero_embeddings(self, count: int) -> List[List[float]]:
        return [[0.0] * self.settings.embedding_dimension for _ in range(count)]

    async def health_check(self) -> bool:
        """True when the probe embedding has the right size and is not the zero fallback"""
        try:
            embedding = await self.embed_query(HEALTH_CHECK_TEXT)
            return (
                len(embedding) == self.settings.embedding_dimension
                and bool(np.any(np.asarray(embedding, dtype=float)))
            )
        except Exception as e:
            logger.error(f"Embedding health check failed: {str(e)}")
            return False

    def get_stats(self) -> Dict[str, Any]:
        return {
            "model_name": self.settings.embedding_model,
            "dimension": self.settings.embedding_dimension,
            "max_batch_size": self.settings.embedding_batch_size,
            "requests_per_minute": self.settings.requests_per_minute,
            "max_retries": self.settings.embedding_max_retries,
        }
