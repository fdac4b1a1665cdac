# Data classes for embedding results
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, model_validator


class EmbeddingMode(str, Enum):
    """Task type sent to Gemini: documents at indexing time, queries at search time"""
    DOCUMENT = "document"
    QUERY = "query"


class EmbeddingStatus(str, Enum):
    OK = "ok"
    DEGRADED = "degraded"
    ERROR = "error"


class EmbeddingBatchResult(BaseModel):
    """
    Outcome of one embedding sub-batch after retries.
    Either success with vectors, or failure with an error and no vectors.
    """
    success: bool
    embeddings: List[List[float]] = []
    error: Optional[str] = None
    attempts: int = 1

    @model_validator(mode="after")
    def _check_consistency(self):
        if self.success and self.error:
            raise ValueError("successful batch cannot carry an error")
        if not self.success and self.embeddings:
            raise ValueError("failed batch cannot carry embeddings")
        return self


class EmbeddingResult(BaseModel):
    """
    Tagged result of a full embed call. vectors always holds one entry per
    input text; fallback_count of them are zero vectors.
    """
    status: EmbeddingStatus
    vectors: List[List[float]]
    fallback_count: int = 0
    failed_batches: List[int] = []
    reason: Optional[str] = None

    @property
    def is_degraded(self) -> bool:
        return self.status != EmbeddingStatus.OK
