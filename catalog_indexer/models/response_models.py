# Pydantic models for API requests and responses
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class ProcessingSummary(BaseModel):
    """Aggregate report of one indexing run"""
    success: bool = True
    status: str = "completed"
    processed: int = 0
    total: int = 0
    total_chunks: int = 0
    failed_chunks: List[int] = []
    degraded_chunks: int = 0
    fallback_vectors: int = 0
    skipped_records: int = 0
    success_rate: str = "0.0%"
    processing_time_seconds: float = 0.0
    throughput_per_second: float = 0.0
    message: Optional[str] = None
    errors: List[str] = []


class EtlRunRequest(BaseModel):
    """Raw products to index; when omitted the configured product source is used"""
    products: Optional[List[Dict[str, Any]]] = None


class SearchRequest(BaseModel):
    query: str = Field(min_length=1)
    limit: int = Field(default=10, ge=1, le=100)
    score_threshold: Optional[float] = None


class SearchResult(BaseModel):
    id: int
    score: float
    product: Dict[str, Any]


class SearchResponse(BaseModel):
    query: str
    results: List[SearchResult]
    degraded: bool = False
