from typing import Dict, Any, List, Optional
from typing_extensions import TypedDict

from catalog_indexer.models.product_models import NormalizedProduct


class IndexingState(TypedDict, total=False):
    """
    State object for the product indexing pipeline
    Compatible with LangGraph's state handling
    """
    # Input
    raw_products: List[Dict[str, Any]]

    # Pipeline data
    products: List[NormalizedProduct]
    skipped_records: int
    chunk_size: int
    total_chunks: int
    chunk_index: int

    # Counters, owned by the orchestrator nodes
    processed_count: int
    degraded_chunks: int
    fallback_vectors: int
    failed_chunks: List[int]

    # Pipeline metadata
    pipeline_step: str
    cancelled: bool
    errors: List[str]
    start_time: float
    summary: Optional[Dict[str, Any]]
