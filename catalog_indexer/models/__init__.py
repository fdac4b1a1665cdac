# Product models
from .product_models import RawProduct, NormalizedProduct

# Embedding models
from .embedding_models import EmbeddingMode, EmbeddingStatus, EmbeddingBatchResult, EmbeddingResult

# Pipeline models
from .pipeline_models import IndexingState

# Request/Response models
from .response_models import *

__all__ = [
    "RawProduct",
    "NormalizedProduct",
    "EmbeddingMode",
    "EmbeddingStatus",
    "EmbeddingBatchResult",
    "EmbeddingResult",
    "IndexingState",
    "ProcessingSummary",
    "EtlRunRequest",
    "SearchRequest",
    "SearchResult",
    "SearchResponse",
]
