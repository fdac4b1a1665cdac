from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional
import asyncio

from langchain_core.runnables import RunnableConfig

from catalog_indexer.config import PipelineSettings
from catalog_indexer.database.qdrant_client import QdrantProductIndex
from catalog_indexer.services.embedding_service import GeminiEmbeddingService
from catalog_indexer.services.normalizer import DataNormalizer


@dataclass
class IndexingContext:
    """
    Collaborators for one indexing run, passed to the graph nodes through
    config["configurable"]["context"]
    """
    settings: PipelineSettings
    normalizer: DataNormalizer
    embedding_service: GeminiEmbeddingService
    product_index: QdrantProductIndex
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    cancel_event: Optional[asyncio.Event] = field(default=None)

    def is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()


def get_context(config: RunnableConfig) -> IndexingContext:
    return config["configurable"]["context"]
