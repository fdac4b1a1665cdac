"""
Service wiring for the API.

Builds every component once from the process-wide settings and caches it,
so all requests share one Gemini client and one Qdrant client.
"""

from functools import lru_cache

from catalog_indexer.config import get_settings
from catalog_indexer.database.product_source import JsonFileProductSource
from catalog_indexer.database.qdrant_client import QdrantProductIndex
from catalog_indexer.pipelines.indexing_orchestrator import ProductIndexingOrchestrator
from catalog_indexer.services.embedding_service import GeminiEmbeddingService
from catalog_indexer.services.etl_service import ProductEtlService
from catalog_indexer.services.normalizer import data_normalizer


@lru_cache(maxsize=1)
def get_embedding_service() -> GeminiEmbeddingService:
    return GeminiEmbeddingService(get_settings())


@lru_cache(maxsize=1)
def get_product_index() -> QdrantProductIndex:
    return QdrantProductIndex(get_settings())


@lru_cache(maxsize=1)
def get_orchestrator() -> ProductIndexingOrchestrator:
    return ProductIndexingOrchestrator(
        settings=get_settings(),
        normalizer=data_normalizer,
        embedding_service=get_embedding_service(),
        product_index=get_product_index(),
    )


@lru_cache(maxsize=1)
def get_etl_service() -> ProductEtlService:
    settings = get_settings()
    source = JsonFileProductSource(settings.products_file) if settings.products_file else None
    return ProductEtlService(get_orchestrator(), source)


def clear_service_cache():
    for factory in (get_etl_service, get_orchestrator, get_product_index, get_embedding_service, get_settings):
        factory.cache_clear()
