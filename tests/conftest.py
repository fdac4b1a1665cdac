"""
Shared test fixtures for the catalog indexer test suite.

Provides: settings with small dimensions, fake Gemini clients, raw product
factories and a recording sleep so no test waits on real delays.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from catalog_indexer.config import PipelineSettings

DIMENSION = 8


def make_raw_product(index: int, **overrides):
    """Upstream record with the upstream column names"""
    product = {
        "Codigo": str(index),
        "Descripcion": f"ALMACEN - MARCA{index} - PRODUCTO {index} 500G",
        "Rubro_Descripcion": "ALMACEN",
        "CostoSDesc": 100.0,
        "PrecioFinal": 150.0,
        "Stock": 24,
        "Calibre_Descripcion": "500 GR",
        "UXBCompra": 12,
        "Linea": 1,
    }
    product.update(overrides)
    return product


def make_embedding_response(count: int, dimension: int = DIMENSION, value: float = 0.5):
    return SimpleNamespace(embeddings=[SimpleNamespace(values=[value] * dimension) for _ in range(count)])


def make_genai_client(side_effect=None, dimension: int = DIMENSION):
    """
    MagicMock standing in for google.genai.Client; embed_content answers with
    one vector per content unless a side_effect is given.
    """
    client = MagicMock()

    async def embed_content(model, contents, config):
        return make_embedding_response(len(contents), dimension)

    client.aio.models.embed_content = AsyncMock(side_effect=side_effect or embed_content)
    return client


@pytest.fixture
def settings():
    return PipelineSettings(
        gemini_api_key="test-key",
        qdrant_url="http://localhost:6333",
        collection_name="test_products",
        embedding_dimension=DIMENSION,
        embedding_batch_size=100,
        embedding_max_retries=3,
        embedding_retry_delay=2.0,
        embedding_rate_limit_delay=5.0,
        embedding_batch_delay=2.0,
        index_batch_size=100,
        index_batch_delay=0.5,
        product_batch_size=100,
        chunk_delay=3.0,
    )


@pytest.fixture
def sleep():
    """Recording replacement for asyncio.sleep"""
    return AsyncMock()


@pytest.fixture
def genai_client():
    return make_genai_client()


@pytest.fixture
def failing_genai_client():
    return make_genai_client(side_effect=RuntimeError("503 Service Unavailable"))


@pytest.fixture
def raw_products():
    return [make_raw_product(i) for i in range(1, 251)]


@pytest.fixture
def product_factory():
    return make_raw_product


@pytest.fixture
def genai_client_factory():
    return make_genai_client


@pytest.fixture
def embedding_response_factory():
    return make_embedding_response
