"""API tests with the service dependencies replaced by mocks."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from catalog_indexer.api.dependencies import get_embedding_service, get_etl_service, get_product_index
from catalog_indexer.api.main import create_app
from catalog_indexer.exceptions import ProductSourceError
from catalog_indexer.models.response_models import ProcessingSummary


@pytest.fixture
def etl_service():
    service = AsyncMock()
    service.run_product_etl.return_value = ProcessingSummary(
        processed=2, total=2, total_chunks=1, success_rate="100.0%"
    )
    return service


@pytest.fixture
def embedding_service():
    service = AsyncMock()
    service.embed_query.return_value = [0.5] * 8
    service.health_check.return_value = True
    service.get_stats = MagicMock(return_value={"model_name": "gemini-embedding-001", "dimension": 8})
    return service


@pytest.fixture
def product_index():
    index = AsyncMock()
    index.search.return_value = [
        {"id": 1, "score": 0.93, "product": {"codigo": "1", "marca": "ARCOR"}},
    ]
    index.get_collection_info.return_value = {"name": "test_products", "points_count": 1}
    return index


@pytest.fixture
def client(etl_service, embedding_service, product_index):
    app = create_app()
    app.dependency_overrides[get_etl_service] = lambda: etl_service
    app.dependency_overrides[get_embedding_service] = lambda: embedding_service
    app.dependency_overrides[get_product_index] = lambda: product_index
    return TestClient(app)


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


def test_run_with_posted_products(client, etl_service, product_factory):
    records = [product_factory(1), product_factory(2)]

    response = client.post("/etl/run", json={"products": records})

    assert response.status_code == 200
    body = response.json()
    assert body["processed"] == 2
    assert body["success_rate"] == "100.0%"
    etl_service.run_product_etl.assert_awaited_once_with(records)


def test_run_without_body_uses_source(client, etl_service):
    response = client.post("/etl/run")

    assert response.status_code == 200
    etl_service.run_product_etl.assert_awaited_once_with(None)


def test_run_without_source_is_bad_request(client, etl_service):
    etl_service.run_product_etl.side_effect = ValueError("No products provided and no product source configured")

    response = client.post("/etl/run")

    assert response.status_code == 400


def test_run_source_failure_is_server_error(client, etl_service):
    etl_service.run_product_etl.side_effect = ProductSourceError("Products file not found: x.json")

    response = client.post("/etl/run")

    assert response.status_code == 500
    assert "x.json" in response.json()["detail"]


def test_status(client):
    response = client.get("/etl/status")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["embedding_healthy"] is True
    assert body["collection"]["points_count"] == 1


def test_status_degraded_when_embeddings_unhealthy(client, embedding_service):
    embedding_service.health_check.return_value = False

    assert client.get("/etl/status").json()["status"] == "degraded"


def test_search(client, product_index):
    response = client.post("/search", json={"query": "caramelos", "limit": 5})

    assert response.status_code == 200
    body = response.json()
    assert body["degraded"] is False
    assert body["results"][0]["product"]["marca"] == "ARCOR"
    assert product_index.search.await_args.kwargs["limit"] == 5


def test_search_with_unavailable_embedding_is_degraded(client, embedding_service, product_index):
    embedding_service.embed_query.return_value = [0.0] * 8

    response = client.post("/search", json={"query": "caramelos"})

    assert response.status_code == 200
    assert response.json() == {"query": "caramelos", "results": [], "degraded": True}
    product_index.search.assert_not_awaited()


def test_search_index_failure(client, product_index):
    product_index.search.side_effect = RuntimeError("qdrant down")

    response = client.post("/search", json={"query": "caramelos"})

    assert response.status_code == 500


def test_search_rejects_empty_query(client):
    assert client.post("/search", json={"query": ""}).status_code == 422
