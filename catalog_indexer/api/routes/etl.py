# API Routes for the Product Indexing Pipeline
from fastapi import APIRouter, Body, Depends, HTTPException
from typing import Optional
from datetime import datetime
import logging

from catalog_indexer.api.dependencies import get_embedding_service, get_etl_service, get_product_index
from catalog_indexer.database.qdrant_client import QdrantProductIndex
from catalog_indexer.exceptions import ProductSourceError
from catalog_indexer.models.response_models import EtlRunRequest, ProcessingSummary
from catalog_indexer.services.embedding_service import GeminiEmbeddingService
from catalog_indexer.services.etl_service import ProductEtlService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/run", response_model=ProcessingSummary)
async def run_product_indexing(
    request: Optional[EtlRunRequest] = Body(None),
    etl_service: ProductEtlService = Depends(get_etl_service),
):
    """
    Trigger product indexing

    Runs normalization, embedding and Qdrant upsert for the posted products,
    or for the configured product source when the body has no products.
    """
    products = request.products if request else None
    logger.info("Triggering product indexing via API")

    try:
        return await etl_service.run_product_etl(products)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProductSourceError as e:
        logger.error(f"Error reading product source: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Failed to fetch products: {str(e)}")


@router.get("/status")
async def get_pipeline_status(
    embedding_service: GeminiEmbeddingService = Depends(get_embedding_service),
    product_index: QdrantProductIndex = Depends(get_product_index),
):
    """
    Get current status and health of the indexing pipeline
    """
    embedding_healthy = await embedding_service.health_check()
    collection_info = await product_index.get_collection_info()

    return {
        "status": "healthy" if embedding_healthy and collection_info else "degraded",
        "embedding_healthy": embedding_healthy,
        "embedding_stats": embedding_service.get_stats(),
        "collection": collection_info,
        "timestamp": datetime.utcnow().isoformat(),
    }
