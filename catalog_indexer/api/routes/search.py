from fastapi import APIRouter, Depends, HTTPException
import logging

import numpy as np

from catalog_indexer.api.dependencies import get_embedding_service, get_product_index
from catalog_indexer.database.qdrant_client import QdrantProductIndex
from catalog_indexer.models.response_models import SearchRequest, SearchResponse, SearchResult
from catalog_indexer.services.embedding_service import GeminiEmbeddingService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/search", response_model=SearchResponse)
async def search_products(
    request: SearchRequest,
    embedding_service: GeminiEmbeddingService = Depends(get_embedding_service),
    product_index: QdrantProductIndex = Depends(get_product_index),
):
    """
    Semantic product search over the indexed catalog
    """
    query_embedding = await embedding_service.embed_query(request.query)

    # A zero vector has no direction, cosine search would be meaningless
    if not np.any(np.asarray(query_embedding, dtype=float)):
        logger.warning(f"Query embedding unavailable for: {request.query!r}")
        return SearchResponse(query=request.query, results=[], degraded=True)

    try:
        results = await product_index.search(
            query_embedding,
            limit=request.limit,
            score_threshold=request.score_threshold,
        )
    except Exception as e:
        logger.error(f"Error searching products: {str(e)}")
        raise HTTPException(status_code=500, detail=f"Search failed: {str(e)}")

    return SearchResponse(
        query=request.query,
        results=[SearchResult(**result) for result in results],
    )
