from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Union
import asyncio
import logging

from qdrant_client import AsyncQdrantClient
from qdrant_client.http import models

from catalog_indexer.config import PipelineSettings
from catalog_indexer.exceptions import LengthMismatchError
from catalog_indexer.models.product_models import NormalizedProduct

logger = logging.getLogger(__name__)

# Payload fields indexed for filtering
PAYLOAD_INDEXES = {
    "marca": models.PayloadSchemaType.KEYWORD,
    "peso": models.PayloadSchemaType.KEYWORD,
    "rubro_descripcion": models.PayloadSchemaType.KEYWORD,
    "codigo": models.PayloadSchemaType.KEYWORD,
}


def normalize_point_id(value: Union[int, str]) -> int:
    """
    Qdrant point id for a product code.
    Non-negative integers (or digit strings) are used as-is; anything else is
    hashed with a 32-bit string hash (h = h * 31 + code) and made non-negative.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return abs(value)

    text = str(value)
    stripped = text.strip()
    if stripped.isascii() and stripped.isdigit():
        return int(stripped)

    hash_value = 0
    for char in text:
        hash_value = (hash_value * 31 + ord(char)) & 0xFFFFFFFF
    if hash_value >= 0x80000000:
        hash_value -= 0x100000000
    return abs(hash_value)


class QdrantProductIndex:
    """
    Client for the product collection in Qdrant
    Handles collection setup, batched upserts and similarity search
    """

    def __init__(self, settings: PipelineSettings,
                 client: Optional[AsyncQdrantClient] = None,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.settings = settings
        self.collection_name = settings.collection_name
        self.vector_size = settings.embedding_dimension
        self.client = client or AsyncQdrantClient(url=settings.qdrant_url, api_key=settings.qdrant_api_key)
        self._sleep = sleep
        self._collection_ready = False
        logger.info(f"Qdrant client initialized for: {settings.qdrant_url} (collection: {self.collection_name})")

    async def ensure_collection(self) -> bool:
        """
        Create the collection and its payload indexes if missing.
        Returns True when the collection was created by this call.
        """
        if self._collection_ready:
            return False

        try:
            exists = await self.client.collection_exists(self.collection_name)

            if exists:
                logger.info(f"Collection already exists: {self.collection_name}")
                self._collection_ready = True
                return False

            logger.info(f"Creating collection: {self.collection_name}")
            await self.client.create_collection(
                collection_name=self.collection_name,
                vectors_config=models.VectorParams(
                    size=self.vector_size,
                    distance=models.Distance.COSINE,
                ),
            )
            await self._create_payload_indexes()
            self._collection_ready = True
            logger.info(f"Collection created with dimension {self.vector_size}")
            return True

        except Exception as e:
            logger.error(f"Error ensuring collection {self.collection_name}: {str(e)}")
            raise

    async def _create_payload_indexes(self):
        for field_name, field_schema in PAYLOAD_INDEXES.items():
            try:
                await self.client.create_payload_index(
                    collection_name=self.collection_name,
                    field_name=field_name,
                    field_schema=field_schema,
                )
            except Exception as e:
                logger.warning(f"Error creating payload index on {field_name}: {str(e)}")
        logger.info(f"Payload indexes created: {list(PAYLOAD_INDEXES)}")

    async def upsert_products(self, products: Sequence[NormalizedProduct], embeddings: Sequence[List[float]]) -> int:
        """
        Upsert products with their vectors in batches of index_batch_size,
        waiting for each batch to be acknowledged before sending the next.
        """
        if len(products) != len(embeddings):
            raise LengthMismatchError(
                "Number of products and embeddings does not match",
                expected=len(products),
                actual=len(embeddings),
            )

        logger.info(f"Upserting {len(products)} products with embeddings...")

        points = [
            models.PointStruct(
                id=normalize_point_id(product.codigo),
                vector=list(embedding),
                payload=product.model_dump(),
            )
            for product, embedding in zip(products, embeddings)
        ]

        batch_size = self.settings.index_batch_size
        for start in range(0, len(points), batch_size):
            batch = points[start:start + batch_size]

            await self.client.upsert(
                collection_name=self.collection_name,
                points=batch,
                wait=True,
            )
            logger.info(f"Batch {start // batch_size + 1} upserted: {len(batch)} points")

            if start + batch_size < len(points):
                await self._sleep(self.settings.index_batch_delay)

        logger.info(f"{len(points)} points upserted into Qdrant")
        return len(points)

    async def search(self, query_embedding: List[float], limit: int = 10,
                     score_threshold: Optional[float] = None) -> List[Dict[str, Any]]:
        """
        Vector similarity search over the product collection
        """
        response = await self.client.query_points(
            collection_name=self.collection_name,
            query=query_embedding,
            limit=limit,
            score_threshold=score_threshold,
            with_payload=True,
        )

        results = [
            {
                "id": point.id,
                "score": float(point.score),
                "product": point.payload or {},
            }
            for point in response.points
        ]
        logger.info(f"Found {len(results)} similar products in Qdrant")
        return results

    async def get_collection_info(self) -> Dict[str, Any]:
        """
        Get information about the product collection
        """
        try:
            collection_info = await self.client.get_collection(self.collection_name)
            return {
                "name": self.collection_name,
                "points_count": collection_info.points_count,
                "indexed_vectors_count": collection_info.indexed_vectors_count,
                "status": str(collection_info.status),
            }
        except Exception as e:
            logger.error(f"Error getting collection info: {str(e)}")
            return {}

    async def close(self):
        await self.client.close()
