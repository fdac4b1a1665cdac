from typing import Any, Dict, List, Optional
import asyncio
import logging
import time

from catalog_indexer.database.product_source import ProductSource
from catalog_indexer.models.response_models import ProcessingSummary
from catalog_indexer.pipelines.indexing_orchestrator import ProductIndexingOrchestrator

logger = logging.getLogger(__name__)


class ProductEtlService:
    """
    Entry point of the product ETL: fetch raw products from the upstream
    source and hand them to the indexing orchestrator
    """

    def __init__(self, orchestrator: ProductIndexingOrchestrator, source: Optional[ProductSource] = None):
        self.orchestrator = orchestrator
        self.source = source

    async def run_product_etl(self, products: Optional[List[Dict[str, Any]]] = None,
                              cancel_event: Optional[asyncio.Event] = None) -> ProcessingSummary:
        """
        Run the ETL for the given products, or for the configured source when
        none are given. An empty catalog is a successful run with no work.
        """
        logger.info("Starting product ETL process")

        if products is None:
            if self.source is None:
                raise ValueError("No products provided and no product source configured")

            logger.info("Fetching products from upstream source...")
            fetch_start = time.perf_counter()
            products = await self.source.fetch_products()
            logger.info(f"Fetched {len(products or [])} products in {time.perf_counter() - fetch_start:.2f}s")

        if not products:
            logger.warning("No products received. ETL process finished.")
            return ProcessingSummary(message="No products to process")

        logger.info(f"Starting batch processing for {len(products)} products...")
        full_start = time.perf_counter()
        summary = await self.orchestrator.run(products, cancel_event=cancel_event)
        logger.info(f"Full process completed in {time.perf_counter() - full_start:.2f}s")
        return summary
