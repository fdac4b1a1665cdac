from typing import TYPE_CHECKING
import logging
import math

from langchain_core.runnables import RunnableConfig

from catalog_indexer.pipelines.product_indexing.context import get_context

if TYPE_CHECKING:
    from catalog_indexer.models.pipeline_models import IndexingState

logger = logging.getLogger(__name__)


def normalize_products_node(state: 'IndexingState', config: RunnableConfig) -> 'IndexingState':
    """
    Normalize the raw product list once and plan the chunks

    Functionality:
    - Filter excluded product lines and skip malformed records
    - Build canonical products with their embedding text
    - Compute the number of fixed-size chunks to process
    """
    try:
        context = get_context(config)
        state["pipeline_step"] = "normalizing"

        raw_products = state.get("raw_products") or []
        logger.info(f"Normalizing {len(raw_products)} raw products")

        products = context.normalizer.normalize_products(raw_products)
        chunk_size = context.settings.product_batch_size

        state["products"] = products
        state["skipped_records"] = len(raw_products) - len(products)
        state["chunk_size"] = chunk_size
        state["total_chunks"] = math.ceil(len(products) / chunk_size)
        state["chunk_index"] = 0
        state["pipeline_step"] = "normalized"

        logger.info(f"{len(products)} products normalized, {state['total_chunks']} chunks of up to {chunk_size}")
        return state

    except Exception as e:
        logger.error(f"Error in normalize_products_node: {str(e)}")
        state.setdefault("errors", []).append(f"Normalization error: {str(e)}")
        state["products"] = []
        state["total_chunks"] = 0
        state["pipeline_step"] = "failed"
        return state
