from typing import TYPE_CHECKING
import logging
import time

from langchain_core.runnables import RunnableConfig

from catalog_indexer.exceptions import LengthMismatchError
from catalog_indexer.pipelines.product_indexing.context import get_context

if TYPE_CHECKING:
    from catalog_indexer.models.pipeline_models import IndexingState

logger = logging.getLogger(__name__)


async def process_chunk_node(state: 'IndexingState', config: RunnableConfig) -> 'IndexingState':
    """
    Embed and index the next chunk of normalized products

    Functionality:
    - Stop before starting the chunk when the run was cancelled
    - Generate document embeddings for the chunk texts
    - Upsert products with their vectors into Qdrant
    - Record failures per chunk without aborting the run
    - Pause between chunks to smooth load on the external APIs
    """
    context = get_context(config)

    if context.is_cancelled():
        logger.warning(f"Cancellation requested, stopping before chunk {state.get('chunk_index', 0) + 1}")
        state["cancelled"] = True
        state["pipeline_step"] = "cancelled"
        return state

    products = state.get("products", [])
    chunk_size = state["chunk_size"]
    chunk_index = state.get("chunk_index", 0)
    total_chunks = state.get("total_chunks", 0)
    batch_num = chunk_index + 1

    chunk = products[chunk_index * chunk_size:(chunk_index + 1) * chunk_size]
    state["pipeline_step"] = "chunk_processing"
    logger.info(f"Processing chunk {batch_num}/{total_chunks} ({len(chunk)} products)")

    chunk_start = time.perf_counter()
    try:
        texts = [product.texto_para_embedding for product in chunk]

        logger.info(f"Generating embeddings for chunk {batch_num}...")
        embedding_result = await context.embedding_service.embed_documents(texts)

        if len(embedding_result.vectors) != len(chunk):
            raise LengthMismatchError(
                f"Incomplete embeddings: {len(embedding_result.vectors)} vs {len(chunk)}",
                expected=len(chunk),
                actual=len(embedding_result.vectors),
            )

        logger.info(f"Loading {len(chunk)} points into Qdrant...")
        await context.product_index.upsert_products(chunk, embedding_result.vectors)

        state["processed_count"] = state.get("processed_count", 0) + len(chunk)

        if embedding_result.is_degraded:
            state["degraded_chunks"] = state.get("degraded_chunks", 0) + 1
            state["fallback_vectors"] = state.get("fallback_vectors", 0) + embedding_result.fallback_count
            logger.warning(
                f"Chunk {batch_num} indexed with {embedding_result.fallback_count} fallback vectors "
                f"({embedding_result.status.value}): {embedding_result.reason}"
            )

        logger.info(f"Chunk {batch_num} completed in {time.perf_counter() - chunk_start:.2f}s")

    except Exception as e:
        logger.error(f"Error in chunk {batch_num}: {str(e)}")
        state["failed_chunks"] = state.get("failed_chunks", []) + [batch_num]
        state["errors"] = state.get("errors", []) + [f"Chunk {batch_num}: {str(e)}"]

    state["chunk_index"] = batch_num

    if batch_num < total_chunks and not context.is_cancelled():
        await context.sleep(context.settings.chunk_delay)

    return state
