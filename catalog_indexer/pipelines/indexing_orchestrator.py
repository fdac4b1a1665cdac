# Product Indexing Orchestrator
from typing import Any, Awaitable, Callable, Dict, List, Optional
import asyncio
import logging
import math
import time
from langgraph.graph import StateGraph, END

# LangSmith tracing
from langsmith import traceable

from catalog_indexer.config import PipelineSettings
from catalog_indexer.database.qdrant_client import QdrantProductIndex
from catalog_indexer.models.pipeline_models import IndexingState
from catalog_indexer.models.response_models import ProcessingSummary
from catalog_indexer.services.embedding_service import GeminiEmbeddingService
from catalog_indexer.services.normalizer import DataNormalizer
from catalog_indexer.pipelines.product_indexing import (
    IndexingContext,
    normalize_products_node,
    process_chunk_node,
    summarize_run_node,
)

logger = logging.getLogger(__name__)


def route_after_normalize(state: IndexingState) -> str:
    if state.get("pipeline_step") == "failed" or not state.get("total_chunks"):
        return "summarize"
    return "process_chunk"


def route_after_chunk(state: IndexingState) -> str:
    if state.get("cancelled") or state.get("chunk_index", 0) >= state.get("total_chunks", 0):
        return "summarize"
    return "process_chunk"


class ProductIndexingOrchestrator:
    """
    Orchestrator for the product indexing batch pipeline

    Pipeline Flow:
    1. Normalize raw products once (filter, clean, build embedding text)
    2. For each fixed-size chunk: embed texts, upsert points into Qdrant
    3. Summarize counts, timing and degradation into a ProcessingSummary

    Chunks run strictly one after another; a failing chunk is logged and
    skipped, never aborting the run.
    """

    def __init__(self, settings: PipelineSettings,
                 normalizer: DataNormalizer,
                 embedding_service: GeminiEmbeddingService,
                 product_index: QdrantProductIndex,
                 sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep):
        self.settings = settings
        self.normalizer = normalizer
        self.embedding_service = embedding_service
        self.product_index = product_index
        self._sleep = sleep
        self.graph = None
        self._build_graph()

    def _build_graph(self):
        """Build the product indexing LangGraph workflow"""
        workflow = StateGraph(IndexingState)

        workflow.add_node("normalize", normalize_products_node)
        workflow.add_node("process_chunk", process_chunk_node)
        workflow.add_node("summarize", summarize_run_node)

        workflow.set_entry_point("normalize")
        workflow.add_conditional_edges(
            "normalize",
            route_after_normalize,
            {"process_chunk": "process_chunk", "summarize": "summarize"},
        )
        workflow.add_conditional_edges(
            "process_chunk",
            route_after_chunk,
            {"process_chunk": "process_chunk", "summarize": "summarize"},
        )
        workflow.add_edge("summarize", END)

        self.graph = workflow.compile()
        logger.info("Product indexing LangGraph workflow compiled successfully")

    @traceable(name="product_indexing_pipeline")
    async def run(self, raw_products: List[Dict[str, Any]],
                  cancel_event: Optional[asyncio.Event] = None) -> ProcessingSummary:
        """
        Main entry point for one indexing run

        Args:
            raw_products: Upstream product records
            cancel_event: When set, no further chunk is started

        Returns:
            ProcessingSummary, also when chunks failed or the run was cancelled
        """
        start_time = time.perf_counter()
        raw_products = list(raw_products or [])
        logger.info(f"Starting processing of {len(raw_products)} products")

        try:
            await self.product_index.ensure_collection()

            initial_state: IndexingState = {
                "raw_products": raw_products,
                "products": [],
                "skipped_records": 0,
                "chunk_size": self.settings.product_batch_size,
                "total_chunks": 0,
                "chunk_index": 0,
                "processed_count": 0,
                "degraded_chunks": 0,
                "fallback_vectors": 0,
                "failed_chunks": [],
                "pipeline_step": "initialized",
                "cancelled": False,
                "errors": [],
                "start_time": start_time,
                "summary": None,
            }

            context = IndexingContext(
                settings=self.settings,
                normalizer=self.normalizer,
                embedding_service=self.embedding_service,
                product_index=self.product_index,
                sleep=self._sleep,
                cancel_event=cancel_event,
            )

            # One graph step per chunk plus normalize and summarize
            max_chunks = math.ceil(len(raw_products) / self.settings.product_batch_size)
            result = await self.graph.ainvoke(
                initial_state,
                config={
                    "configurable": {"context": context},
                    "recursion_limit": max_chunks + 10,
                },
            )

            return ProcessingSummary(**result["summary"])

        except Exception as e:
            processing_time = time.perf_counter() - start_time
            logger.error(f"Error in product indexing pipeline: {str(e)}")
            return ProcessingSummary(
                success=False,
                status="failed",
                total=len(raw_products),
                processing_time_seconds=round(processing_time, 2),
                message=str(e),
                errors=[str(e)],
            )
