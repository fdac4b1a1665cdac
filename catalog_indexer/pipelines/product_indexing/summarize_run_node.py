from typing import Dict, Any, TYPE_CHECKING
import logging
import time

from catalog_indexer.models.response_models import ProcessingSummary

if TYPE_CHECKING:
    from catalog_indexer.models.pipeline_models import IndexingState

logger = logging.getLogger(__name__)

SUCCESS_RATE_THRESHOLD = 90  # percent
EXECUTION_TIME_THRESHOLD = 1800  # 30 minutes


def summarize_run_node(state: 'IndexingState') -> 'IndexingState':
    """
    Aggregate counters into the run summary and log the monitoring report

    "processed" counts products whose chunk reached the index, including
    products indexed with fallback vectors; degradation is reported apart.
    """
    processing_time = time.perf_counter() - state.get("start_time", time.perf_counter())
    products = state.get("products", [])
    total = len(products)
    processed = state.get("processed_count", 0)
    errors = state.get("errors", [])

    failed = state.get("pipeline_step") == "failed"
    cancelled = state.get("cancelled", False)
    if failed:
        status = "failed"
    elif cancelled:
        status = "cancelled"
    else:
        status = "completed"

    success_rate = (processed / total) * 100 if total > 0 else 0.0
    throughput = processed / processing_time if processing_time > 0 else 0.0

    message = None
    if failed:
        message = errors[-1] if errors else "Pipeline failed"
    elif total == 0:
        message = "No products to process"
    elif cancelled:
        message = f"Run cancelled after {state.get('chunk_index', 0)} of {state.get('total_chunks', 0)} chunks"

    summary = ProcessingSummary(
        success=status == "completed",
        status=status,
        processed=processed,
        total=total,
        total_chunks=state.get("total_chunks", 0),
        failed_chunks=state.get("failed_chunks", []),
        degraded_chunks=state.get("degraded_chunks", 0),
        fallback_vectors=state.get("fallback_vectors", 0),
        skipped_records=state.get("skipped_records", 0),
        success_rate=f"{success_rate:.1f}%",
        processing_time_seconds=round(processing_time, 2),
        throughput_per_second=round(throughput, 2),
        message=message,
        errors=[str(error) for error in errors],
    )

    logger.info("=== Product Indexing Pipeline Report ===")
    logger.info(f"Status: {status.upper()}")
    logger.info(f"Processing completed in {processing_time:.2f}s")
    logger.info(f"Result: {processed}/{total} products ({success_rate:.1f}% success)")
    logger.info(f"Speed: {throughput:.2f} products/s")
    logger.info(f"Chunks: {summary.total_chunks} total, {len(summary.failed_chunks)} failed, "
                f"{summary.degraded_chunks} degraded")
    if summary.skipped_records:
        logger.info(f"Records filtered or skipped during normalization: {summary.skipped_records}")

    if errors:
        logger.warning("--- Errors Encountered ---")
        for i, error in enumerate(errors[:5], 1):
            logger.warning(f"Error {i}: {error}")
        if len(errors) > 5:
            logger.warning(f"... and {len(errors) - 5} more errors")

    _analyze_pipeline_performance(summary.model_dump(), success_rate)

    state["summary"] = summary.model_dump()
    state["pipeline_step"] = status
    return state


def _analyze_pipeline_performance(summary: Dict[str, Any], success_rate: float) -> None:
    """
    Log alerts when the run looks unhealthy
    """
    alerts = 0

    if summary["processing_time_seconds"] > EXECUTION_TIME_THRESHOLD:
        logger.warning(f"ALERT: Pipeline execution time ({summary['processing_time_seconds']:.1f}s) "
                       f"exceeds threshold ({EXECUTION_TIME_THRESHOLD}s)")
        alerts += 1

    if summary["total"] > 0 and success_rate < SUCCESS_RATE_THRESHOLD:
        logger.warning(f"ALERT: Success rate ({success_rate:.1f}%) below threshold ({SUCCESS_RATE_THRESHOLD}%)")
        alerts += 1

    if summary["degraded_chunks"]:
        logger.warning(f"ALERT: {summary['degraded_chunks']} chunks indexed with "
                       f"{summary['fallback_vectors']} zero-vector fallbacks")
        alerts += 1

    if summary["failed_chunks"]:
        logger.warning(f"ALERT: Chunks failed and were skipped: {summary['failed_chunks']}")
        alerts += 1

    if alerts == 0:
        logger.info("✓ Pipeline performance within normal parameters")
    else:
        logger.warning("⚠ Pipeline performance issues detected - review alerts above")
