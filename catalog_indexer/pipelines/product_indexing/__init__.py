# Product Indexing Pipeline
# Nodes for the normalize -> embed -> index batch pipeline

from .context import IndexingContext, get_context
from .normalize_products_node import normalize_products_node
from .process_chunk_node import process_chunk_node
from .summarize_run_node import summarize_run_node

__all__ = [
    "IndexingContext",
    "get_context",
    "normalize_products_node",
    "process_chunk_node",
    "summarize_run_node",
]
