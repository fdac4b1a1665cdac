"""
Upstream product sources.

A source answers one request with the full list of raw product records.
An empty list is a valid answer meaning there is nothing to index.
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional
import asyncio
import json
import logging

from catalog_indexer.exceptions import ProductSourceError

logger = logging.getLogger(__name__)


class ProductSource(ABC):
    """Request/response provider of raw product records"""

    @abstractmethod
    async def fetch_products(self) -> List[Dict[str, Any]]:
        ...


class InMemoryProductSource(ProductSource):
    """Serves a fixed list of records, e.g. a payload posted to the API"""

    def __init__(self, records: Optional[List[Dict[str, Any]]] = None):
        self.records = list(records or [])

    async def fetch_products(self) -> List[Dict[str, Any]]:
        return list(self.records)


class JsonFileProductSource(ProductSource):
    """
    Reads a JSON dump of the catalog: either a list of records or an
    object with a "products" list.
    """

    def __init__(self, path: str):
        self.path = Path(path)

    async def fetch_products(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._read)

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            raise ProductSourceError(f"Products file not found: {self.path}")

        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ProductSourceError(f"Invalid JSON in products file {self.path}: {str(e)}")

        if isinstance(data, dict):
            data = data.get("products")
        if data is None:
            return []
        if not isinstance(data, list):
            raise ProductSourceError(f"Products file {self.path} must contain a list of products")

        logger.info(f"Loaded {len(data)} products from {self.path}")
        return data
