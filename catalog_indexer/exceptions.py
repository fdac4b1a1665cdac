"""
Exception hierarchy for the catalog indexer.

Chunk-level errors (length mismatches, index write failures) are caught by the
indexing orchestrator; configuration errors are fatal at startup.
"""

from typing import Any, Dict, Optional


class CatalogIndexerError(Exception):
    """Base exception for all catalog indexer errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(CatalogIndexerError):
    """Raised when a required setting is missing or invalid."""


class LengthMismatchError(CatalogIndexerError):
    """Raised when records and vectors cannot be paired one to one."""

    def __init__(self, message: str, expected: int, actual: int) -> None:
        super().__init__(message, {"expected": expected, "actual": actual})
        self.expected = expected
        self.actual = actual


class EmbeddingError(CatalogIndexerError):
    """Raised when the embedding provider returns an unusable response."""


class ProductSourceError(CatalogIndexerError):
    """Raised when the upstream product source cannot be read."""
