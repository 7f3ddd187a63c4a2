"""
Exception hierarchy for the content intelligence pipeline.

- ValidationError: input rejected before fingerprinting
- ProviderError: embedding/completion provider failed after bounded retries
- IndexConsistencyError: embedding dimensionality does not match the index
- ContentNotFoundError: operation on an unknown item
"""

from typing import Any, Optional


class ContentIntelligenceError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(self, message: str, details: Optional[dict[str, Any]] = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ValidationError(ContentIntelligenceError):
    """Raised when input is empty, oversized or otherwise malformed."""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        if field:
            details["field"] = field
        self.field = field
        super().__init__(message, details)


class ProviderError(ContentIntelligenceError):
    """Raised when an external provider fails or times out on every attempt."""

    def __init__(
        self,
        provider: str,
        message: str,
        attempts: int = 1,
        details: Optional[dict[str, Any]] = None,
    ) -> None:
        details = details or {}
        details["provider"] = provider
        details["attempts"] = attempts
        self.provider = provider
        self.attempts = attempts
        super().__init__(message, details)


class IndexConsistencyError(ContentIntelligenceError):
    """Raised when an embedding's dimensionality differs from the index dimensionality."""

    def __init__(
        self,
        expected: int,
        actual: int,
        item_id: Optional[str] = None,
    ) -> None:
        details: dict[str, Any] = {"expected": expected, "actual": actual}
        if item_id:
            details["item_id"] = item_id
        self.expected = expected
        self.actual = actual
        self.item_id = item_id
        super().__init__(
            f"Embedding dimension mismatch: expected {expected}, got {actual}", details
        )


class ContentNotFoundError(ContentIntelligenceError):
    """Raised when an item id is not known to the pipeline."""

    def __init__(self, item_id: str) -> None:
        self.item_id = item_id
        super().__init__(f"Content item not found: {item_id}", {"item_id": item_id})
