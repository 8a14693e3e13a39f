"""Custom exception hierarchy for graphsearch."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional


@dataclass
class GraphSearchError(Exception):
    """Base class for application specific errors with structured payloads."""

    error_code: str
    message: str
    details: Optional[Dict[str, Any]] = None

    def __str__(self) -> str:
        base = f"[{self.error_code}] {self.message}"
        if self.details:
            return f"{base} :: {self.details}"
        return base


class DocumentProjectionError(GraphSearchError):
    """Raised when an entity cannot be turned into a valid index document."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("document_projection", message, details)


class IndexProvisioningError(GraphSearchError):
    """Raised when an index cannot be created or its schema applied."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("index_provisioning", message, details)


class SearchTransportError(GraphSearchError):
    """Raised when the search backend is unreachable or rejects a request."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("search_transport", message, details)


class EntityNotFoundError(GraphSearchError):
    """Raised when an external key does not resolve to a live graph entity."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("entity_not_found", message, details)


class MappingConfigurationError(GraphSearchError):
    """Raised for unknown mapping variants or invalid rule definitions."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("mapping_configuration", message, details)


class ExpressionError(GraphSearchError):
    """Raised when a mapping expression fails to compile or evaluate."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("expression", message, details)


class InvalidQueryError(GraphSearchError):
    """Raised when a search query payload is not a JSON object."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        super().__init__("invalid_query", message, details)


class PartialProjectionError(DocumentProjectionError):
    """Raised when some documents of an operation failed but others produced actions.

    `actions` holds the index actions that are still valid for the operation and
    `errors` the per-document failures.
    """

    def __init__(self, actions: List[Any], errors: List[DocumentProjectionError]) -> None:
        super().__init__(
            f"{len(errors)} document(s) could not be projected",
            {"errors": [str(error) for error in errors]},
        )
        self.actions = actions
        self.errors = errors
