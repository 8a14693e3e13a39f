"""Search index client built on the official Elasticsearch async client."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Protocol

from elasticsearch import ApiError, AsyncElasticsearch, TransportError
from elasticsearch.helpers import async_bulk

from graphsearch.core.exceptions import SearchTransportError
from graphsearch.index.actions import IndexAction

logger = logging.getLogger(__name__)


@dataclass
class IndexResult:
    succeeded: bool
    error_message: Optional[str] = None
    body: Dict[str, Any] = field(default_factory=dict)


class SearchIndexClient(Protocol):
    async def execute(self, index: str, body: Dict[str, Any]) -> IndexResult: ...

    async def bulk(self, actions: Iterable[IndexAction]) -> IndexResult: ...

    async def index_exists(self, name: str) -> bool: ...

    async def create_index(self, name: str, schema: Optional[Dict[str, Any]] = None) -> IndexResult: ...

    async def put_mapping(self, name: str, schema: Dict[str, Any]) -> IndexResult: ...


def _response_body(response: Any) -> Dict[str, Any]:
    body = getattr(response, "body", response)
    return dict(body) if body else {}


def _api_failure(exc: ApiError) -> IndexResult:
    body = exc.body if isinstance(exc.body, dict) else {}
    return IndexResult(succeeded=False, error_message=f"{exc.meta.status} {exc.message}", body=body)


class ElasticsearchIndexClient:
    """Adapts `AsyncElasticsearch` to the `SearchIndexClient` interface.

    API errors (4xx/5xx answers) come back as failed results. Connection level
    failures raise `SearchTransportError`; retrying is left to the caller.
    """

    def __init__(self, es: AsyncElasticsearch) -> None:
        self.es = es

    async def execute(self, index: str, body: Dict[str, Any]) -> IndexResult:
        try:
            response = await self.es.search(index=index, body=body)
        except ApiError as exc:
            return _api_failure(exc)
        except TransportError as exc:
            raise SearchTransportError("Error while performing query on Elasticsearch", {"index": index, "error": str(exc)}) from exc
        return IndexResult(succeeded=True, body=_response_body(response))

    async def bulk(self, actions: Iterable[IndexAction]) -> IndexResult:
        payload = [action.to_bulk() for action in actions]
        if not payload:
            return IndexResult(succeeded=True, body={"indexed": 0, "errors": []})

        try:
            indexed, errors = await async_bulk(self.es, payload, raise_on_error=False, stats_only=False)
        except ApiError as exc:
            return _api_failure(exc)
        except TransportError as exc:
            raise SearchTransportError("Bulk request to Elasticsearch failed", {"error": str(exc)}) from exc

        # Deleting a document that was never indexed is not a failure.
        failures = [item for item in errors if not _is_missing_delete(item)]
        if failures:
            logger.error("Bulk request finished with %d failed items", len(failures))
            return IndexResult(
                succeeded=False,
                error_message=f"{len(failures)} bulk items failed",
                body={"indexed": indexed, "errors": failures},
            )
        return IndexResult(succeeded=True, body={"indexed": indexed, "errors": []})

    async def index_exists(self, name: str) -> bool:
        try:
            return bool(await self.es.indices.exists(index=name))
        except (ApiError, TransportError) as exc:
            raise SearchTransportError("Unable to check index existence", {"index": name, "error": str(exc)}) from exc

    async def create_index(self, name: str, schema: Optional[Dict[str, Any]] = None) -> IndexResult:
        """Create an index, with its mappings in the same request when given."""

        try:
            if schema:
                response = await self.es.indices.create(index=name, mappings=schema)
            else:
                response = await self.es.indices.create(index=name)
        except ApiError as exc:
            if exc.message == "resource_already_exists_exception":
                logger.info("Index %s was created concurrently", name)
                return IndexResult(succeeded=True, body=exc.body if isinstance(exc.body, dict) else {})
            return _api_failure(exc)
        except TransportError as exc:
            raise SearchTransportError("Unable to create index", {"index": name, "error": str(exc)}) from exc
        return IndexResult(succeeded=True, body=_response_body(response))

    async def put_mapping(self, name: str, schema: Dict[str, Any]) -> IndexResult:
        try:
            response = await self.es.indices.put_mapping(index=name, **schema)
        except ApiError as exc:
            return _api_failure(exc)
        except TransportError as exc:
            raise SearchTransportError("Unable to apply index mapping", {"index": name, "error": str(exc)}) from exc
        return IndexResult(succeeded=True, body=_response_body(response))

    async def close(self) -> None:
        await self.es.close()


def _is_missing_delete(item: Dict[str, Any]) -> bool:
    delete = item.get("delete")
    return bool(delete) and delete.get("status") == 404
