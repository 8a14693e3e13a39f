"""Search the index and resolve hits back to live graph entities."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping as MappingType
from typing import Any, Dict, List, Union

from graphsearch.core.exceptions import EntityNotFoundError, InvalidQueryError, SearchTransportError
from graphsearch.graph.reader import GraphReader
from graphsearch.graph.resolver import UuidResolver
from graphsearch.index.client import SearchIndexClient
from graphsearch.mapping.base import Mapping
from graphsearch.models.graph import EntityKind, EntityRepresentation
from graphsearch.models.search import SearchMatch
from graphsearch.utils.monitoring import record_unresolved, track_search

logger = logging.getLogger(__name__)

Query = Union[str, MappingType[str, Any]]


def parse_query(query: Query) -> Dict[str, Any]:
    if isinstance(query, MappingType):
        return dict(query)
    try:
        body = json.loads(query)
    except (TypeError, ValueError) as exc:
        raise InvalidQueryError("Query is not valid JSON", {"error": str(exc)}) from exc
    if not isinstance(body, dict):
        raise InvalidQueryError("Query must be a JSON object")
    return body


def build_matches(body: MappingType[str, Any]) -> List[SearchMatch]:
    """Parse the `hits.hits` section of a search response, keeping backend order."""

    hits = body.get("hits") if isinstance(body, MappingType) else None
    if not isinstance(hits, MappingType):
        return []

    matches: List[SearchMatch] = []
    for hit in hits.get("hits") or []:
        key = hit.get("_id") if isinstance(hit, MappingType) else None
        if key is None:
            logger.warning("No key found in search result: %s", hit)
            continue
        try:
            score = float(hit.get("_score") or 0.0)
        except (TypeError, ValueError):
            logger.warning("Invalid score in search result: %s", hit)
            continue
        matches.append(SearchMatch(key=str(key), score=score))
    return matches


class Searcher:
    """Runs queries against the index serving an entity kind.

    Resolution of every hit in a response happens inside a single read
    transaction, opened only once the backend has answered, so all returned
    entities come from the same snapshot of the graph.
    """

    def __init__(
        self,
        client: SearchIndexClient,
        mapping: Mapping,
        graph: GraphReader,
        resolver: UuidResolver,
    ) -> None:
        self.client = client
        self.mapping = mapping
        self.graph = graph
        self.resolver = resolver

    async def search(self, query: Query, kind: EntityKind) -> List[SearchMatch[EntityRepresentation]]:
        """Search for nodes or relationships and return the ones still in the graph."""

        with track_search(kind.value):
            body = await self._do_query(query, kind)
            matches = build_matches(body)
            return await self._resolve(matches, kind)

    async def raw_search(self, query: Query, kind: EntityKind) -> str:
        """Return the backend response body as JSON text (aggregations included)."""

        with track_search(kind.value):
            return json.dumps(await self._do_query(query, kind))

    async def _do_query(self, query: Query, kind: EntityKind) -> Dict[str, Any]:
        index = self.mapping.index_for(kind)
        result = await self.client.execute(index, parse_query(query))
        if not result.succeeded:
            raise SearchTransportError(
                "Error while performing query on Elasticsearch",
                {"index": index, "error": result.error_message},
            )
        return result.body

    async def _resolve(self, matches: List[SearchMatch], kind: EntityKind) -> List[SearchMatch]:
        if not matches:
            return []

        resolved: List[SearchMatch] = []
        async with self.graph.read_transaction() as tx:
            for match in matches:
                try:
                    match.item = await self._load(tx, match.key, kind)
                except EntityNotFoundError:
                    record_unresolved(kind.value)
                    logger.warning(
                        "Could not find %s with key (%s): %s", kind.value, self.mapping.key_property, match.key
                    )
                    continue
                resolved.append(match)
        return resolved

    async def _load(self, tx, key: str, kind: EntityKind) -> EntityRepresentation:
        if kind is EntityKind.NODE:
            graph_id = await self.resolver.node_id_for_key(tx, key)
            return await self.graph.node_by_id(tx, graph_id)
        graph_id = await self.resolver.relationship_id_for_key(tx, key)
        return await self.graph.relationship_by_id(tx, graph_id)
