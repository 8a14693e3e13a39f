"""Lookup of internal graph ids from external keys."""

from __future__ import annotations

from typing import Protocol

from graphsearch.core.exceptions import EntityNotFoundError

NODE_ID_FOR_KEY = "MATCH (n) WHERE n[$key_property] = $key RETURN elementId(n) AS id LIMIT 1"
RELATIONSHIP_ID_FOR_KEY = "MATCH ()-[r]->() WHERE r[$key_property] = $key RETURN elementId(r) AS id LIMIT 1"


class UuidResolver(Protocol):
    async def node_id_for_key(self, tx, key: str) -> str: ...

    async def relationship_id_for_key(self, tx, key: str) -> str: ...


class Neo4jUuidResolver:
    """Resolves keys stored in a property of the graph entities themselves."""

    def __init__(self, key_property: str) -> None:
        self.key_property = key_property

    async def node_id_for_key(self, tx, key: str) -> str:
        return await self._lookup(tx, NODE_ID_FOR_KEY, key, "Node")

    async def relationship_id_for_key(self, tx, key: str) -> str:
        return await self._lookup(tx, RELATIONSHIP_ID_FOR_KEY, key, "Relationship")

    async def _lookup(self, tx, query: str, key: str, label: str) -> str:
        result = await tx.run(query, key_property=self.key_property, key=key)
        record = await result.single()
        if record is None:
            raise EntityNotFoundError(
                f"{label} with {self.key_property} {key} not found",
                {"key": key, "key_property": self.key_property},
            )
        return record["id"]
