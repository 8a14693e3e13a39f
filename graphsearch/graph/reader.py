"""Read access to the graph store."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from neo4j import READ_ACCESS, AsyncDriver, AsyncTransaction

from graphsearch.core.exceptions import EntityNotFoundError
from graphsearch.models.graph import (
    NodeRepresentation,
    RelationshipRepresentation,
    node_from_neo4j,
    relationship_from_neo4j,
)


NODE_BY_ID = "MATCH (n) WHERE elementId(n) = $id RETURN n"
RELATIONSHIP_BY_ID = "MATCH ()-[r]->() WHERE elementId(r) = $id RETURN r"


class GraphReader:
    """Opens read transactions and loads entities by their internal id."""

    def __init__(self, driver: AsyncDriver, database: Optional[str] = None) -> None:
        self.driver = driver
        self.database = database

    @asynccontextmanager
    async def read_transaction(self) -> AsyncIterator[AsyncTransaction]:
        """Yield one read-only transaction, closed on every exit path."""

        async with self.driver.session(database=self.database, default_access_mode=READ_ACCESS) as session:
            async with await session.begin_transaction() as tx:
                yield tx

    async def node_by_id(self, tx, graph_id: str) -> NodeRepresentation:
        result = await tx.run(NODE_BY_ID, id=graph_id)
        record = await result.single()
        if record is None:
            raise EntityNotFoundError("Node not found", {"graph_id": graph_id})
        return node_from_neo4j(record["n"])

    async def relationship_by_id(self, tx, graph_id: str) -> RelationshipRepresentation:
        result = await tx.run(RELATIONSHIP_BY_ID, id=graph_id)
        record = await result.single()
        if record is None:
            raise EntityNotFoundError("Relationship not found", {"graph_id": graph_id})
        return relationship_from_neo4j(record["r"])
