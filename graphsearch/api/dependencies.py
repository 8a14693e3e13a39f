from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, HTTPException, status

from graphsearch.core.config import settings
from graphsearch.core.database import database_manager
from graphsearch.graph.reader import GraphReader
from graphsearch.graph.resolver import Neo4jUuidResolver
from graphsearch.index.client import SearchIndexClient
from graphsearch.mapping import Mapping, mapping_from_settings
from graphsearch.search.searcher import Searcher


@lru_cache()
def get_mapping() -> Mapping:
    return mapping_from_settings(settings)


async def get_index_client() -> SearchIndexClient:
    if database_manager.index_client is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Search backend not initialized")
    return database_manager.index_client


async def get_searcher(
    mapping: Mapping = Depends(get_mapping),
    client: SearchIndexClient = Depends(get_index_client),
) -> Searcher:
    if database_manager.neo4j is None:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Graph store not initialized")
    return Searcher(
        client,
        mapping,
        GraphReader(database_manager.neo4j, settings.NEO4J_DATABASE),
        Neo4jUuidResolver(mapping.key_property),
    )
