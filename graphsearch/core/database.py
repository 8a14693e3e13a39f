"""Connectivity layer for the graph store and the search backend."""

from __future__ import annotations

import logging
from typing import Optional

from elasticsearch import AsyncElasticsearch
from neo4j import AsyncDriver, AsyncGraphDatabase

from graphsearch.core.config import settings
from graphsearch.index.client import ElasticsearchIndexClient

logger = logging.getLogger(__name__)


class DatabaseManager:
    """Lazily establishes connections to Neo4j and Elasticsearch."""

    def __init__(self) -> None:
        self.neo4j: Optional[AsyncDriver] = None
        self.elasticsearch: Optional[AsyncElasticsearch] = None
        self.index_client: Optional[ElasticsearchIndexClient] = None

    async def initialize(self) -> None:
        """Connect to all backing services."""

        logger.info("Initializing graphsearch database manager")

        self.neo4j = AsyncGraphDatabase.driver(
            str(settings.NEO4J_URI),
            auth=(settings.NEO4J_USER, settings.NEO4J_PASSWORD),
        )

        basic_auth = None
        if settings.ELASTICSEARCH_USER and settings.ELASTICSEARCH_PASSWORD:
            logger.info("Enabling auth for Elasticsearch: %s", settings.ELASTICSEARCH_USER)
            basic_auth = (settings.ELASTICSEARCH_USER, settings.ELASTICSEARCH_PASSWORD)

        self.elasticsearch = AsyncElasticsearch(
            str(settings.ELASTICSEARCH_URL),
            basic_auth=basic_auth,
            request_timeout=settings.ELASTICSEARCH_TIMEOUT_SECONDS,
        )
        self.index_client = ElasticsearchIndexClient(self.elasticsearch)

        logger.info("Database manager initialized")

    async def close(self) -> None:
        """Tear down connections gracefully."""

        logger.info("Closing database connections")

        if self.neo4j is not None:
            await self.neo4j.close()
            self.neo4j = None

        if self.elasticsearch is not None:
            await self.elasticsearch.close()
            self.elasticsearch = None

        self.index_client = None


# Singleton instance shared by the API and the CLI
database_manager = DatabaseManager()
