"""Command line entry for graphsearch."""

from __future__ import annotations

import argparse
import asyncio
import logging
from typing import List, Optional

import uvicorn

from graphsearch.core.config import settings
from graphsearch.core.database import database_manager
from graphsearch.core.logging import configure_logging
from graphsearch.mapping import mapping_from_settings

logger = logging.getLogger(__name__)


def run_server(host: str, port: int) -> None:
    uvicorn.run("graphsearch.api.main:app", host=host, port=port)


async def ensure_indices() -> None:
    mapping = mapping_from_settings(settings)
    await database_manager.initialize()
    try:
        await mapping.ensure_indices(database_manager.index_client)
    finally:
        await database_manager.close()
    logger.info("Indices ready for mapping %s", mapping.name)


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="graphsearch")
    commands = parser.add_subparsers(dest="command", required=True)

    serve = commands.add_parser("serve", help="Run the search API")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8080)

    commands.add_parser("ensure-indices", help="Create missing indices for the configured mapping")

    args = parser.parse_args(argv)
    configure_logging(settings.LOG_LEVEL)

    if args.command == "serve":
        run_server(args.host, args.port)
    else:
        asyncio.run(ensure_indices())


if __name__ == "__main__":
    main()
