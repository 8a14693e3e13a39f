"""Applies graph write operations to the search index."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Set

from graphsearch.index.actions import ActionType, IndexAction
from graphsearch.index.client import SearchIndexClient
from graphsearch.mapping.base import Mapping
from graphsearch.models.operations import WriteOperation

logger = logging.getLogger(__name__)


@dataclass
class SyncReport:
    operations: int = 0
    actions: int = 0
    failed_operations: List[Dict[str, Any]] = field(default_factory=list)
    bulk_errors: List[Any] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.failed_operations and not self.bulk_errors


class IndexSynchronizer:
    """Converts write operations into bulk requests.

    A document that cannot be projected is reported against its operation; every
    action that could still be produced, for that operation and the rest of the
    batch, is indexed. Indices are provisioned with the mapping's schema the first
    time an action targets them, which covers index names computed per entity.
    """

    def __init__(self, mapping: Mapping, client: SearchIndexClient, *, batch_size: int = 500) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be positive")
        self.mapping = mapping
        self.client = client
        self.batch_size = batch_size
        self._provisioned: Set[str] = set()

    def collect(self, operations: Iterable[WriteOperation], report: SyncReport) -> List[IndexAction]:
        actions: List[IndexAction] = []
        for operation in operations:
            report.operations += 1
            plan = self.mapping.plan(operation)
            actions.extend(plan.actions)
            if plan.errors:
                logger.error("Unable to fully map %s: %d failed documents", type(operation).__name__, len(plan.errors))
                report.failed_operations.append(
                    {
                        "operation": type(operation).__name__,
                        "errors": [str(error) for error in plan.errors],
                        "actions": len(plan.actions),
                    }
                )
        return actions

    async def provision(self, actions: Iterable[IndexAction]) -> None:
        """Ensure every index written to by `actions` exists with the schema."""

        targets = dict.fromkeys(action.index for action in actions if action.action is ActionType.INDEX)
        for index in targets:
            if index in self._provisioned:
                continue
            await self.mapping.ensure_index(self.client, index)
            self._provisioned.add(index)

    async def apply(self, operations: Iterable[WriteOperation]) -> SyncReport:
        report = SyncReport()
        actions = self.collect(operations, report)
        report.actions = len(actions)

        for start in range(0, len(actions), self.batch_size):
            chunk = actions[start : start + self.batch_size]
            await self.provision(chunk)
            result = await self.client.bulk(chunk)
            if not result.succeeded:
                logger.error("Bulk indexing failed: %s", result.error_message)
                report.bulk_errors.extend(result.body.get("errors") or [result.error_message])

        logger.info(
            "Synchronized %d operations into %d index actions (%d failed operations)",
            report.operations,
            report.actions,
            len(report.failed_operations),
        )
        return report
