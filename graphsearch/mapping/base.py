"""Base class for strategies mapping graph write operations to index actions."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from graphsearch.core.exceptions import (
    DocumentProjectionError,
    IndexProvisioningError,
    PartialProjectionError,
    SearchTransportError,
)
from graphsearch.index.actions import IndexAction
from graphsearch.index.client import SearchIndexClient
from graphsearch.mapping.projector import Projection
from graphsearch.models.document import DocumentRepresentation
from graphsearch.models.graph import EntityKind, NodeRepresentation, RelationshipRepresentation
from graphsearch.models.operations import OperationType, WriteOperation
from graphsearch.utils.monitoring import record_action, record_projection_error

logger = logging.getLogger(__name__)

TYPE_FIELD = "__type"

# Full-text discriminator with an exact-match `raw` sub-field for filtering.
TYPE_FIELD_SCHEMA: Dict[str, Any] = {
    "properties": {
        TYPE_FIELD: {
            "type": "text",
            "fields": {"raw": {"type": "keyword"}},
        }
    }
}


@dataclass
class ActionPlan:
    """Index actions for one operation plus the documents that failed to project."""

    actions: List[IndexAction] = field(default_factory=list)
    errors: List[DocumentProjectionError] = field(default_factory=list)


class Mapping(ABC):
    """Turns graph write operations into index actions.

    Subclasses decide which documents an entity becomes; this class owns the
    create/update/delete semantics shared by every variant.
    """

    name: str = "abstract"

    def __init__(self, key_property: str) -> None:
        if not key_property:
            raise ValueError("key_property must not be empty")
        self.key_property = key_property

    @abstractmethod
    def project(self, entity: NodeRepresentation | RelationshipRepresentation) -> Projection:
        """Project an entity into the documents it should be indexed as."""

    def deletion_targets(self, entity: NodeRepresentation | RelationshipRepresentation) -> Projection:
        """Documents to delete for an entity; defaults to its full projection."""

        return self.project(entity)

    @abstractmethod
    def index_names(self) -> Iterable[str]:
        """Every index this mapping can write to ahead of time."""

    @abstractmethod
    def index_for(self, kind: EntityKind) -> str:
        """Index searched for the given entity kind."""

    def schema(self) -> Optional[Dict[str, Any]]:
        """Mapping applied to newly created indices, if any."""

        return None

    def plan(self, operation: WriteOperation) -> ActionPlan:
        """Actions for an operation, never dropping valid actions because of a failed document."""

        op_type = getattr(operation, "type", None)

        if op_type in (OperationType.NODE_CREATED, OperationType.RELATIONSHIP_CREATED):
            plan = self._create(operation.details)
        elif op_type in (OperationType.NODE_UPDATED, OperationType.RELATIONSHIP_UPDATED):
            plan = self._update(operation.previous, operation.current)
        elif op_type in (OperationType.NODE_DELETED, OperationType.RELATIONSHIP_DELETED):
            plan = self._delete(operation.details)
        else:
            logger.warning("Unsupported operation %s", op_type or type(operation).__name__)
            return ActionPlan()

        for action in plan.actions:
            record_action(action.action.value)
        for _ in plan.errors:
            record_projection_error()
        return plan

    def get_actions(self, operation: WriteOperation) -> List[IndexAction]:
        """Actions for an operation.

        Raises `DocumentProjectionError` when no document could be projected and
        `PartialProjectionError`, carrying the valid actions, when only some could.
        """

        plan = self.plan(operation)
        if plan.errors:
            if not plan.actions:
                raise plan.errors[0]
            raise PartialProjectionError(plan.actions, plan.errors)
        return plan.actions

    def _create(self, entity) -> ActionPlan:
        projection = self.project(entity)
        actions = [IndexAction.upsert(doc.index, doc.id, doc.source) for doc in projection.documents]
        return ActionPlan(actions, list(projection.errors))

    def _delete(self, entity) -> ActionPlan:
        projection = self.deletion_targets(entity)
        return ActionPlan(self._deletes(projection.documents), list(projection.errors))

    @staticmethod
    def _deletes(documents: Iterable[DocumentRepresentation]) -> List[IndexAction]:
        actions: List[IndexAction] = []
        seen = set()
        for doc in documents:
            if (doc.index, doc.id) in seen:
                continue
            seen.add((doc.index, doc.id))
            actions.append(IndexAction.delete(doc.index, doc.id))
        return actions

    def _update(self, previous, current) -> ActionPlan:
        current_projection = self.project(current)
        current_targets = {(doc.index, doc.id) for doc in current_projection.documents}

        # Failures on the previous state mean those documents were never indexed.
        previous_projection = self.deletion_targets(previous)
        if previous_projection.errors:
            logger.debug("Previous state of %s only partly projectable: %s", previous.graph_id, previous_projection.errors)

        actions = [
            action
            for action in self._deletes(previous_projection.documents)
            if (action.index, action.id) not in current_targets
        ]
        actions.extend(IndexAction.upsert(doc.index, doc.id, doc.source) for doc in current_projection.documents)
        return ActionPlan(actions, list(current_projection.errors))

    async def ensure_indices(self, client: SearchIndexClient) -> None:
        """Create missing indices and apply the schema. Safe to call repeatedly."""

        for index in dict.fromkeys(self.index_names()):
            await self.ensure_index(client, index)

    async def ensure_index(self, client: SearchIndexClient, index: str) -> None:
        """Make sure one index exists and carries the schema."""

        schema = self.schema()
        try:
            if await client.index_exists(index):
                logger.info("Index %s already exists in Elasticsearch.", index)
                if schema:
                    # Re-applied so an index whose schema was never set gets it now.
                    await self._apply_schema(client, index, schema)
                return

            logger.info("Index %s does not exist in Elasticsearch, creating...", index)
            result = await client.create_index(index, schema)
            if not result.succeeded:
                raise IndexProvisioningError(
                    "Failed to create Elasticsearch index",
                    {"index": index, "error": result.error_message},
                )
        except SearchTransportError as exc:
            raise IndexProvisioningError("Search backend unavailable during provisioning", {"index": index, "error": str(exc)}) from exc

        logger.info("Created Elasticsearch index %s.", index)

    async def _apply_schema(self, client: SearchIndexClient, index: str, schema: Dict[str, Any]) -> None:
        result = await client.put_mapping(index, schema)
        if not result.succeeded:
            raise IndexProvisioningError(
                "Failed to apply index mapping",
                {"index": index, "error": result.error_message},
            )
