"""Graph write operations delivered to the mapping layer."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import ClassVar, Union

from graphsearch.models.graph import NodeRepresentation, RelationshipRepresentation


class OperationType(Enum):
    NODE_CREATED = "node_created"
    NODE_UPDATED = "node_updated"
    NODE_DELETED = "node_deleted"
    RELATIONSHIP_CREATED = "relationship_created"
    RELATIONSHIP_UPDATED = "relationship_updated"
    RELATIONSHIP_DELETED = "relationship_deleted"


@dataclass(frozen=True)
class NodeCreated:
    type: ClassVar[OperationType] = OperationType.NODE_CREATED
    details: NodeRepresentation


@dataclass(frozen=True)
class NodeUpdated:
    type: ClassVar[OperationType] = OperationType.NODE_UPDATED
    previous: NodeRepresentation
    current: NodeRepresentation


@dataclass(frozen=True)
class NodeDeleted:
    type: ClassVar[OperationType] = OperationType.NODE_DELETED
    details: NodeRepresentation


@dataclass(frozen=True)
class RelationshipCreated:
    type: ClassVar[OperationType] = OperationType.RELATIONSHIP_CREATED
    details: RelationshipRepresentation


@dataclass(frozen=True)
class RelationshipUpdated:
    type: ClassVar[OperationType] = OperationType.RELATIONSHIP_UPDATED
    previous: RelationshipRepresentation
    current: RelationshipRepresentation


@dataclass(frozen=True)
class RelationshipDeleted:
    type: ClassVar[OperationType] = OperationType.RELATIONSHIP_DELETED
    details: RelationshipRepresentation


WriteOperation = Union[
    NodeCreated,
    NodeUpdated,
    NodeDeleted,
    RelationshipCreated,
    RelationshipUpdated,
    RelationshipDeleted,
]
