from .document import DocumentMappingDefaults, DocumentRepresentation, MappingDefinition, ProjectionRule
from .graph import EntityKind, EntityRepresentation, NodeRepresentation, RelationshipRepresentation
from .operations import (
    NodeCreated,
    NodeDeleted,
    NodeUpdated,
    OperationType,
    RelationshipCreated,
    RelationshipDeleted,
    RelationshipUpdated,
    WriteOperation,
)
from .search import SearchMatch

__all__ = [
    "DocumentMappingDefaults",
    "DocumentRepresentation",
    "EntityKind",
    "EntityRepresentation",
    "MappingDefinition",
    "NodeCreated",
    "NodeDeleted",
    "NodeRepresentation",
    "NodeUpdated",
    "OperationType",
    "ProjectionRule",
    "RelationshipCreated",
    "RelationshipDeleted",
    "RelationshipRepresentation",
    "RelationshipUpdated",
    "SearchMatch",
    "WriteOperation",
]
