"""Graph node and relationship representations."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class EntityKind(Enum):
    NODE = "node"
    RELATIONSHIP = "relationship"


@dataclass(frozen=True)
class NodeRepresentation:
    graph_id: str
    labels: Tuple[str, ...] = ()
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> EntityKind:
        return EntityKind.NODE

    def key(self, key_property: str) -> Optional[Any]:
        return self.properties.get(key_property)


@dataclass(frozen=True)
class RelationshipRepresentation:
    graph_id: str
    type: str
    start_node_graph_id: Optional[str] = None
    end_node_graph_id: Optional[str] = None
    properties: Dict[str, Any] = field(default_factory=dict)

    @property
    def kind(self) -> EntityKind:
        return EntityKind.RELATIONSHIP

    def key(self, key_property: str) -> Optional[Any]:
        return self.properties.get(key_property)


EntityRepresentation = NodeRepresentation | RelationshipRepresentation


def node_from_neo4j(node: Any) -> NodeRepresentation:
    """Build a representation from a `neo4j.graph.Node`."""

    return NodeRepresentation(
        graph_id=node.element_id,
        labels=tuple(sorted(node.labels)),
        properties=dict(node.items()),
    )


def relationship_from_neo4j(relationship: Any) -> RelationshipRepresentation:
    """Build a representation from a `neo4j.graph.Relationship`."""

    start = relationship.start_node
    end = relationship.end_node
    return RelationshipRepresentation(
        graph_id=relationship.element_id,
        type=relationship.type,
        start_node_graph_id=start.element_id if start is not None else None,
        end_node_graph_id=end.element_id if end is not None else None,
        properties=dict(relationship.items()),
    )
