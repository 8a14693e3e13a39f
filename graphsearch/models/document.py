"""Index documents and the configuration that shapes them."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from graphsearch.models.graph import EntityKind


@dataclass
class DocumentRepresentation:
    index: str
    type: str
    id: str
    source: Dict[str, Any] = field(default_factory=dict)


class DocumentMappingDefaults(BaseModel):
    """Fallbacks applied to every projection rule."""

    key_property: str = Field("uuid", min_length=1)
    nodes_index: str = Field("graph-node", min_length=1)
    relationships_index: str = Field("graph-relationship", min_length=1)
    include_remaining_properties: bool = True
    blacklisted_node_properties: List[str] = Field(default_factory=list)
    blacklisted_relationship_properties: List[str] = Field(default_factory=list)

    def index_for(self, kind: EntityKind) -> str:
        return self.nodes_index if kind is EntityKind.NODE else self.relationships_index

    def blacklist_for(self, kind: EntityKind) -> List[str]:
        if kind is EntityKind.NODE:
            return self.blacklisted_node_properties
        return self.blacklisted_relationship_properties


class ProjectionRule(BaseModel):
    """A single conditional mapping from graph entities to index documents.

    `index` and `type` are literals unless they contain both `(` and `)`, in
    which case they are evaluated as expressions against the entity. A rule
    without a condition never matches.
    """

    condition: Optional[str] = None
    index: Optional[str] = None
    type: Optional[str] = None
    properties: Dict[str, str] = Field(default_factory=dict)


class MappingDefinition(BaseModel):
    """Contents of a rules file."""

    defaults: DocumentMappingDefaults = Field(default_factory=DocumentMappingDefaults)
    node_mappings: List[ProjectionRule] = Field(default_factory=list)
    relationship_mappings: List[ProjectionRule] = Field(default_factory=list)

    def rules_for(self, kind: EntityKind) -> List[ProjectionRule]:
        return self.node_mappings if kind is EntityKind.NODE else self.relationship_mappings
