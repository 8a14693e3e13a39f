"""Single index per entity kind."""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Optional, Sequence

from graphsearch.core.exceptions import DocumentProjectionError
from graphsearch.mapping.base import TYPE_FIELD, TYPE_FIELD_SCHEMA, Mapping
from graphsearch.mapping.projector import DocumentProjector, Projection
from graphsearch.models.document import DocumentMappingDefaults
from graphsearch.models.graph import EntityKind, RelationshipRepresentation

logger = logging.getLogger(__name__)


class DefaultMapping(Mapping):
    """Indexes nodes into `<prefix>-node` and relationships into `<prefix>-relationship`.

    Every property except the key (already the document id) is stored as a
    string. Relationship documents also carry their type in `__type`.
    """

    name = "default"

    def __init__(
        self,
        index_prefix: str,
        key_property: str,
        *,
        blacklisted_properties: Sequence[str] = (),
    ) -> None:
        super().__init__(key_property)
        if not index_prefix:
            raise ValueError("index_prefix must not be empty")

        blacklist = [key_property, *blacklisted_properties]
        self.defaults = DocumentMappingDefaults(
            key_property=key_property,
            nodes_index=f"{index_prefix}-node",
            relationships_index=f"{index_prefix}-relationship",
            include_remaining_properties=True,
            blacklisted_node_properties=blacklist,
            blacklisted_relationship_properties=blacklist,
        )
        self.projector = DocumentProjector()

    def project(self, entity) -> Projection:
        try:
            document = self.projector.default_document(entity, self.defaults)
        except DocumentProjectionError as exc:
            logger.error("Skipping document for %s %s: %s", entity.kind.value, entity.graph_id, exc)
            return Projection(errors=[exc])
        if isinstance(entity, RelationshipRepresentation):
            document.source[TYPE_FIELD] = entity.type
        return Projection(documents=[document])

    def index_names(self) -> Iterable[str]:
        return [self.defaults.nodes_index, self.defaults.relationships_index]

    def index_for(self, kind: EntityKind) -> str:
        return self.defaults.index_for(kind)

    def schema(self) -> Optional[Dict[str, Any]]:
        return TYPE_FIELD_SCHEMA
