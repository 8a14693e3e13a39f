"""Rule-routed mapping driven by a JSON definition file."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, Optional

from pydantic import ValidationError

from graphsearch.core.exceptions import MappingConfigurationError
from graphsearch.mapping.base import TYPE_FIELD, TYPE_FIELD_SCHEMA, Mapping
from graphsearch.mapping.expressions import ExpressionCache, is_expression
from graphsearch.mapping.projector import DocumentProjector, Projection
from graphsearch.models.document import MappingDefinition
from graphsearch.models.graph import EntityKind

logger = logging.getLogger(__name__)


def load_definition(path: Path) -> MappingDefinition:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise MappingConfigurationError("Unable to read mapping file", {"path": str(path), "error": str(exc)}) from exc

    try:
        return MappingDefinition.model_validate_json(raw)
    except ValidationError as exc:
        raise MappingConfigurationError("Invalid mapping file", {"path": str(path), "error": str(exc)}) from exc


class RuleMapping(Mapping):
    """Routes entities to any number of indices according to projection rules.

    Each matching rule produces a document tagged with its type in `__type`.
    Deletions re-run the rules against the deleted representation so the
    documents removed are exactly those its creation would have produced.
    """

    name = "rules"

    def __init__(self, definition: MappingDefinition) -> None:
        super().__init__(definition.defaults.key_property)
        self.definition = definition
        self.defaults = definition.defaults

        expressions = ExpressionCache()
        self._projectors = {
            EntityKind.NODE: DocumentProjector(definition.node_mappings, expressions),
            EntityKind.RELATIONSHIP: DocumentProjector(definition.relationship_mappings, expressions),
        }
        invalid = sum(projector.precompile() for projector in self._projectors.values())
        if invalid:
            logger.warning("Mapping definition contains %d invalid expressions", invalid)

    @classmethod
    def from_file(cls, path: Path) -> "RuleMapping":
        return cls(load_definition(path))

    def project(self, entity) -> Projection:
        projection = self._projectors[entity.kind].collect(entity, self.defaults)
        for document in projection.documents:
            document.source[TYPE_FIELD] = document.type
        return projection

    def deletion_targets(self, entity) -> Projection:
        return self._projectors[entity.kind].collect(entity, self.defaults, build_source=False)

    def index_names(self) -> Iterable[str]:
        names = [self.defaults.nodes_index, self.defaults.relationships_index]
        for rule in [*self.definition.node_mappings, *self.definition.relationship_mappings]:
            # Computed index names are only known per entity; the synchronizer provisions those on first write.
            if rule.index and not is_expression(rule.index):
                names.append(rule.index)
        return names

    def index_for(self, kind: EntityKind) -> str:
        return self.defaults.index_for(kind)

    def schema(self) -> Optional[Dict[str, Any]]:
        return TYPE_FIELD_SCHEMA
