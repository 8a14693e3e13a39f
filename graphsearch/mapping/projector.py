"""Projection of graph entities into index documents."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Set

from graphsearch.core.exceptions import DocumentProjectionError, ExpressionError
from graphsearch.mapping.expressions import ExpressionCache, entity_scope, is_expression
from graphsearch.models.document import DocumentMappingDefaults, DocumentRepresentation, ProjectionRule
from graphsearch.models.graph import EntityRepresentation

logger = logging.getLogger(__name__)


def document_key(entity: EntityRepresentation, key_property: str) -> str:
    """Return the external key of an entity as a document id."""

    value = entity.key(key_property)
    if value is None or str(value) == "":
        raise DocumentProjectionError(
            f"Entity has no value for key property '{key_property}'",
            {"graph_id": entity.graph_id, "kind": entity.kind.value},
        )
    return str(value)


def remaining_properties(
    entity: EntityRepresentation,
    blacklist: Iterable[str],
    *,
    stringify: bool = False,
) -> Dict[str, Any]:
    excluded = set(blacklist)
    return {
        name: str(value) if stringify else value
        for name, value in entity.properties.items()
        if name not in excluded
    }


@dataclass
class Projection:
    """Documents built for an entity, with the failures of the documents that could not be."""

    documents: List[DocumentRepresentation] = field(default_factory=list)
    errors: List[DocumentProjectionError] = field(default_factory=list)


class DocumentProjector:
    """Evaluates projection rules against graph entities.

    Every rule whose condition holds for an entity yields its own document, so a
    single entity may be indexed several times. Compiled expressions are shared
    by all callers through the projector's cache.
    """

    def __init__(self, rules: Iterable[ProjectionRule] = (), expressions: Optional[ExpressionCache] = None) -> None:
        self.rules: List[ProjectionRule] = list(rules)
        self.expressions = expressions if expressions is not None else ExpressionCache()
        self._reported: Set[str] = set()

    def precompile(self) -> int:
        """Compile every expression used by the rules, logging the invalid ones.

        Returns the number of expressions that failed to compile. Invalid
        expressions are not fatal: conditions simply never match and field
        expressions fail the affected documents.
        """

        failures = 0
        for rule in self.rules:
            sources = [rule.condition, *rule.properties.values()]
            sources.extend(value for value in (rule.index, rule.type) if is_expression(value))
            for source in filter(None, sources):
                try:
                    self.expressions.get(source)
                except ExpressionError as exc:
                    failures += 1
                    logger.error("Invalid mapping expression %s: %s", source, exc)
        return failures

    def default_document(
        self,
        entity: EntityRepresentation,
        defaults: DocumentMappingDefaults,
    ) -> DocumentRepresentation:
        """Unconditional projection: every non-blacklisted property, stringified."""

        return DocumentRepresentation(
            index=defaults.index_for(entity.kind),
            type=entity.kind.value,
            id=document_key(entity, defaults.key_property),
            source=remaining_properties(entity, defaults.blacklist_for(entity.kind), stringify=True),
        )

    def collect(
        self,
        entity: EntityRepresentation,
        defaults: DocumentMappingDefaults,
        *,
        build_source: bool = True,
    ) -> Projection:
        """Build one document per matching rule, keeping the failures alongside."""

        scope = entity_scope(entity, defaults.key_property)
        projection = Projection()

        for rule in self.rules:
            if not self._supports(rule, scope):
                continue
            try:
                projection.documents.append(self._build(rule, entity, scope, defaults, build_source))
            except DocumentProjectionError as exc:
                logger.error("Skipping document for %s %s: %s", entity.kind.value, entity.graph_id, exc)
                projection.errors.append(exc)
        return projection

    def project(
        self,
        entity: EntityRepresentation,
        defaults: DocumentMappingDefaults,
        *,
        build_source: bool = True,
    ) -> List[DocumentRepresentation]:
        """Return one document per matching rule.

        A rule whose document cannot be built is logged and skipped; the error is
        only raised when it leaves the entity without any document at all.
        """

        projection = self.collect(entity, defaults, build_source=build_source)
        if projection.errors and not projection.documents:
            raise projection.errors[0]
        return projection.documents

    def _supports(self, rule: ProjectionRule, scope: Dict[str, Any]) -> bool:
        if rule.condition is None:
            return False
        try:
            return bool(self.expressions.evaluate(rule.condition, scope))
        except ExpressionError as exc:
            if self.expressions.is_invalid(rule.condition):
                # Compile failures are reported once per condition.
                if rule.condition in self._reported:
                    return False
                self._reported.add(rule.condition)
            logger.error("Invalid condition expression %s: %s", rule.condition, exc)
            return False

    def _build(
        self,
        rule: ProjectionRule,
        entity: EntityRepresentation,
        scope: Dict[str, Any],
        defaults: DocumentMappingDefaults,
        build_source: bool,
    ) -> DocumentRepresentation:
        index = self._resolve_name(rule.index or defaults.index_for(entity.kind), scope, "index")
        doc_type = self._resolve_name(rule.type, scope, "type")
        doc_id = document_key(entity, defaults.key_property)

        source: Dict[str, Any] = {}
        if build_source:
            for field_name, expression in rule.properties.items():
                try:
                    source[field_name] = self.expressions.evaluate(expression, scope)
                except ExpressionError as exc:
                    raise DocumentProjectionError(
                        f"Unable to compute field '{field_name}'",
                        {"expression": expression, "error": str(exc)},
                    ) from exc

            if defaults.include_remaining_properties:
                for name, value in remaining_properties(entity, defaults.blacklist_for(entity.kind)).items():
                    source.setdefault(name, value)

        return DocumentRepresentation(index=index, type=doc_type, id=doc_id, source=source)

    def _resolve_name(self, value: Optional[str], scope: Dict[str, Any], what: str) -> str:
        if is_expression(value):
            try:
                resolved = self.expressions.evaluate(value, scope)
            except ExpressionError as exc:
                raise DocumentProjectionError(f"Unable to build {what} name", {"expression": value, "error": str(exc)}) from exc
            value = None if resolved is None else str(resolved)

        if not value:
            raise DocumentProjectionError(f"Unable to build {what} name", {"value": value})
        return value
