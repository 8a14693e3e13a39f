"""Closed registry of mapping variants selectable from configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Dict, Optional

from graphsearch.core.exceptions import MappingConfigurationError
from graphsearch.mapping.base import Mapping
from graphsearch.mapping.default import DefaultMapping
from graphsearch.mapping.rules import RuleMapping


def _default(index_prefix: str, key_property: str, mapping_file: Optional[Path]) -> Mapping:
    return DefaultMapping(index_prefix, key_property)


def _rules(index_prefix: str, key_property: str, mapping_file: Optional[Path]) -> Mapping:
    if mapping_file is None:
        raise MappingConfigurationError("The 'rules' mapping requires MAPPING_FILE to be set")
    return RuleMapping.from_file(mapping_file)


MAPPINGS: Dict[str, Callable[[str, str, Optional[Path]], Mapping]] = {
    DefaultMapping.name: _default,
    RuleMapping.name: _rules,
}


def build_mapping(
    name: str,
    *,
    index_prefix: str,
    key_property: str,
    mapping_file: Optional[Path] = None,
) -> Mapping:
    """Instantiate the mapping registered under `name`."""

    factory = MAPPINGS.get(name.strip().lower())
    if factory is None:
        raise MappingConfigurationError(
            f"Unknown mapping '{name}'",
            {"available": sorted(MAPPINGS)},
        )
    return factory(index_prefix, key_property, mapping_file)


def mapping_from_settings(settings) -> Mapping:
    return build_mapping(
        settings.MAPPING,
        index_prefix=settings.INDEX_PREFIX,
        key_property=settings.KEY_PROPERTY,
        mapping_file=settings.MAPPING_FILE,
    )
