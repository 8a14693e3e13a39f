import json

import pytest
from pydantic import ValidationError

from graphsearch.core.config import Settings
from graphsearch.core.exceptions import MappingConfigurationError
from graphsearch.mapping import MAPPINGS, DefaultMapping, RuleMapping, build_mapping, mapping_from_settings
from graphsearch.models.graph import EntityKind


RULES = {
    "defaults": {
        "key_property": "id",
        "nodes_index": "nodes",
        "relationships_index": "edges",
        "include_remaining_properties": False,
    },
    "node_mappings": [
        {"condition": "has_label('Person')", "index": "people", "type": "person", "properties": {"name": "get_property('name')"}}
    ],
    "relationship_mappings": [],
}


def test_registry_is_closed():
    assert sorted(MAPPINGS) == ["default", "rules"]


def test_build_default_mapping():
    mapping = build_mapping("Default", index_prefix="kg", key_property="uuid")

    assert isinstance(mapping, DefaultMapping)
    assert mapping.index_for(EntityKind.NODE) == "kg-node"


def test_unknown_mapping_name():
    with pytest.raises(MappingConfigurationError) as excinfo:
        build_mapping("fancy", index_prefix="graph", key_property="uuid")

    assert excinfo.value.details == {"available": ["default", "rules"]}


def test_rules_mapping_requires_file():
    with pytest.raises(MappingConfigurationError):
        build_mapping("rules", index_prefix="graph", key_property="uuid")


def test_rules_mapping_from_file(tmp_path):
    path = tmp_path / "mapping.json"
    path.write_text(json.dumps(RULES), encoding="utf-8")

    mapping = build_mapping("rules", index_prefix="ignored", key_property="ignored", mapping_file=path)

    assert isinstance(mapping, RuleMapping)
    assert mapping.key_property == "id"
    assert mapping.index_for(EntityKind.RELATIONSHIP) == "edges"
    assert list(mapping.index_names()) == ["nodes", "edges", "people"]


def test_invalid_rules_file(tmp_path):
    path = tmp_path / "mapping.json"
    path.write_text('{"node_mappings": "not-a-list"}', encoding="utf-8")

    with pytest.raises(MappingConfigurationError) as excinfo:
        RuleMapping.from_file(path)

    assert excinfo.value.message == "Invalid mapping file"


def test_missing_rules_file(tmp_path):
    with pytest.raises(MappingConfigurationError) as excinfo:
        RuleMapping.from_file(tmp_path / "absent.json")

    assert excinfo.value.message == "Unable to read mapping file"


def test_mapping_from_settings(tmp_path):
    path = tmp_path / "mapping.json"
    path.write_text(json.dumps(RULES), encoding="utf-8")

    default = mapping_from_settings(Settings(INDEX_PREFIX="search"))
    rules = mapping_from_settings(Settings(MAPPING="RULES", MAPPING_FILE=path))

    assert default.index_for(EntityKind.NODE) == "search-node"
    assert isinstance(rules, RuleMapping)


def test_settings_reject_unknown_mapping():
    with pytest.raises(ValidationError):
        Settings(MAPPING="unknown")
