from .base import TYPE_FIELD, Mapping
from .default import DefaultMapping
from .projector import DocumentProjector
from .registry import MAPPINGS, build_mapping, mapping_from_settings
from .rules import RuleMapping

__all__ = [
    "DefaultMapping",
    "DocumentProjector",
    "MAPPINGS",
    "Mapping",
    "RuleMapping",
    "TYPE_FIELD",
    "build_mapping",
    "mapping_from_settings",
]
