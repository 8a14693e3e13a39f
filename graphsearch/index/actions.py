"""Bulk actions sent to the search index."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class ActionType(Enum):
    INDEX = "index"
    DELETE = "delete"


@dataclass(frozen=True)
class IndexAction:
    action: ActionType
    index: str
    id: str
    source: Optional[Dict[str, Any]] = field(default=None, compare=False)

    @classmethod
    def upsert(cls, index: str, doc_id: str, source: Dict[str, Any]) -> "IndexAction":
        return cls(ActionType.INDEX, index, doc_id, dict(source))

    @classmethod
    def delete(cls, index: str, doc_id: str) -> "IndexAction":
        return cls(ActionType.DELETE, index, doc_id)

    def to_bulk(self) -> Dict[str, Any]:
        """Render the action in the format expected by `elasticsearch.helpers.async_bulk`."""

        payload: Dict[str, Any] = {
            "_op_type": self.action.value,
            "_index": self.index,
            "_id": self.id,
        }
        if self.action is ActionType.INDEX:
            payload["_source"] = self.source or {}
        return payload
