from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


@dataclass
class SearchMatch(Generic[T]):
    key: str
    score: float
    item: Optional[T] = None
