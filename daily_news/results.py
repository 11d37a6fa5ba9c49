# daily_news/results.py
"""
Typed results passed between internal layers.

Cache reads and live fetches return Ok/Err instead of raising; only the
outermost fetch functions decide what a failure turns into.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Union


class ErrorKind(str, Enum):
    STORAGE = "storage"
    UPSTREAM = "upstream"
    SHAPE = "shape"
    CONFIG = "config"


@dataclass(frozen=True)
class Ok:
    value: Any


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.detail}" if self.detail else self.kind.value


Result = Union[Ok, Err]
