# core/results.py

"""
PARTIAL-SUCCESS RESULT

Bill operations commit their primary aggregate even when secondary effects
(stock postings, table cleanup) fail. Those failures are returned as warnings
so callers can see degraded consistency instead of it living only in logs.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    value: T
    warnings: tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return not self.warnings

    @property
    def degraded(self) -> bool:
        return bool(self.warnings)


class WarningCollector:
    def __init__(self):
        self._items: list[str] = []

    def add(self, message: str) -> None:
        self._items.append(message)

    def extend(self, messages) -> None:
        self._items.extend(messages or ())

    def result(self, value) -> ServiceResult:
        return ServiceResult(value=value, warnings=tuple(self._items))

    def __len__(self):
        return len(self._items)
