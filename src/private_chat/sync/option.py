"""Explicit presence type for optional remote results.

A cache entry whose value is ``None`` has not been fetched yet; a fetched
optional result is either ``Present(value)`` or ``ABSENT``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


@dataclass(frozen=True)
class Present(Generic[T]):
    value: T


class _Absent:
    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False


ABSENT = _Absent()

Option = Union[Present[T], _Absent]


def option_of(value: Any) -> Option:
    """Wrap a nullable store result."""
    return ABSENT if value is None else Present(value)


def unwrap_or(option: Option | None, default: Any = None) -> Any:
    if isinstance(option, Present):
        return option.value
    return default
