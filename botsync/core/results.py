"""
Result variants returned at the store adapter boundary.

Every Firestore/RTDB call returns exactly one of these instead of raising or returning None,
so callers can tell "record absent" apart from "store unreachable" and "not allowed".
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union


@dataclass(frozen=True)
class Ok:
    value: Any = None


@dataclass(frozen=True)
class NotFound:
    url: str


@dataclass(frozen=True)
class AlreadyExists:
    """Conditional create lost: a record with this id already exists."""
    url: str


@dataclass(frozen=True)
class TransportError:
    method: str
    url: str
    status_code: int | None
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.method} {self.url} -> {self.status_code} {self.detail}"


@dataclass(frozen=True)
class AuthError:
    method: str
    url: str
    status_code: int
    detail: str = ""

    def __str__(self) -> str:
        return f"{self.method} {self.url} -> {self.status_code} {self.detail}"


StoreResult = Union[Ok, NotFound, AlreadyExists, TransportError, AuthError]
