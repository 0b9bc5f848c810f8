"""
Firestore document as returned by the REST API.

A document is {"name": "projects/p/databases/(default)/documents/schedules/abc",
"fields": {...typed values...}, "createTime": ..., "updateTime": ...}.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping

from botsync.core.clock import parse_iso
from botsync.services.firestore.values import FieldValue, decode_fields


@dataclass(frozen=True)
class Document:
    name: str
    fields: dict[str, FieldValue] = field(default_factory=dict)
    create_time: datetime | None = None
    update_time: datetime | None = None

    @property
    def id(self) -> str:
        return self.name.rsplit("/", 1)[-1]

    @classmethod
    def from_wire(cls, raw: Mapping[str, Any]) -> "Document":
        return cls(
            name=raw["name"],
            fields=decode_fields(raw.get("fields")),
            create_time=parse_iso(raw.get("createTime")),
            update_time=parse_iso(raw.get("updateTime")),
        )
