"""
Typed Firestore values.

The REST API wraps every field in a one-key object naming its type
({"stringValue": "x"}, {"integerValue": "3"}, {"mapValue": {"fields": {...}}}, ...).
FieldValue is the tagged variant over those types; the get_* accessors return None
instead of coercing when a field is missing or has a different type.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Mapping

from botsync.core.clock import parse_iso, to_iso


class ValueKind(str, Enum):
    STRING = "stringValue"
    BOOLEAN = "booleanValue"
    INTEGER = "integerValue"
    DOUBLE = "doubleValue"
    TIMESTAMP = "timestampValue"
    NULL = "nullValue"
    ARRAY = "arrayValue"
    MAP = "mapValue"
    # Read-only passthrough: kept as raw wire payloads so documents with these fields still decode
    REFERENCE = "referenceValue"
    GEO_POINT = "geoPointValue"
    BYTES = "bytesValue"


@dataclass(frozen=True)
class FieldValue:
    kind: ValueKind
    value: Any = None

    def to_wire(self) -> dict[str, Any]:
        k = self.kind
        if k is ValueKind.NULL:
            return {k.value: None}
        if k is ValueKind.INTEGER:
            return {k.value: str(self.value)}
        if k is ValueKind.DOUBLE:
            v = float(self.value)
            if math.isnan(v):
                return {k.value: "NaN"}
            if math.isinf(v):
                return {k.value: "Infinity" if v > 0 else "-Infinity"}
            return {k.value: v}
        if k is ValueKind.TIMESTAMP:
            return {k.value: to_iso(self.value)}
        if k is ValueKind.ARRAY:
            return {k.value: {"values": [v.to_wire() for v in self.value]}}
        if k is ValueKind.MAP:
            return {k.value: {"fields": fields_to_wire(self.value)}}
        return {k.value: self.value}

    def to_python(self) -> Any:
        """Plain Python value (lists, dicts, datetimes); passthrough kinds return the raw payload."""
        if self.kind is ValueKind.ARRAY:
            return [v.to_python() for v in self.value]
        if self.kind is ValueKind.MAP:
            return {k: v.to_python() for k, v in self.value.items()}
        return self.value


def encode(obj: Any) -> FieldValue:
    """Python value -> FieldValue. bool is checked before int (bool is an int subclass)."""
    if isinstance(obj, FieldValue):
        return obj
    if obj is None:
        return FieldValue(ValueKind.NULL)
    if isinstance(obj, bool):
        return FieldValue(ValueKind.BOOLEAN, obj)
    if isinstance(obj, int):
        return FieldValue(ValueKind.INTEGER, obj)
    if isinstance(obj, float):
        return FieldValue(ValueKind.DOUBLE, obj)
    if isinstance(obj, datetime):
        return FieldValue(ValueKind.TIMESTAMP, obj)
    if isinstance(obj, str):
        return FieldValue(ValueKind.STRING, obj)
    if isinstance(obj, Mapping):
        return FieldValue(ValueKind.MAP, encode_fields(obj))
    if isinstance(obj, (list, tuple)):
        return FieldValue(ValueKind.ARRAY, tuple(encode(v) for v in obj))
    return FieldValue(ValueKind.STRING, str(obj))


def encode_fields(obj: Mapping[str, Any]) -> dict[str, FieldValue]:
    return {str(k): encode(v) for k, v in obj.items()}


def fields_to_wire(fields: Mapping[str, FieldValue]) -> dict[str, Any]:
    return {k: encode(v).to_wire() for k, v in fields.items()}


def decode(raw: Mapping[str, Any]) -> FieldValue:
    """Wire value -> FieldValue. Raises ValueError for an unknown or empty wrapper."""
    if not raw:
        raise ValueError("empty Firestore value")
    key, payload = next(iter(raw.items()))
    try:
        kind = ValueKind(key)
    except ValueError:
        raise ValueError(f"unknown Firestore value type: {key}") from None
    if kind is ValueKind.NULL:
        return FieldValue(kind)
    if kind is ValueKind.INTEGER:
        return FieldValue(kind, int(payload))
    if kind is ValueKind.DOUBLE:
        return FieldValue(kind, float(payload))
    if kind is ValueKind.BOOLEAN:
        return FieldValue(kind, bool(payload))
    if kind is ValueKind.TIMESTAMP:
        parsed = parse_iso(payload)
        if parsed is None:
            raise ValueError(f"malformed timestampValue: {payload!r}")
        return FieldValue(kind, parsed)
    if kind is ValueKind.ARRAY:
        return FieldValue(kind, tuple(decode(v) for v in (payload or {}).get("values") or []))
    if kind is ValueKind.MAP:
        return FieldValue(kind, decode_fields((payload or {}).get("fields") or {}))
    return FieldValue(kind, payload)


def decode_fields(raw: Mapping[str, Any] | None) -> dict[str, FieldValue]:
    return {k: decode(v) for k, v in (raw or {}).items()}


# ---------------------------------------------------------------------------
# Accessors: typed read or None (never coerce across types)
# ---------------------------------------------------------------------------

def _get(fields: Mapping[str, FieldValue], key: str, kind: ValueKind) -> Any:
    fv = fields.get(key)
    if fv is None or fv.kind is not kind:
        return None
    return fv.value


def get_string(fields: Mapping[str, FieldValue], key: str) -> str | None:
    return _get(fields, key, ValueKind.STRING)


def get_timestamp(fields: Mapping[str, FieldValue], key: str) -> datetime | None:
    return _get(fields, key, ValueKind.TIMESTAMP)


def get_number(fields: Mapping[str, FieldValue], key: str) -> int | float | None:
    """integerValue or doubleValue."""
    v = _get(fields, key, ValueKind.INTEGER)
    if v is None:
        v = _get(fields, key, ValueKind.DOUBLE)
    return v
