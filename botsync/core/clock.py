"""UTC time helpers shared by both stores (ISO-8601 instants, millisecond precision, Z suffix)."""
from __future__ import annotations

import re
from datetime import datetime, timezone
from typing import Any, Callable

Clock = Callable[[], datetime]

# Firestore may return up to nanosecond precision; datetime only holds microseconds
_FRACTION = re.compile(r"\.(\d+)")


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(dt: datetime) -> str:
    """2026-10-19T08:30:00.123Z (same shape JS Date.toISOString produces, which the dashboard expects)."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: Any) -> datetime | None:
    """Parse an RFC 3339 instant; None when missing or malformed. Naive values are taken as UTC."""
    raw = str(value or "").strip()
    if not raw:
        return None
    raw = _FRACTION.sub(lambda m: "." + m.group(1)[:6].ljust(6, "0"), raw, count=1)
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)
