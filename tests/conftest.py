"""In-memory Firestore / RTDB fakes and wired components with a fixed clock."""
import threading
from datetime import datetime, timedelta, timezone
from typing import Any, Mapping, Sequence

import pytest

from botsync.core.results import AlreadyExists, NotFound, Ok, StoreResult, TransportError
from botsync.scheduler.batch import BatchRunner
from botsync.scheduler.lifecycle_job import ControlLoop, ProcessLock
from botsync.services.firestore.types import Document
from botsync.services.firestore.values import encode_fields
from botsync.services.lifecycle.bots import BotStatusSync
from botsync.services.lifecycle.engine import LifecycleEngine
from botsync.services.telemetry.aggregate import TelemetryAggregator

NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)
ROOT = "projects/test-project/databases/(default)/documents"


def minutes(n: int) -> timedelta:
    return timedelta(minutes=n)


class FakeFirestore:
    """Documents keyed by full resource name; values stored as plain Python (datetimes, dicts)."""

    def __init__(self) -> None:
        self.docs: dict[str, dict[str, Any]] = {}
        self.writes: list[tuple[str, str]] = []
        self.fail_patch: set[str] = set()
        self.fail_create = False
        self.race_create = False
        self.query_result: StoreResult | None = None

    def document_name(self, collection: str, doc_id: str) -> str:
        return f"{ROOT}/{collection}/{doc_id}"

    def add(self, collection: str, doc_id: str, **fields: Any) -> str:
        name = self.document_name(collection, doc_id)
        self.docs[name] = dict(fields)
        return name

    def fields(self, collection: str, doc_id: str) -> dict[str, Any] | None:
        return self.docs.get(self.document_name(collection, doc_id))

    def _doc(self, name: str) -> Document:
        return Document(name=name, fields=encode_fields(self.docs[name]))

    def query(self, collection: str, equals: Mapping[str, Any], limit: int) -> StoreResult:
        if self.query_result is not None:
            return self.query_result
        prefix = f"{ROOT}/{collection}/"
        out = [
            self._doc(name)
            for name, fields in self.docs.items()
            if name.startswith(prefix) and all(fields.get(k) == v for k, v in equals.items())
        ]
        return Ok(out[:limit])

    def get(self, collection: str, doc_id: str) -> StoreResult:
        name = self.document_name(collection, doc_id)
        if name not in self.docs:
            return NotFound(name)
        return Ok(self._doc(name))

    def create(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> StoreResult:
        name = self.document_name(collection, doc_id)
        if self.fail_create:
            return TransportError("POST", name, 500, "boom")
        if self.race_create:
            # Another writer created it between our get and create
            self.docs[name] = {"status": "active", "created_by": "other"}
            return AlreadyExists(name)
        if name in self.docs:
            return AlreadyExists(name)
        self.docs[name] = dict(fields)
        self.writes.append(("create", name))
        return Ok(self._doc(name))

    def patch(self, name: str, fields: Mapping[str, Any], mask: Sequence[str]) -> StoreResult:
        if name in self.fail_patch:
            return TransportError("PATCH", name, 503, "unavailable")
        doc = self.docs.setdefault(name, {})
        for path in mask:
            if path in fields:
                doc[path] = fields[path]
            else:
                doc.pop(path, None)
        self.writes.append(("patch", name))
        return Ok(self._doc(name))


class FakeRealtime:
    """Nested dict tree. PATCH merges children at path; None values delete, as RTDB does."""

    def __init__(self, tree: dict[str, Any] | None = None) -> None:
        self.tree: dict[str, Any] = tree or {}
        self.writes: list[str] = []
        self.fail_patch: set[str] = set()
        self.fail_get: set[str] = set()
        self.reads: list[str] = []

    @staticmethod
    def _parts(path: str) -> list[str]:
        return [p for p in path.strip("/").split("/") if p]

    def node(self, path: str) -> Any:
        cur: Any = self.tree
        for p in self._parts(path):
            if not isinstance(cur, dict) or p not in cur:
                return None
            cur = cur[p]
        return cur

    def set(self, path: str, value: Any) -> None:
        parts = self._parts(path)
        cur = self.tree
        for p in parts[:-1]:
            cur = cur.setdefault(p, {})
        cur[parts[-1]] = value

    def get(self, path: str) -> StoreResult:
        self.reads.append(path)
        if path in self.fail_get:
            return TransportError("GET", path, 503, "unavailable")
        value = self.node(path)
        if value is None:
            return NotFound(path)
        return Ok(value)

    def patch(self, path: str, partial: Mapping[str, Any]) -> StoreResult:
        if path in self.fail_patch:
            return TransportError("PATCH", path, 503, "unavailable")
        cur = self.tree
        for p in self._parts(path):
            cur = cur.setdefault(p, {})
        for k, v in partial.items():
            if v is None:
                cur.pop(k, None)
            else:
                cur[k] = v
        self.writes.append(path)
        return Ok(dict(partial))


@pytest.fixture
def fs() -> FakeFirestore:
    return FakeFirestore()


@pytest.fixture
def rt() -> FakeRealtime:
    return FakeRealtime()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def aggregator(rt) -> TelemetryAggregator:
    return TelemetryAggregator(rt)


@pytest.fixture
def engine(fs, rt, aggregator, clock) -> LifecycleEngine:
    return LifecycleEngine(fs, rt, aggregator, BotStatusSync(fs, rt, clock=clock), clock=clock)


@pytest.fixture
def runner(fs) -> BatchRunner:
    return BatchRunner(fs, limit=200)


@pytest.fixture
def tick_lock() -> threading.Lock:
    return threading.Lock()


@pytest.fixture
def control_loop(runner, engine, tick_lock, clock) -> ControlLoop:
    return ControlLoop(runner, engine, lock=ProcessLock(tick_lock), lock_timeout_seconds=0, clock=clock)
