"""Protocols for the two stores. FirestoreClient / RealtimeClient implement them; tests use in-memory fakes."""
from typing import Any, Mapping, Protocol, Sequence

from botsync.core.results import StoreResult


class DocumentStore(Protocol):
    """Strongly consistent store (Firestore): source of truth for schedules, deployments, bots."""

    def document_name(self, collection: str, doc_id: str) -> str:
        ...

    def query(self, collection: str, equals: Mapping[str, Any], limit: int) -> StoreResult:
        """Ok(list[Document]) in server order, at most `limit`."""
        ...

    def get(self, collection: str, doc_id: str) -> StoreResult:
        ...

    def create(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> StoreResult:
        """Create only if absent; AlreadyExists otherwise."""
        ...

    def patch(self, name: str, fields: Mapping[str, Any], mask: Sequence[str]) -> StoreResult:
        ...


class TreeStore(Protocol):
    """Realtime tree (RTDB): live status for devices and dashboards."""

    def get(self, path: str) -> StoreResult:
        ...

    def patch(self, path: str, partial: Mapping[str, Any]) -> StoreResult:
        """Shallow merge of `partial` into the node at `path`."""
        ...
