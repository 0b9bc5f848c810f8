"""Firestore REST client: query / get / create / patch. Returns StoreResult, never raises for HTTP failures."""
import logging
from typing import Any, Mapping, Sequence
from urllib.parse import quote

import httpx

from botsync.config import Settings
from botsync.core.constants import FIRESTORE_BASE_URL
from botsync.core.results import AuthError, Ok, StoreResult
from botsync.services.auth.credentials import TokenProvider
from botsync.services.firestore.types import Document
from botsync.services.firestore.values import encode, encode_fields, fields_to_wire
from botsync.services.http import send_json

logger = logging.getLogger(__name__)


class FirestoreClient:
    """Document store adapter for one project's (default) database."""

    def __init__(
        self,
        settings: Settings,
        credentials: TokenProvider,
        *,
        http: httpx.Client | None = None,
        base_url: str = FIRESTORE_BASE_URL,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._http = http
        self._base_url = base_url.rstrip("/")

    @property
    def root(self) -> str:
        return self._settings.firestore_root

    def document_name(self, collection: str, doc_id: str) -> str:
        return f"{self.root}/{collection}/{doc_id}"

    def _send(self, method: str, url: str, **kwargs: Any) -> StoreResult:
        token = self._credentials.get_access_token()
        result = send_json(
            self._http, method, url, token=token, timeout=self._settings.http_timeout_seconds, **kwargs
        )
        if isinstance(result, AuthError) and result.status_code == 401:
            self._credentials.invalidate()
        return result

    def query(self, collection: str, equals: Mapping[str, Any], limit: int) -> StoreResult:
        """Ok(list[Document]) for documents where every field in `equals` matches, in server order."""
        filters = [
            {"fieldFilter": {"field": {"fieldPath": k}, "op": "EQUAL", "value": encode(v).to_wire()}}
            for k, v in equals.items()
        ]
        query: dict[str, Any] = {"from": [{"collectionId": collection}], "limit": limit}
        if len(filters) == 1:
            query["where"] = filters[0]
        elif filters:
            query["where"] = {"compositeFilter": {"op": "AND", "filters": filters}}
        result = self._send("post", f"{self._base_url}/{self.root}:runQuery", body={"structuredQuery": query})
        if not isinstance(result, Ok):
            return result
        # runQuery streams rows; rows without "document" only carry readTime
        rows = result.value if isinstance(result.value, list) else []
        return Ok([Document.from_wire(r["document"]) for r in rows if isinstance(r, dict) and r.get("document")])

    def get(self, collection: str, doc_id: str) -> StoreResult:
        """Ok(Document) or NotFound."""
        url = f"{self._base_url}/{self.root}/{collection}/{quote(doc_id, safe='')}"
        result = self._send("get", url, quiet_not_found=True)
        if isinstance(result, Ok) and isinstance(result.value, dict) and result.value.get("name"):
            return Ok(Document.from_wire(result.value))
        return result

    def create(self, collection: str, doc_id: str, fields: Mapping[str, Any]) -> StoreResult:
        """Create with an explicit id. AlreadyExists if the id is taken (nothing is overwritten)."""
        url = f"{self._base_url}/{self.root}/{collection}"
        body = {"fields": fields_to_wire(encode_fields(fields))}
        result = self._send("post", url, body=body, params={"documentId": doc_id})
        if isinstance(result, Ok) and isinstance(result.value, dict) and result.value.get("name"):
            return Ok(Document.from_wire(result.value))
        return result

    def patch(self, name: str, fields: Mapping[str, Any], mask: Sequence[str]) -> StoreResult:
        """Field-masked update of document `name`; fields outside `mask` are untouched."""
        url = f"{self._base_url}/{name}"
        params = [("updateMask.fieldPaths", p) for p in mask]
        body = {"fields": fields_to_wire(encode_fields(fields))}
        result = self._send("patch", url, body=body, params=params)
        if isinstance(result, Ok) and isinstance(result.value, dict) and result.value.get("name"):
            return Ok(Document.from_wire(result.value))
        return result
