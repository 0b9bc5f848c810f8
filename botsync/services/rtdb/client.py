"""Firebase Realtime Database REST client (`{path}.json`). PATCH merges children at `path`."""
import logging
from typing import Any, Mapping

import httpx

from botsync.config import Settings
from botsync.core.results import AuthError, NotFound, Ok, StoreResult
from botsync.services.auth.credentials import TokenProvider
from botsync.services.http import send_json

logger = logging.getLogger(__name__)


def join_path(*parts: str) -> str:
    """'/bots/abc' from ('bots', 'abc'); empty parts are dropped."""
    return "/" + "/".join(p.strip("/") for p in parts if p and p.strip("/"))


class RealtimeClient:
    """Tree store adapter. get() returns NotFound for a missing node (RTDB answers 200 null)."""

    def __init__(
        self,
        settings: Settings,
        credentials: TokenProvider,
        *,
        http: httpx.Client | None = None,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._http = http

    def url(self, path: str) -> str:
        return f"{self._settings.firebase_database_url}{join_path(path)}.json"

    def _send(self, method: str, path: str, **kwargs: Any) -> StoreResult:
        token = self._credentials.get_access_token()
        result = send_json(
            self._http, method, self.url(path), token=token, timeout=self._settings.http_timeout_seconds, **kwargs
        )
        if isinstance(result, AuthError) and result.status_code == 401:
            self._credentials.invalidate()
        return result

    def get(self, path: str) -> StoreResult:
        result = self._send("get", path, quiet_not_found=True)
        if isinstance(result, Ok) and result.value is None:
            return NotFound(self.url(path))
        return result

    def patch(self, path: str, partial: Mapping[str, Any]) -> StoreResult:
        """Ok(merged children written). Keys set to None are removed by RTDB."""
        return self._send("patch", path, body=dict(partial))
