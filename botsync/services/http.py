"""
JSON over HTTP for the Google REST APIs: lowest level, sends the request and maps the response
to a StoreResult. Never raises for HTTP or network failures; logs them with method/URL/status/body.
"""
import logging
from contextlib import contextmanager
from typing import Any, Iterator

import httpx

from botsync.core.results import AlreadyExists, AuthError, NotFound, Ok, StoreResult, TransportError

logger = logging.getLogger(__name__)

_BODY_LOG_LIMIT = 500


@contextmanager
def client_scope(http: httpx.Client | None, timeout: float) -> Iterator[httpx.Client]:
    """Use the injected client (tests, shared pool) or a short-lived one per call."""
    if http is not None:
        yield http
        return
    with httpx.Client(timeout=timeout) as c:
        yield c


def send_json(
    http: httpx.Client | None,
    method: str,
    url: str,
    *,
    token: str | None,
    timeout: float,
    body: Any = None,
    params: Any = None,
    quiet_not_found: bool = False,
) -> StoreResult:
    method = method.upper()
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    try:
        with client_scope(http, timeout) as c:
            r = c.request(method, url, json=body, params=params, headers=headers, timeout=timeout)
    except httpx.HTTPError as e:
        logger.error("%s %s -> transport error: %s", method, url, e)
        return TransportError(method, url, None, str(e))
    if r.is_success:
        if not r.content:
            return Ok(None)
        try:
            return Ok(r.json())
        except ValueError:
            return Ok(r.text)
    text = (r.text or "")[:_BODY_LOG_LIMIT]
    if r.status_code == 404:
        if not quiet_not_found:
            logger.warning("%s %s -> 404 %s", method, url, text)
        return NotFound(url)
    if r.status_code == 409:
        return AlreadyExists(url)
    logger.error("%s %s -> %s %s", method, url, r.status_code, text)
    if r.status_code in (401, 403):
        return AuthError(method, url, r.status_code, text)
    return TransportError(method, url, r.status_code, text)
