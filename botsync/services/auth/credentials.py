"""
Service-account bearer tokens for Firestore and RTDB.

Signs a JWT assertion (RS256) with the service-account key and exchanges it at the OAuth
token endpoint. Tokens are cached per scope set until token_ttl_seconds (55 min by default,
tokens live 1h). Only one tick runs at a time, so the cache needs no locking.
"""
import logging
import time
from typing import Callable, Protocol, Sequence

import httpx
import jwt

from botsync.config import Settings
from botsync.core.constants import JWT_BEARER_GRANT, SCOPES
from botsync.core.errors import CredentialError
from botsync.services.http import client_scope

logger = logging.getLogger(__name__)

_ASSERTION_LIFETIME_SECONDS = 3600
# Refresh this long before the expiry the token endpoint reports
_EXPIRY_MARGIN_SECONDS = 60


class TokenProvider(Protocol):
    def get_access_token(self, scopes: Sequence[str] = SCOPES) -> str:
        ...

    def invalidate(self) -> None:
        ...


def normalize_private_key(raw: str) -> str:
    """PEM with real newlines. Raises CredentialError if the key is not PEM."""
    fixed = (raw or "").replace("\\n", "\n")
    if "PRIVATE KEY" not in fixed:
        raise CredentialError("SA_PRIVATE_KEY is not a valid PEM")
    return fixed


class ServiceAccountCredentials:
    """JWT-bearer token exchange with an in-memory cache keyed by scope set."""

    def __init__(
        self,
        settings: Settings,
        *,
        http: httpx.Client | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._settings = settings
        self._http = http
        self._clock = clock
        self._cache: dict[frozenset[str], tuple[str, float]] = {}

    def get_access_token(self, scopes: Sequence[str] = SCOPES) -> str:
        key = frozenset(scopes)
        now = self._clock()
        cached = self._cache.get(key)
        if cached and cached[1] > now:
            return cached[0]
        token, expires_in = self._exchange(self._sign_assertion(scopes, int(now)))
        ttl = self._settings.token_ttl_seconds
        if expires_in is not None:
            ttl = min(ttl, max(0, expires_in - _EXPIRY_MARGIN_SECONDS))
        self._cache[key] = (token, now + ttl)
        logger.info("Fetched access token for %s scopes (cached %ss)", len(key), ttl)
        return token

    def invalidate(self) -> None:
        """Drop cached tokens (e.g. after a 401) so the next call exchanges again."""
        self._cache.clear()

    def _sign_assertion(self, scopes: Sequence[str], iat: int) -> str:
        if not self._settings.sa_client_email:
            raise CredentialError("SA_CLIENT_EMAIL is not set")
        key = normalize_private_key(self._settings.sa_private_key)
        claims = {
            "iss": self._settings.sa_client_email,
            "scope": " ".join(scopes),
            "aud": self._settings.token_uri,
            "iat": iat,
            "exp": iat + _ASSERTION_LIFETIME_SECONDS,
        }
        try:
            token = jwt.encode(claims, key, algorithm="RS256", headers={"typ": "JWT"})
        except (ValueError, TypeError, jwt.PyJWTError) as e:
            raise CredentialError(f"Could not sign service-account assertion: {e}") from e
        if isinstance(token, bytes):
            token = token.decode("utf-8")
        return token

    def _exchange(self, assertion: str) -> tuple[str, int | None]:
        data = {"grant_type": JWT_BEARER_GRANT, "assertion": assertion}
        try:
            with client_scope(self._http, self._settings.http_timeout_seconds) as c:
                r = c.post(self._settings.token_uri, data=data, timeout=self._settings.http_timeout_seconds)
        except httpx.HTTPError as e:
            raise CredentialError(f"Token exchange failed: {e}") from e
        if r.status_code != 200:
            raise CredentialError(f"Token exchange failed: {r.status_code} {(r.text or '')[:500]}")
        try:
            payload = r.json()
        except ValueError as e:
            raise CredentialError("Token exchange returned non-JSON body") from e
        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            raise CredentialError("Token exchange response has no access_token")
        expires_in = payload.get("expires_in")
        return token, int(expires_in) if isinstance(expires_in, (int, float)) else None
