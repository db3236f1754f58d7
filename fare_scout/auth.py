from __future__ import annotations

import logging
import math
import time
from typing import Callable, Optional

import requests

logger = logging.getLogger(__name__)

PROD_BASE_URL = "https://api.amadeus.com"
TEST_BASE_URL = "https://test.api.amadeus.com"
TOKEN_PATH = "/v1/security/oauth2/token"
DEFAULT_EXPIRES_IN = 1799


class AuthError(RuntimeError):
    """The client-credentials exchange failed."""


def base_url(env: str | None) -> str:
    """Return the API host for *env* (``prod`` selects production)."""
    env = (env or "test").strip().lower()
    return PROD_BASE_URL if env in ("prod", "production") else TEST_BASE_URL


class TokenProvider:
    """
    OAuth2 client-credentials token, cached in memory until shortly before expiry.

    One instance lives for the life of the process, so a warm process reuses
    the token across runs. Concurrent callers on a cache miss may each
    fetch a token; the exchange is idempotent.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        env: str = "test",
        *,
        timeout: float = 8.0,
        skew_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.base_url = base_url(env)
        self.timeout = timeout
        self.skew_s = skew_s
        self._clock = clock
        self._token: Optional[str] = None
        self._expires_at: float = 0.0

    def get_token(self) -> str:
        if self._token and self._clock() < self._expires_at - self.skew_s:
            return self._token
        return self._fetch_token()

    def invalidate(self) -> None:
        self._token = None
        self._expires_at = 0.0

    def _fetch_token(self) -> str:
        if not self.client_id or not self.client_secret:
            raise AuthError("Missing client credentials")

        url = f"{self.base_url}{TOKEN_PATH}"
        try:
            resp = requests.post(
                url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise AuthError(f"OAuth request failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError:
            data = {}

        if not 200 <= resp.status_code < 300:
            raise AuthError(f"OAuth failed ({resp.status_code}): {data or resp.text[:200]}")
        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            raise AuthError(f"OAuth missing access_token: {data}")

        expires_in = _expires_in(data.get("expires_in"))
        self._token = token
        self._expires_at = self._clock() + expires_in
        logger.info("Access token acquired from %s, expires in %ss", self.base_url, int(expires_in))
        return token


def _expires_in(raw) -> float:
    if raw is None or raw == "":
        return float(DEFAULT_EXPIRES_IN)
    try:
        value = float(raw)
    except (TypeError, ValueError):
        value = float("nan")
    if not math.isfinite(value) or value <= 0:
        logger.warning("Unusable expires_in %r, assuming %ss", raw, DEFAULT_EXPIRES_IN)
        return float(DEFAULT_EXPIRES_IN)
    return value


__all__ = ["AuthError", "TokenProvider", "base_url"]
