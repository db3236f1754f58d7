from __future__ import annotations

import logging
import random
import time
from typing import Callable, Optional

import requests

from .config import RetryPolicy, SearchConfig, Settings
from .date_pairs import DatePair
from .models import SearchResult

logger = logging.getLogger(__name__)

OFFERS_PATH = "/v2/shopping/flight-offers"


class TransportError(RuntimeError):
    """The offer search could not complete at the network level."""


class OfferTimeoutError(TransportError):
    """The offer search did not answer within the configured timeout."""


class AmadeusFetcher:
    """
    Client for Flight Offers Search v2 (*/v2/shopping/flight-offers*).
    """

    def __init__(
        self,
        base_url: str = "https://test.api.amadeus.com",
        *,
        origin: str,
        destination: str,
        travel_class: str = "BUSINESS",
        adults: int = 1,
        currency: str = "USD",
        max_results: int = 50,
        timeout: float = 8.0,
        retry_policy: RetryPolicy = "retry_after",
        max_retries: int = 2,
        retry_delay_s: float = 1.0,
        retry_after_cap_s: float = 5.0,
        backoff_base_s: float = 0.5,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.origin = origin
        self.destination = destination
        self.travel_class = travel_class
        self.adults = adults
        self.currency = currency
        self.max_results = max_results
        self.timeout = timeout
        self.retry_policy = retry_policy
        self.max_retries = max_retries
        self.retry_delay_s = retry_delay_s
        self.retry_after_cap_s = retry_after_cap_s
        self.backoff_base_s = backoff_base_s
        self._sleep = sleep

    @classmethod
    def from_config(cls, cfg: SearchConfig, settings: Settings, base_url: str, **kwargs) -> "AmadeusFetcher":
        return cls(
            base_url,
            origin=cfg.origin,
            destination=cfg.destination,
            travel_class=cfg.travel_class,
            adults=cfg.adults,
            currency=cfg.currency,
            max_results=cfg.max_results,
            timeout=settings.http_timeout_s,
            retry_policy=cfg.retry_policy,
            max_retries=cfg.max_retries,
            retry_delay_s=cfg.retry_delay_s,
            retry_after_cap_s=cfg.retry_after_cap_s,
            backoff_base_s=cfg.backoff_base_s,
            **kwargs,
        )

    # ──────────────────────────────────────────────────────────

    def params_for(self, pair: DatePair) -> dict:
        return {
            "originLocationCode": self.origin,
            "destinationLocationCode": self.destination,
            "departureDate": pair.departure_date.isoformat(),
            "returnDate": pair.return_date.isoformat(),
            "adults": str(self.adults),
            "travelClass": self.travel_class,
            "currencyCode": self.currency,
            "max": str(self.max_results),
        }

    def fetch_offers(self, pair: DatePair, token: str) -> SearchResult:
        """Search offers for one date pair.

        Non-2xx answers and unparseable bodies come back as a failed
        ``SearchResult``; timeouts and network failures raise
        ``OfferTimeoutError`` / ``TransportError``.
        """
        url = f"{self.base_url}{OFFERS_PATH}"
        params = self.params_for(pair)
        headers = {"Authorization": f"Bearer {token}"}

        attempt = 0
        while True:
            try:
                resp = requests.get(url, params=params, headers=headers, timeout=self.timeout)
            except requests.Timeout as exc:
                raise OfferTimeoutError(
                    f"Timed out after {self.timeout}s for {params['departureDate']}/{params['returnDate']}"
                ) from exc
            except requests.RequestException as exc:
                raise TransportError(str(exc)) from exc

            if resp.status_code == 429 and attempt < self.max_retries:
                delay = self._retry_delay(resp, attempt)
                attempt += 1
                logger.warning(
                    "Rate limited on %s→%s, retry %d/%d in %.1fs",
                    params["departureDate"],
                    params["returnDate"],
                    attempt,
                    self.max_retries,
                    delay,
                )
                self._sleep(delay)
                continue
            break

        if not 200 <= resp.status_code < 300:
            return SearchResult(
                pair,
                ok=False,
                error={"kind": "http", "status": resp.status_code, "body": _error_body(resp)},
            )

        try:
            data = resp.json()
        except ValueError as exc:
            return SearchResult(
                pair,
                ok=False,
                error={"kind": "parse", "status": resp.status_code, "message": f"Invalid JSON: {exc}"},
            )

        offers = data.get("data") if isinstance(data, dict) else None
        if not isinstance(offers, list):
            offers = []
        return SearchResult(pair, ok=True, offers=offers)

    def _retry_delay(self, resp: requests.Response, attempt: int) -> float:
        if self.retry_policy == "retry_after":
            hint = _retry_after_seconds(resp.headers.get("Retry-After"))
            if hint is None:
                return self.retry_delay_s
            return min(hint, self.retry_after_cap_s)
        if self.retry_policy == "backoff":
            return self.backoff_base_s * (2**attempt) + random.uniform(0, self.backoff_base_s)
        return self.retry_delay_s


def _retry_after_seconds(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return max(0.0, value)


def _error_body(resp: requests.Response):
    try:
        return resp.json()
    except ValueError:
        return resp.text


__all__ = ["AmadeusFetcher", "OfferTimeoutError", "TransportError"]
