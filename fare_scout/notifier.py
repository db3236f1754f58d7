import logging
from typing import Any, Dict

import requests

from .models import WebhookResult

logger = logging.getLogger(__name__)


class WebhookError(RuntimeError):
    """The spreadsheet webhook could not be reached or rejected the post."""


# Shaped like a real summary; used by ``fare-scout push-test``.
SAMPLE_BEST_OFFER: Dict[str, Any] = {
    "price": "2430.20",
    "currency": "USD",
    "departureDate": "2026-07-22",
    "returnDate": "2026-08-10",
    "itineraries": [
        {
            "duration": "PT15H20M",
            "durationMinutes": 920,
            "stops": 1,
            "carriers": ["LH"],
            "firstDeparture": "2026-07-22T16:55:00",
            "lastArrival": "2026-07-23T14:15:00",
        },
        {
            "duration": "PT14H25M",
            "durationMinutes": 865,
            "stops": 1,
            "carriers": ["LX"],
            "firstDeparture": "2026-08-10T12:50:00",
            "lastArrival": "2026-08-10T22:15:00",
        },
    ],
}


def post_summary(url: str, payload: Dict[str, Any], *, timeout: float = 8.0) -> WebhookResult:
    """POST *payload* as JSON to the spreadsheet web app.

    Failures are returned in the result, never raised.
    """
    try:
        resp = requests.post(url, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        err = WebhookError(f"Webhook post failed: {exc}")
        logger.warning("%s", err)
        return WebhookResult(ok=False, error=str(err))

    text = resp.text or ""
    ok = 200 <= resp.status_code < 300
    logger.info("Webhook answered %s: %s", resp.status_code, text[:200])
    if not ok:
        return WebhookResult(
            ok=False,
            status=resp.status_code,
            response_text=text,
            error=str(WebhookError(f"Webhook returned HTTP {resp.status_code}")),
        )
    return WebhookResult(ok=True, status=resp.status_code, response_text=text)


__all__ = ["SAMPLE_BEST_OFFER", "WebhookError", "post_summary"]
