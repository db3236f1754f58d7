from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

from .amadeus_fetcher import AmadeusFetcher, OfferTimeoutError, TransportError
from .auth import AuthError, TokenProvider, base_url
from .config import ConfigurationError, SearchConfig, Settings, get_settings, load_variant
from .date_pairs import DatePair, build_flexible_pairs
from .models import SearchResult, WebhookResult
from .notifier import post_summary
from .offer_filter import OfferConstraints, pick_cheapest
from .pool import map_bounded
from .reporter import (
    best_overall,
    build_error_report,
    build_report,
    utc_now_iso,
    webhook_payload,
)

logger = logging.getLogger(__name__)

_token_provider: Optional[TokenProvider] = None


# ────────────────────────────────────────────────────────────────
# Helper
# ────────────────────────────────────────────────────────────────


def get_token_provider(settings: Settings) -> TokenProvider:
    """Return the process-wide token provider, rebuilt if credentials change."""
    global _token_provider
    prov = _token_provider
    if (
        prov is None
        or prov.client_id != settings.amadeus_client_id
        or prov.client_secret != settings.amadeus_client_secret
        or prov.base_url != base_url(settings.amadeus_env)
    ):
        prov = TokenProvider(
            settings.amadeus_client_id,
            settings.amadeus_client_secret,
            settings.amadeus_env,
            timeout=settings.http_timeout_s,
        )
        _token_provider = prov
    return prov


def validate_config(cfg: SearchConfig, settings: Settings) -> None:
    settings.require_credentials()
    if cfg.webhook and not settings.sheets_webapp_url:
        raise ConfigurationError("Missing env var: SHEETS_WEBAPP_URL")


def search_pair(
    fetcher: AmadeusFetcher,
    pair: DatePair,
    token: str,
    constraints: OfferConstraints,
) -> SearchResult:
    try:
        result = fetcher.fetch_offers(pair, token)
    except OfferTimeoutError as exc:
        logger.warning("  Timeout for %s→%s: %s", pair.departure_date, pair.return_date, exc)
        return SearchResult(pair, ok=False, error={"kind": "timeout", "status": None, "message": str(exc)})
    except TransportError as exc:
        logger.warning("  Failed to fetch %s→%s: %s", pair.departure_date, pair.return_date, exc)
        return SearchResult(pair, ok=False, error={"kind": "transport", "status": None, "message": str(exc)})

    if not result.ok:
        logger.warning(
            "  %s→%s failed: %s",
            pair.departure_date,
            pair.return_date,
            result.error,
        )
        return result

    result.cheapest = pick_cheapest(result.offers, constraints)
    logger.info(
        "  %s→%s: %d offers, best=%s",
        pair.departure_date,
        pair.return_date,
        len(result.offers),
        result.cheapest["price"] if result.cheapest else None,
    )
    return result


# ────────────────────────────────────────────────────────────────
# Główna logika
# ────────────────────────────────────────────────────────────────


def run_search(
    cfg: SearchConfig,
    settings: Optional[Settings] = None,
    tokens: Optional[TokenProvider] = None,
    fetcher: Optional[AmadeusFetcher] = None,
) -> Dict[str, Any]:
    """Search every candidate date pair and report the cheapest valid offer.

    ``ConfigurationError`` and ``AuthError`` abort the whole run; failures
    for a single pair are recorded in that pair's entry.
    """
    settings = settings or get_settings()
    validate_config(cfg, settings)

    pairs = build_flexible_pairs(
        cfg.departure_date,
        cfg.return_date,
        cfg.flex_days,
        require_return_after=cfg.require_return_after,
    )
    logger.info("Searching %s %s over %d date pairs", cfg.route, cfg.travel_class, len(pairs))

    tokens = tokens or get_token_provider(settings)
    token = tokens.get_token()

    fetcher = fetcher or AmadeusFetcher.from_config(cfg, settings, tokens.base_url)
    constraints = OfferConstraints.from_config(cfg)

    results = map_bounded(
        pairs,
        lambda pair: search_pair(fetcher, pair, token, constraints),
        cfg.concurrency,
    )
    best = best_overall(results)
    if best:
        logger.info(
            "Cheapest valid offer %s %s on %s→%s",
            best["price"],
            best["currency"],
            best["pair"].departure_date,
            best["pair"].return_date,
        )
    else:
        logger.info("No valid offer across %d pairs", len(pairs))

    generated_at = utc_now_iso()
    webhook: Optional[WebhookResult] = None
    if cfg.webhook:
        webhook = post_summary(
            settings.sheets_webapp_url,
            webhook_payload(settings.sheets_secret, best, generated_at),
            timeout=settings.http_timeout_s,
        )

    return build_report(cfg, pairs, results, best, webhook=webhook, generated_at=generated_at)


def _json_response(status: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "statusCode": status,
        "headers": {"Content-Type": "application/json"},
        "body": json.dumps(body, indent=2),
    }


def handler(event: Optional[Dict[str, Any]] = None, context: Any = None) -> Dict[str, Any]:
    """Entry point for a scheduled serverless invocation."""
    event = event or {}
    try:
        settings = get_settings()
        cfg = load_variant(event.get("variant") or settings.variant)
        report = run_search(cfg, settings)
    except (ConfigurationError, AuthError) as exc:
        logger.error("Search aborted: %s", exc)
        return _json_response(500, build_error_report(str(exc)))
    except Exception as exc:
        logger.exception("Search failed")
        return _json_response(500, build_error_report(str(exc)))
    return _json_response(200, report)


__all__ = ["get_token_provider", "handler", "run_search", "search_pair", "validate_config"]
