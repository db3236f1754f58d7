from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence

from .config import SearchConfig
from .date_pairs import DatePair
from .duration import format_minutes, parse_iso_duration
from .models import SearchResult, WebhookResult


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def best_overall(results: Sequence[SearchResult]) -> Optional[Dict[str, Any]]:
    """Cheapest per-pair selection across all pairs, with its pair attached."""
    best: Optional[Dict[str, Any]] = None
    for res in results:
        if not res.ok or not res.cheapest:
            continue
        if best is None or res.cheapest["price"] < best["price"]:
            best = {"pair": res.pair, **res.cheapest}
    return best


def _best_offer_dict(best: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        "pair": best["pair"].to_dict(),
        "price": best["price"],
        "currency": best["currency"],
        "offerId": best["offerId"],
        "validatingAirlineCodes": best["validatingAirlineCodes"],
        "itineraries": best["itineraries"],
    }


def build_report(
    cfg: SearchConfig,
    pairs: Sequence[DatePair],
    results: Sequence[SearchResult],
    best: Optional[Mapping[str, Any]],
    *,
    webhook: Optional[WebhookResult] = None,
    generated_at: Optional[str] = None,
) -> Dict[str, Any]:
    report: Dict[str, Any] = {
        "route": cfg.route,
        "variant": cfg.name,
        "cabin": cfg.travel_class,
        "constraints": {
            "maxStops": cfg.max_stops,
            "maxHoursPerDirection": cfg.max_minutes_per_direction / 60,
            "maxMinutesPerDirection": cfg.max_minutes_per_direction,
            "maxTotalMinutes": cfg.max_total_minutes,
            "durationInclusive": cfg.duration_inclusive,
            "stopsInclusive": cfg.stops_inclusive,
            "enforceCabin": cfg.enforce_cabin,
            "adults": cfg.adults,
            "currency": cfg.currency,
            "baseDates": {
                "departure": cfg.departure_date.isoformat(),
                "return": cfg.return_date.isoformat(),
            },
            "flexDays": cfg.flex_days,
            "pairCount": len(pairs),
        },
        "bestOffer": _best_offer_dict(best) if best else None,
        "searches": [res.to_dict() for res in results],
        "generatedAt": generated_at or utc_now_iso(),
    }
    if webhook is not None:
        report["webhook"] = webhook.to_dict()
    return report


def build_error_report(message: str) -> Dict[str, Any]:
    return {"error": message, "generatedAt": utc_now_iso()}


# ────────────────────────────────────────────────────────────────
# Skrócone podsumowanie dla arkusza
# ────────────────────────────────────────────────────────────────


def _endpoint_time(segment: Any, key: str) -> Optional[str]:
    if not isinstance(segment, Mapping):
        return None
    point = segment.get(key)
    return point.get("at") if isinstance(point, Mapping) else None


def _summarize_itinerary(itin: Mapping[str, Any]) -> Dict[str, Any]:
    raw_segments = itin.get("segments")
    segments: List[Any] = raw_segments if isinstance(raw_segments, list) else []
    carriers: List[str] = []
    for seg in segments:
        code = seg.get("carrierCode") if isinstance(seg, Mapping) else None
        if code and code not in carriers:
            carriers.append(code)

    minutes = parse_iso_duration(itin.get("duration"))
    return {
        "duration": format_minutes(minutes) if minutes is not None else itin.get("duration"),
        "durationMinutes": minutes,
        "stops": max(0, len(segments) - 1),
        "carriers": carriers,
        "firstDeparture": _endpoint_time(segments[0], "departure") if segments else None,
        "lastArrival": _endpoint_time(segments[-1], "arrival") if segments else None,
    }


def summarize_offer(best: Mapping[str, Any]) -> Dict[str, Any]:
    """Reduce the overall best offer to the fields the spreadsheet stores."""
    pair: DatePair = best["pair"]
    return {
        "price": f"{best['price']:.2f}",
        "currency": best["currency"],
        "departureDate": pair.departure_date.isoformat(),
        "returnDate": pair.return_date.isoformat(),
        "itineraries": [
            _summarize_itinerary(itin)
            for itin in best["itineraries"]
            if isinstance(itin, Mapping)
        ],
    }


def webhook_payload(
    secret: str, best: Optional[Mapping[str, Any]], generated_at: str
) -> Dict[str, Any]:
    return {
        "secret": secret,
        "generatedAt": generated_at,
        "bestOffer": summarize_offer(best) if best else None,
    }


__all__ = [
    "best_overall",
    "build_error_report",
    "build_report",
    "summarize_offer",
    "utc_now_iso",
    "webhook_payload",
]
