from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Optional

from .config import SearchConfig
from .duration import parse_iso_duration


@dataclass(frozen=True, slots=True)
class OfferConstraints:
    max_stops: int = 1
    max_minutes_per_direction: int = 20 * 60
    travel_class: str = "BUSINESS"
    enforce_cabin: bool = True
    duration_inclusive: bool = True
    stops_inclusive: bool = True
    zero_duration_invalid: bool = True
    max_total_minutes: Optional[int] = None

    @classmethod
    def from_config(cls, cfg: SearchConfig) -> "OfferConstraints":
        return cls(
            max_stops=cfg.max_stops,
            max_minutes_per_direction=cfg.max_minutes_per_direction,
            travel_class=cfg.travel_class,
            enforce_cabin=cfg.enforce_cabin,
            duration_inclusive=cfg.duration_inclusive,
            stops_inclusive=cfg.stops_inclusive,
            zero_duration_invalid=cfg.zero_duration_invalid,
            max_total_minutes=cfg.max_total_minutes,
        )


DEFAULT_CONSTRAINTS = OfferConstraints()


# ────────────────────────────────────────────────────────────────
# 1.  Walidacja pojedynczej oferty
# ────────────────────────────────────────────────────────────────


def offer_is_all_cabin(offer: Mapping[str, Any], travel_class: str) -> bool:
    """Every priced segment of every traveler must be in *travel_class*."""
    tps = offer.get("travelerPricings")
    if not isinstance(tps, list) or not tps:
        return False

    wanted = travel_class.upper()
    for tp in tps:
        fds = tp.get("fareDetailsBySegment") if isinstance(tp, Mapping) else None
        if not isinstance(fds, list) or not fds:
            return False
        for seg in fds:
            cabin = seg.get("cabin") if isinstance(seg, Mapping) else None
            if str(cabin or "").upper() != wanted:
                return False
    return True


def _within_limit(value: int, limit: int, inclusive: bool) -> bool:
    return value <= limit if inclusive else value < limit


def offer_meets_stops_and_duration(
    offer: Mapping[str, Any], constraints: OfferConstraints = DEFAULT_CONSTRAINTS
) -> bool:
    """Round trip with two itineraries, each within the stop and duration caps."""
    itineraries = offer.get("itineraries")
    if not isinstance(itineraries, list) or len(itineraries) != 2:
        return False

    total_minutes = 0
    for itin in itineraries:
        if not isinstance(itin, Mapping):
            return False
        segments = itin.get("segments")
        if not isinstance(segments, list) or not segments:
            return False
        if not _within_limit(len(segments) - 1, constraints.max_stops, constraints.stops_inclusive):
            return False

        minutes = parse_iso_duration(itin.get("duration"))
        if minutes is None:
            return False
        if minutes == 0 and constraints.zero_duration_invalid:
            return False
        if not _within_limit(
            minutes, constraints.max_minutes_per_direction, constraints.duration_inclusive
        ):
            return False
        total_minutes += minutes

    if constraints.max_total_minutes is not None:
        return total_minutes < constraints.max_total_minutes
    return True


def is_valid(
    offer: Mapping[str, Any], constraints: OfferConstraints = DEFAULT_CONSTRAINTS
) -> bool:
    if not isinstance(offer, Mapping):
        return False
    if not offer_meets_stops_and_duration(offer, constraints):
        return False
    if constraints.enforce_cabin and not offer_is_all_cabin(offer, constraints.travel_class):
        return False
    return True


# ────────────────────────────────────────────────────────────────
# 2.  Wybór najtańszej oferty
# ────────────────────────────────────────────────────────────────


def offer_price(offer: Mapping[str, Any]) -> Optional[float]:
    """Return ``price.grandTotal`` (or ``price.total``) as a finite float."""
    price = offer.get("price")
    if not isinstance(price, Mapping):
        return None
    raw = price.get("grandTotal")
    if raw is None:
        raw = price.get("total")
    if raw is None or isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    return value if math.isfinite(value) else None


def pick_cheapest(
    offers: Iterable[Mapping[str, Any]],
    constraints: OfferConstraints = DEFAULT_CONSTRAINTS,
) -> Optional[dict]:
    """Return the cheapest valid offer, first seen wins on equal price."""
    best: Optional[dict] = None

    for offer in offers:
        if not is_valid(offer, constraints):
            continue
        price = offer_price(offer)
        if price is None:
            continue
        if best is None or price < best["price"]:
            best = {
                "price": price,
                "currency": offer["price"].get("currency") or "USD",
                "offerId": offer.get("id"),
                "validatingAirlineCodes": offer.get("validatingAirlineCodes") or [],
                "itineraries": offer.get("itineraries") or [],
            }
    return best


__all__ = [
    "DEFAULT_CONSTRAINTS",
    "OfferConstraints",
    "is_valid",
    "offer_is_all_cabin",
    "offer_meets_stops_and_duration",
    "offer_price",
    "pick_cheapest",
]
