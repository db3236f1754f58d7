from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Union

DateLike = Union[date, str]


@dataclass(frozen=True, slots=True)
class DatePair:
    departure_date: date
    return_date: date
    dep_offset: int = 0
    ret_offset: int = 0

    @property
    def trip_days(self) -> int:
        return (self.return_date - self.departure_date).days

    def to_dict(self) -> dict:
        return {
            "departureDate": self.departure_date.isoformat(),
            "returnDate": self.return_date.isoformat(),
            "delta": {"dep": self.dep_offset, "ret": self.ret_offset},
        }


def _as_date(value: DateLike) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def add_days(day: DateLike, delta: int) -> date:
    return _as_date(day) + timedelta(days=delta)


def build_flexible_pairs(
    departure: DateLike,
    return_: DateLike,
    flex_days: int = 1,
    *,
    require_return_after: bool = True,
) -> List[DatePair]:
    """Expand base dates by ±*flex_days* into candidate (departure, return) pairs.

    Pairs are ordered by departure offset, then return offset. With
    ``require_return_after`` pairs whose return is not strictly after the
    departure are dropped.
    """
    if flex_days < 0:
        raise ValueError("flex_days must not be negative")

    dep = _as_date(departure)
    ret = _as_date(return_)
    offsets = range(-flex_days, flex_days + 1)

    pairs: List[DatePair] = []
    for d_off in offsets:
        for r_off in offsets:
            pair = DatePair(add_days(dep, d_off), add_days(ret, r_off), d_off, r_off)
            if require_return_after and pair.return_date <= pair.departure_date:
                continue
            pairs.append(pair)
    return pairs


__all__ = ["DatePair", "add_days", "build_flexible_pairs"]
