"""Data models used throughout the project."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .date_pairs import DatePair


@dataclass(slots=True)
class SearchResult:
    pair: DatePair
    ok: bool
    error: Optional[Dict[str, Any]] = None
    offers: List[dict] = field(default_factory=list)
    cheapest: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        if not self.ok:
            return {"pair": self.pair.to_dict(), "ok": False, "error": self.error}
        best = self.cheapest
        return {
            "pair": self.pair.to_dict(),
            "ok": True,
            "offerCount": len(self.offers),
            "bestForPair": (
                {
                    "price": best["price"],
                    "currency": best["currency"],
                    "offerId": best["offerId"],
                }
                if best
                else None
            ),
        }


@dataclass(slots=True)
class WebhookResult:
    ok: bool
    status: Optional[int] = None
    response_text: str = ""
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ok": self.ok,
            "status": self.status,
            "responseText": self.response_text,
            "error": self.error,
        }
