from __future__ import annotations

from datetime import date
from functools import lru_cache
from typing import Dict, Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings

load_dotenv()


class ConfigurationError(RuntimeError):
    """Missing or inconsistent configuration, detected before any network call."""


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    amadeus_client_id: str = Field("", alias="AMADEUS_CLIENT_ID")
    amadeus_client_secret: str = Field("", alias="AMADEUS_CLIENT_SECRET")
    amadeus_env: str = Field("test", alias="AMADEUS_ENV")
    sheets_webapp_url: Optional[str] = Field(None, alias="SHEETS_WEBAPP_URL")
    sheets_secret: str = Field("", alias="SHEETS_SECRET")
    variant: str = Field("ams-bkk-biz-daily", alias="FARE_SCOUT_VARIANT")
    http_timeout_s: float = Field(8.0, alias="HTTP_TIMEOUT_S")
    log_file: str = Field("fare_scout.log", alias="LOG_FILE")

    @field_validator("amadeus_env")
    @classmethod
    def _env_lower(cls, v: str) -> str:
        return (v or "test").strip().lower()

    @field_validator("http_timeout_s")
    @classmethod
    def _timeout_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("HTTP_TIMEOUT_S must be greater than 0")
        return v

    @field_validator("sheets_webapp_url", mode="before")
    @classmethod
    def _blank_url_is_none(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def require_credentials(self) -> None:
        missing = [
            name
            for name, value in (
                ("AMADEUS_CLIENT_ID", self.amadeus_client_id),
                ("AMADEUS_CLIENT_SECRET", self.amadeus_client_secret),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise ConfigurationError(f"Missing env var: {', '.join(missing)}")


@lru_cache()
def get_settings() -> Settings:
    """Return application settings loaded from the environment."""
    return Settings()  # type: ignore[call-arg]


RetryPolicy = Literal["fixed", "retry_after", "backoff"]


class SearchConfig(BaseModel):
    """One scheduled search: route, dates, constraints and request tuning."""

    model_config = ConfigDict(frozen=True)

    name: str = "ams-bkk-biz-daily"
    origin: str = "AMS"
    destination: str = "BKK"
    travel_class: str = "BUSINESS"
    departure_date: date = date(2026, 7, 23)
    return_date: date = date(2026, 8, 11)
    flex_days: int = 1
    require_return_after: bool = True

    max_stops: int = 1
    max_minutes_per_direction: int = 20 * 60
    max_total_minutes: Optional[int] = None
    duration_inclusive: bool = True
    stops_inclusive: bool = True
    enforce_cabin: bool = True
    zero_duration_invalid: bool = True

    adults: int = 1
    currency: str = "USD"
    max_results: int = 50
    concurrency: int = 3

    retry_policy: RetryPolicy = "retry_after"
    max_retries: int = 2
    retry_delay_s: float = 1.0
    retry_after_cap_s: float = 5.0
    backoff_base_s: float = 0.5

    webhook: bool = False

    @field_validator("origin", "destination", "travel_class", "currency")
    @classmethod
    def _upper(cls, v: str) -> str:
        v = v.strip().upper()
        if not v:
            raise ValueError("must be a non-empty string")
        return v

    @field_validator("flex_days", "max_stops", "max_retries")
    @classmethod
    def _non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v

    @field_validator("concurrency", "adults", "max_results", "max_minutes_per_direction")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be greater than 0")
        return v

    @property
    def route(self) -> str:
        return f"{self.origin}-{self.destination} round-trip"


VARIANTS: Dict[str, SearchConfig] = {
    "ams-bkk-biz-daily": SearchConfig(),
    "ams-bkk-biz-sheets": SearchConfig(
        name="ams-bkk-biz-sheets",
        concurrency=2,
        retry_policy="backoff",
        webhook=True,
    ),
    "ams-bkk-biz-total20h": SearchConfig(
        name="ams-bkk-biz-total20h",
        max_total_minutes=20 * 60,
        duration_inclusive=False,
        concurrency=1,
        retry_policy="fixed",
    ),
    "ams-bkk-biz-trusted-cabin": SearchConfig(
        name="ams-bkk-biz-trusted-cabin",
        enforce_cabin=False,
        require_return_after=False,
    ),
}


def load_variant(name: str, **overrides) -> SearchConfig:
    """Return the preset called *name*, optionally with fields replaced."""
    try:
        cfg = VARIANTS[name]
    except KeyError:
        known = ", ".join(sorted(VARIANTS))
        raise ConfigurationError(f"Unknown variant {name!r} (known: {known})") from None
    if not overrides:
        return cfg
    return SearchConfig.model_validate({**cfg.model_dump(), **overrides})


__all__ = [
    "ConfigurationError",
    "RetryPolicy",
    "SearchConfig",
    "Settings",
    "VARIANTS",
    "get_settings",
    "load_variant",
]
