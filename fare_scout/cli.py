from __future__ import annotations

import json
import logging
import sys
from typing import Optional

import click
from pydantic import ValidationError

from .auth import AuthError
from .config import VARIANTS, ConfigurationError, get_settings, load_variant
from .date_pairs import build_flexible_pairs
from .notifier import SAMPLE_BEST_OFFER, post_summary
from .reporter import utc_now_iso
from .search_runner import run_search

logger = logging.getLogger(__name__)


def configure_logging(log_file: Optional[str]) -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.insert(0, logging.FileHandler(log_file))
    logging.basicConfig(
        level=logging.INFO,
        handlers=handlers,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@click.group()
@click.option("--log-file", default=None, help="Override LOG_FILE ('' disables the file log)")
def cli(log_file: Optional[str]) -> None:
    """Command line interface."""
    settings = get_settings()
    configure_logging(settings.log_file if log_file is None else log_file)


@cli.command()
@click.option("--variant", default=None, help="Preset name (defaults to FARE_SCOUT_VARIANT)")
@click.option("--departure", help="Base departure date (YYYY-MM-DD)")
@click.option("--return", "return_", help="Base return date (YYYY-MM-DD)")
@click.option("--flex", type=int, help="Flexibility window in days")
@click.option("--no-webhook", is_flag=True, help="Skip the spreadsheet post")
def run(
    variant: Optional[str],
    departure: Optional[str],
    return_: Optional[str],
    flex: Optional[int],
    no_webhook: bool,
) -> None:
    """Search all date pairs once and print the JSON report."""
    settings = get_settings()
    overrides = {}
    if departure:
        overrides["departure_date"] = departure
    if return_:
        overrides["return_date"] = return_
    if flex is not None:
        overrides["flex_days"] = flex
    if no_webhook:
        overrides["webhook"] = False

    try:
        cfg = load_variant(variant or settings.variant, **overrides)
    except ValidationError as exc:
        fields = ", ".join(str(err["loc"][0]) for err in exc.errors() if err.get("loc"))
        raise click.BadParameter(f"invalid value for {fields or 'search config'}") from exc
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc

    try:
        report = run_search(cfg, settings)
    except (ConfigurationError, AuthError) as exc:
        logger.error("Search aborted: %s", exc)
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(report, indent=2))


@cli.command()
@click.option("--variant", default=None, help="Preset name (defaults to FARE_SCOUT_VARIANT)")
def pairs(variant: Optional[str]) -> None:
    """Print the candidate date pairs without searching."""
    settings = get_settings()
    try:
        cfg = load_variant(variant or settings.variant)
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    for pair in build_flexible_pairs(
        cfg.departure_date,
        cfg.return_date,
        cfg.flex_days,
        require_return_after=cfg.require_return_after,
    ):
        click.echo(
            f"{pair.departure_date} → {pair.return_date} "
            f"(dep {pair.dep_offset:+d}, ret {pair.ret_offset:+d}, {pair.trip_days} days)"
        )


@cli.command()
def variants() -> None:
    """List the configured search presets."""
    for name, cfg in sorted(VARIANTS.items()):
        extra = " +webhook" if cfg.webhook else ""
        click.echo(f"{name}: {cfg.route} {cfg.travel_class}{extra}")


@cli.command("push-test")
def push_test() -> None:
    """Post a sample summary to the spreadsheet webhook."""
    settings = get_settings()
    if not settings.sheets_webapp_url:
        raise click.ClickException("Missing env var: SHEETS_WEBAPP_URL")
    payload = {
        "secret": settings.sheets_secret,
        "generatedAt": utc_now_iso(),
        "bestOffer": SAMPLE_BEST_OFFER,
    }
    result = post_summary(settings.sheets_webapp_url, payload, timeout=settings.http_timeout_s)
    click.echo(json.dumps(result.to_dict(), indent=2))
    if not result.ok:
        sys.exit(1)


if __name__ == "__main__":
    cli()
