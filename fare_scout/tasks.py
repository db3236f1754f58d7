"""tasks.py – harmonogram z APScheduler.

• raz dziennie o 06:00 UTC – ``search_runner.handler`` dla wariantu z FARE_SCOUT_VARIANT
"""

import logging

from apscheduler.schedulers.blocking import BlockingScheduler

from . import search_runner
from .cli import configure_logging
from .config import get_settings

logger = logging.getLogger(__name__)

sched = BlockingScheduler(timezone="UTC")


@sched.scheduled_job("cron", hour=6, minute=0)
def daily_search_job() -> None:
    """Run the configured search and log the response status."""
    response = search_runner.handler()
    logger.info("Daily search finished with status %s", response["statusCode"])


if __name__ == "__main__":
    configure_logging(get_settings().log_file)
    sched.start()
