"""Run the library export from cron, systemd timers or a terminal.

Example usages::

    # Commit the export once if it changed.
    python -m spotify_backup.cli

    # Print the CSV that would be committed.
    python -m spotify_backup.cli --preview

    # Stay in the foreground and export at the top of every hour.
    python -m spotify_backup.cli --hourly
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional

from spotify_backup.core.config import get_settings
from spotify_backup.core.logging import configure_logging
from spotify_backup.dependencies import get_library_sync_job, get_oauth_session
from spotify_backup.models.outcomes import SyncOutcome, SyncStatus

EXIT_OK = 0
EXIT_UNAUTHENTICATED = 1
EXIT_FAILURE = 2

logger = logging.getLogger(__name__)


def _exit_code(outcome: SyncOutcome) -> int:
    if outcome.ok:
        return EXIT_OK
    if outcome.status in (SyncStatus.UNAUTHENTICATED, SyncStatus.REFRESH_FAILED):
        return EXIT_UNAUTHENTICATED
    return EXIT_FAILURE


def seconds_until_next_hour(now: datetime) -> float:
    """Seconds from ``now`` to the next wall-clock hour boundary."""
    next_hour = now.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)
    return (next_hour - now).total_seconds()


async def run_once(*, preview: bool = False) -> SyncOutcome:
    """Execute one trigger: load the session fresh and run the job."""
    session = get_oauth_session()
    job = get_library_sync_job()
    if preview:
        return await job.preview(session)
    return await job.sync(session)


async def run_hourly(
    *,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    max_runs: Optional[int] = None,
) -> None:
    """Run at the top of each hour; failures are logged and the loop continues."""
    runs = 0
    while max_runs is None or runs < max_runs:
        delay = seconds_until_next_hour(clock())
        logger.debug("waiting %.0f seconds until next hour", delay)
        await sleep(delay)
        runs += 1

        logger.info("processing backup")
        try:
            outcome = await run_once()
        except Exception:
            logger.exception("Failed processing backup; retrying next hour")
            continue
        if outcome.ok:
            logger.info("backup finished: %s", outcome.message)
        else:
            logger.error("backup failed (%s): %s", outcome.status.value, outcome.message)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--preview", action="store_true", help="Print the CSV instead of committing it.")
    mode.add_argument("--hourly", action="store_true", help="Export at the top of every hour until stopped.")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)

    if args.hourly:
        try:
            asyncio.run(run_hourly())
        except KeyboardInterrupt:
            return EXIT_OK
        return EXIT_OK

    outcome = asyncio.run(run_once(preview=args.preview))
    if args.preview and outcome.ok:
        sys.stdout.write(outcome.document or "")
    elif outcome.ok:
        logger.info("%s (%s)", outcome.message, outcome.html_url or outcome.fingerprint)
    else:
        logger.error("%s: %s", outcome.status.value, outcome.message)
    return _exit_code(outcome)


if __name__ == "__main__":  # pragma: no cover - manual invocation
    sys.exit(main())
