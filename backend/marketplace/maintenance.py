"""Maintenance Jobs — scheduled sweeps run outside the API process (cron, one-off tasks).

Invariants:
    - Each job opens its own session via db.session.create_session_factory
    - Jobs reuse the same service functions as the admin endpoints

Design Decisions:
    - Subcommand CLI (python -m marketplace.maintenance <job>) so one cron entry per job
    - run_job takes a session factory so tests drive it against SQLite
"""

import argparse
import asyncio
import logging
import sys

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from marketplace.config import get_settings
from marketplace.db.session import create_session_factory
from marketplace.infrastructure.observability import setup_logging
from marketplace.services import dispute_service, trade_service

logger = logging.getLogger(__name__)

JOBS = ("expire-offers", "sla-check")


async def run_job(
    job: str, session_factory: async_sessionmaker[AsyncSession],
) -> dict:
    """Run one named job and return its summary."""
    async with session_factory() as db:
        if job == "expire-offers":
            return {"expired": await trade_service.expire_stale_offers(db)}
        if job == "sla-check":
            stats = await dispute_service.run_sla_check(db)
            return {
                "total": stats.total,
                "breached_response": stats.breached_response,
                "escalated": stats.escalated,
                "critical": stats.critical,
            }
    raise ValueError(f"Unknown maintenance job: {job}")


async def _main(job: str) -> dict:
    settings = get_settings()
    session_factory = create_session_factory(settings.database_url)
    try:
        return await run_job(job, session_factory)
    finally:
        await session_factory.kw["bind"].dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        prog="marketplace.maintenance", description="Run a marketplace maintenance job",
    )
    parser.add_argument("job", choices=JOBS)
    args = parser.parse_args(argv)

    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    summary = asyncio.run(_main(args.job))
    logger.info(f"Maintenance job {args.job} finished: {summary}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
