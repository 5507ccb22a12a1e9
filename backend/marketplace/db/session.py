"""Standalone Session Factory — async sessions for code running outside FastAPI.

Invariants:
    - Same engine options as DatabaseSessionManager, with a small pool
    - Used by maintenance jobs (offer expiry, dispute SLA sweep) run from cron
"""

from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from marketplace.infrastructure.database import _engine_options


def create_session_factory(
    database_url: str, *, pool_size: int = 2, max_overflow: int = 0,
) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to a fresh engine; caller disposes the engine when done."""
    engine = create_async_engine(
        database_url, **_engine_options(database_url, pool_size, max_overflow),
    )
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
