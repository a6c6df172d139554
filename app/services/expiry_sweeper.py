"""
Periodic cleanup of expired challenges, sessions and rate limit windows.

Lookups already compare expires_at on every access, so the sweep only keeps the
tables from growing; nothing depends on it running on time.
"""

import asyncio
import logging
from typing import Callable, Optional

from sqlalchemy.orm import Session

from app.db.session import SessionLocal
from app.services.challenge_store import sweep_expired_challenges
from app.services.rate_limiter import sweep_expired_buckets
from app.services.session_issuer import sweep_expired_sessions

logger = logging.getLogger(__name__)


def sweep_once(session_factory: Callable[[], Session] = SessionLocal) -> int:
    db = session_factory()
    try:
        return (
            sweep_expired_challenges(db)
            + sweep_expired_sessions(db)
            + sweep_expired_buckets(db)
        )
    finally:
        db.close()


async def run_sweeper(interval_seconds: int, session_factory: Callable[[], Session] = SessionLocal) -> None:
    loop = asyncio.get_running_loop()
    while True:
        try:
            await loop.run_in_executor(None, sweep_once, session_factory)
        except Exception:
            logger.exception("[expiry-sweeper] sweep failed")
        await asyncio.sleep(interval_seconds)


def start_sweeper(interval_seconds: int) -> Optional[asyncio.Task]:
    if interval_seconds <= 0:
        return None
    logger.info("[expiry-sweeper] running every %ds", interval_seconds)
    return asyncio.create_task(run_sweeper(interval_seconds))
