"""
handle request rate limits for the sign-in and quiz submission endpoints
table: rate_limit_buckets
columns:
    key: str (action + client ip or user id)
    request_count: int (requests seen in the current window)
    window_start: int (epoch seconds)
    expires_at: int (epoch seconds, end of the current window)

Counting is a conditional UPDATE, so concurrent requests on the same key can never both take
the last slot of a window. Limits are read from settings on every call.
"""

import logging
import time
from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import RateLimited
from app.models.rate_limits import RateLimitBucket

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimit:
    max_requests: int
    window_seconds: int


def _now() -> int:
    return int(time.time())


def get_rate_limit(name: str) -> RateLimit:
    if name == "auth":
        return RateLimit(settings.AUTH_RATE_LIMIT, settings.AUTH_RATE_WINDOW_SECONDS)
    if name == "quiz_submit":
        return RateLimit(settings.QUIZ_SUBMIT_RATE_LIMIT, settings.QUIZ_SUBMIT_RATE_WINDOW_SECONDS)
    raise ValueError(f"unknown rate limit: {name}")


def _count_hit(db: Session, key: str, limit: RateLimit, now: int) -> bool:
    """Take one slot in the live window, or open a new window over an expired one."""
    counted = (
        db.query(RateLimitBucket)
        .filter(
            RateLimitBucket.key == key,
            RateLimitBucket.expires_at > now,
            RateLimitBucket.request_count < limit.max_requests,
        )
        .update(
            {RateLimitBucket.request_count: RateLimitBucket.request_count + 1},
            synchronize_session=False,
        )
    )
    if counted:
        return True
    reopened = (
        db.query(RateLimitBucket)
        .filter(RateLimitBucket.key == key, RateLimitBucket.expires_at <= now)
        .update(
            {
                RateLimitBucket.request_count: 1,
                RateLimitBucket.window_start: now,
                RateLimitBucket.expires_at: now + limit.window_seconds,
            },
            synchronize_session=False,
        )
    )
    return bool(reopened)


def enforce_rate_limit(db: Session, key: str, limit: RateLimit) -> None:
    """
    Count one request against `key`.

    Raises:
        RateLimited: the current window for `key` is already full; retry_after is the number
            of seconds until it closes
    """
    for _ in range(2):
        now = _now()
        if _count_hit(db, key, limit, now):
            db.commit()
            return

        expires_at = (
            db.query(RateLimitBucket.expires_at).filter(RateLimitBucket.key == key).scalar()
        )
        if expires_at is not None:
            db.rollback()
            logger.info("rate limit reached for %s", key)
            raise RateLimited(retry_after=expires_at - now, message=f"rate limit reached: {key}")

        db.add(
            RateLimitBucket(
                key=key,
                request_count=1,
                window_start=now,
                expires_at=now + limit.window_seconds,
            )
        )
        try:
            db.commit()
        except IntegrityError:
            # first request of a concurrent pair; count against the bucket it created
            db.rollback()
            continue
        return

    raise RateLimited(retry_after=1, message=f"rate limit bucket contended: {key}")


def sweep_expired_buckets(db: Session) -> int:
    """Delete every closed window; returns the number of rows removed."""
    deleted = (
        db.query(RateLimitBucket)
        .filter(RateLimitBucket.expires_at <= _now())
        .delete(synchronize_session="fetch")
    )
    db.commit()
    if deleted:
        logger.info("swept %d expired rate limit bucket(s)", deleted)
    return deleted
