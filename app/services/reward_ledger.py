"""
handle token rewards for qualifying events
table: rewards
columns:
    id: str (uuid)
    user_id: str
    course_id: str (null for referral rewards)
    type: str (course_completion, quiz_bonus, referral)
    amount: float
    status: str (pending -> confirmed | failed)
    tx_hash: str (set by the disbursement collaborator)
    failure_reason: str

Grants are idempotent on (user_id, course_id, type). The unique constraint on the table is
what guarantees it across workers; the keyed lock only keeps threads of one worker from
racing each other into the constraint.
"""

import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import InvalidRewardTransition
from app.core.locks import KeyedLock
from app.models.rewards import (
    REWARD_COURSE_COMPLETION,
    REWARD_QUIZ_BONUS,
    STATUS_CONFIRMED,
    STATUS_FAILED,
    STATUS_PENDING,
    Reward,
)

logger = logging.getLogger(__name__)

_grant_locks = KeyedLock()


def _find_reward(db: Session, user_id: str, course_id: str, reward_type: str) -> Optional[Reward]:
    return (
        db.query(Reward)
        .filter(
            Reward.user_id == user_id,
            Reward.course_id == course_id,
            Reward.type == reward_type,
        )
        .first()
    )


def _grant_once(
    db: Session, user_id: str, course_id: str, reward_type: str, amount: float
) -> Tuple[Reward, bool]:
    """Insert the reward unless one exists for the key. Returns (reward, created)."""
    with _grant_locks.hold(("reward", user_id, course_id, reward_type)):
        existing = _find_reward(db, user_id, course_id, reward_type)
        if existing is not None:
            return existing, False

        reward = Reward(
            user_id=user_id,
            course_id=course_id,
            type=reward_type,
            amount=float(amount),
            status=STATUS_PENDING,
        )
        db.add(reward)
        try:
            db.commit()
        except IntegrityError:
            # another worker inserted the same key between our read and our insert
            db.rollback()
            existing = _find_reward(db, user_id, course_id, reward_type)
            if existing is None:
                raise
            logger.info(
                "duplicate %s grant resolved to existing reward %s", reward_type, existing.id
            )
            return existing, False

    db.refresh(reward)
    logger.info(
        "granted %s reward %s: user=%s course=%s amount=%s",
        reward_type, reward.id, user_id, course_id, amount,
    )
    return reward, True


def grant_course_completion(
    db: Session, user_id: str, course_id: str, amount: float
) -> Tuple[Reward, bool]:
    """
    Grant the course-completion reward, or return the one already granted.

    Returns:
        (reward, created) - created is False when the reward already existed; the existing
        row is returned unchanged
    """
    return _grant_once(db, user_id, course_id, REWARD_COURSE_COMPLETION, amount)


def grant_quiz_bonus(
    db: Session, user_id: str, course_id: str, amount: float
) -> Tuple[Reward, bool]:
    """Same idempotency as grant_course_completion, keyed on the quiz_bonus type.
    Whether a submission deserves a bonus is the caller's decision."""
    return _grant_once(db, user_id, course_id, REWARD_QUIZ_BONUS, amount)


def _transition(db: Session, reward_id: str, status: str, **fields) -> Reward:
    reward = db.query(Reward).filter(Reward.id == reward_id).with_for_update().first()
    if reward is None:
        raise ValueError(f"reward not found: {reward_id}")
    if reward.status != STATUS_PENDING:
        db.rollback()
        raise InvalidRewardTransition(f"reward {reward_id} is {reward.status}, not pending")
    reward.status = status
    for key, value in fields.items():
        setattr(reward, key, value)
    db.commit()
    db.refresh(reward)
    return reward


def mark_confirmed(db: Session, reward_id: str, tx_hash: str) -> Reward:
    """pending -> confirmed, recording the disbursement transaction hash."""
    if not tx_hash:
        raise ValueError("tx_hash is required to confirm a reward")
    reward = _transition(db, reward_id, STATUS_CONFIRMED, tx_hash=tx_hash, failure_reason=None)
    logger.info("reward %s confirmed: tx=%s", reward_id, tx_hash)
    return reward


def mark_failed(db: Session, reward_id: str, reason: str) -> Reward:
    """pending -> failed. Terminal; the user sees the failed status."""
    reward = _transition(db, reward_id, STATUS_FAILED, failure_reason=(reason or "")[:500])
    logger.warning("reward %s failed: %s", reward_id, reason)
    return reward


def list_rewards(db: Session, user_id: str) -> List[Reward]:
    return (
        db.query(Reward)
        .filter(Reward.user_id == user_id)
        .order_by(Reward.created_at.desc())
        .all()
    )
