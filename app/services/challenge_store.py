"""
handle sign-in challenges (nonces) for wallet authentication
table: auth_challenges
columns:
    wallet_address: str (primary key, normalized)
    nonce: str (64 hex chars)
    message: str (text the wallet signs)
    issued_at: int (epoch seconds)
    expires_at: int (epoch seconds)

Only the latest challenge per wallet is valid. A challenge is single-use: consuming it
deletes the row whether or not the signature later checks out.
"""

import logging
import time
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import ChallengeExpired, ChallengeNotFound
from app.core.wallet_auth import build_challenge_message, generate_nonce
from app.models.auth import AuthChallenge

logger = logging.getLogger(__name__)


def _now() -> int:
    return int(time.time())


def issue_challenge(db: Session, wallet_address: str) -> AuthChallenge:
    """
    Create a fresh challenge for a (normalized) wallet address, replacing any pending one.

    Args:
        db: SQLAlchemy database session
        wallet_address: normalized wallet address

    Returns:
        The stored AuthChallenge (message is what the wallet must sign)
    """
    for attempt in range(2):
        nonce = generate_nonce()
        now = _now()
        values = {
            "nonce": nonce,
            "message": build_challenge_message(nonce),
            "issued_at": now,
            "expires_at": now + settings.NONCE_EXPIRY_SECONDS,
        }
        updated = (
            db.query(AuthChallenge)
            .filter(AuthChallenge.wallet_address == wallet_address)
            .update(values, synchronize_session="fetch")
        )
        if not updated:
            db.add(AuthChallenge(wallet_address=wallet_address, **values))
        try:
            db.commit()
        except IntegrityError:
            # a concurrent request inserted this wallet's first challenge
            db.rollback()
            if attempt:
                raise
            continue
        return db.query(AuthChallenge).filter(AuthChallenge.wallet_address == wallet_address).one()


def consume_challenge(
    db: Session, wallet_address: str, candidate_message: Optional[str] = None
) -> AuthChallenge:
    """
    Atomically take the pending challenge for a wallet out of the store.

    The delete is conditional on the nonce that was read, so when two requests race for the
    same challenge exactly one of them deletes the row and the other sees ChallengeNotFound.

    Args:
        db: SQLAlchemy database session
        wallet_address: normalized wallet address
        candidate_message: optional message the client claims to have signed; a mismatch
            burns the challenge like any other failure

    Returns:
        The consumed challenge, detached and already deleted from storage

    Raises:
        ChallengeNotFound: no pending challenge, lost the race, or message mismatch
        ChallengeExpired: the challenge existed but its TTL had passed
    """
    challenge = (
        db.query(AuthChallenge)
        .filter(AuthChallenge.wallet_address == wallet_address)
        .first()
    )
    if challenge is None:
        raise ChallengeNotFound("no pending challenge")

    db.expunge(challenge)
    deleted = (
        db.query(AuthChallenge)
        .filter(
            AuthChallenge.wallet_address == wallet_address,
            AuthChallenge.nonce == challenge.nonce,
        )
        .delete(synchronize_session=False)
    )
    db.commit()

    if deleted != 1:
        raise ChallengeNotFound("challenge already consumed")
    if challenge.expires_at < _now():
        raise ChallengeExpired("challenge expired")
    if candidate_message is not None and candidate_message != challenge.message:
        raise ChallengeNotFound("challenge message mismatch")

    return challenge


def sweep_expired_challenges(db: Session) -> int:
    """Delete every expired challenge; returns the number of rows removed."""
    deleted = (
        db.query(AuthChallenge)
        .filter(AuthChallenge.expires_at < _now())
        .delete(synchronize_session="fetch")
    )
    db.commit()
    if deleted:
        logger.info("swept %d expired challenge(s)", deleted)
    return deleted
