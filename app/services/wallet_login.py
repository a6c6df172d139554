"""
Challenge/response login: nonce request and signed-nonce verification.
"""

import logging
from datetime import datetime, timezone
from typing import Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.errors import AuthenticationFailed, InvalidWalletAddress
from app.core.wallet_auth import normalize_address, verify_signature
from app.models.auth import AuthChallenge
from app.models.users import User
from app.services.challenge_store import consume_challenge, issue_challenge
from app.services.session_issuer import issue_session

logger = logging.getLogger(__name__)


def request_challenge(db: Session, wallet_address: str) -> AuthChallenge:
    """Raises InvalidWalletAddress for unsupported address formats."""
    return issue_challenge(db, normalize_address(wallet_address))


def get_or_create_user(db: Session, wallet_address: str) -> User:
    now = datetime.now(timezone.utc)
    user = db.query(User).filter(User.wallet_address == wallet_address).first()
    if user is not None:
        user.last_active_at = now
        db.commit()
        return user

    try:
        user = User(wallet_address=wallet_address, created_at=now, last_active_at=now)
        db.add(user)
        db.commit()
    except IntegrityError:
        # a concurrent login created the same wallet first
        db.rollback()
        user = db.query(User).filter(User.wallet_address == wallet_address).one()
    else:
        logger.info("new wallet registered: %s", wallet_address)
    return user


def login_with_signature(
    db: Session, wallet_address: str, signature: str, public_key: Optional[str] = None
) -> Tuple[str, User]:
    """
    Consume the wallet's pending challenge and exchange a valid signature for a session.

    The challenge is burned before the signature is checked, so a nonce can never be
    tried twice.

    Returns:
        (bearer token, user)

    Raises:
        ChallengeNotFound, ChallengeExpired: no usable challenge
        AuthenticationFailed: bad address or signature
    """
    try:
        address = normalize_address(wallet_address)
    except InvalidWalletAddress:
        raise AuthenticationFailed("unsupported address format")

    challenge = consume_challenge(db, address)
    if not verify_signature(address, challenge.message, signature, public_key):
        raise AuthenticationFailed("signature does not match wallet")

    user = get_or_create_user(db, address)
    token = issue_session(db, user)
    return token, user
