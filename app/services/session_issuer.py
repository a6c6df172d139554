"""
Bearer sessions for verified wallets.

A session is a row in auth_sessions plus a JWT that names it. Sessions have a fixed
lifetime from issue time; authenticating with a token never extends it.
"""

import logging
import secrets
import time
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidSession, SessionExpired
from app.core.jwt_utils import create_access_token, decode_token
from app.models.auth import AuthSession
from app.models.users import User

logger = logging.getLogger(__name__)

SESSION_ID_NUM_BYTES = 32


@dataclass
class SessionIdentity:
    session_id: str
    user_id: str
    wallet_address: str
    expires_at: int


def _now() -> int:
    return int(time.time())


def issue_session(db: Session, user: User) -> str:
    """Store a new session for `user` and return its bearer token."""
    now = _now()
    session_id = secrets.token_urlsafe(SESSION_ID_NUM_BYTES)
    wallet_address = user.wallet_address
    expires_at = now + settings.ACCESS_TOKEN_EXPIRE_SECONDS
    db.add(
        AuthSession(
            id=session_id,
            user_id=user.id,
            wallet_address=wallet_address,
            issued_at=now,
            expires_at=expires_at,
        )
    )
    db.commit()
    return create_access_token(
        wallet_address=wallet_address,
        session_id=session_id,
        issued_at=now,
        expires_at=expires_at,
    )


def authenticate(db: Session, token: str) -> SessionIdentity:
    """
    Resolve a bearer token to the wallet it was issued for.

    Raises:
        InvalidSession: malformed/forged token, or the session was revoked
        SessionExpired: the token or its session row is past expiry
    """
    payload = decode_token(token)
    session = db.query(AuthSession).filter(AuthSession.id == payload["sid"]).first()
    if session is None:
        raise InvalidSession("session not found or revoked")
    if session.expires_at <= _now():
        raise SessionExpired("session expired")
    if session.wallet_address != payload["wallet_address"]:
        raise InvalidSession("token does not match session")
    return SessionIdentity(
        session_id=session.id,
        user_id=session.user_id,
        wallet_address=session.wallet_address,
        expires_at=session.expires_at,
    )


def revoke(db: Session, token: str) -> None:
    """Invalidate a session immediately. Unknown, expired or garbage tokens are a no-op."""
    try:
        payload = decode_token(token, verify_exp=False)
    except InvalidSession:
        return
    deleted = (
        db.query(AuthSession)
        .filter(AuthSession.id == payload["sid"])
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("session revoked for %s", payload["wallet_address"])


def sweep_expired_sessions(db: Session) -> int:
    """Delete every expired session; returns the number of rows removed."""
    deleted = (
        db.query(AuthSession)
        .filter(AuthSession.expires_at <= _now())
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("swept %d expired session(s)", deleted)
    return deleted
