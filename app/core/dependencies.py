"""
FastAPI Authentication Dependencies
This module provides FastAPI dependency functions that can be injected into route handlers
to extract and validate the bearer token from the Authorization header.
Usage in endpoints:
    @router.get("/protected")
    def protected_route(user: User = Depends(get_current_user)):
        return {"user": user.wallet_address}
Flow:
1. Client sends request with Authorization: Bearer <token> header
2. FastAPI calls get_current_user() dependency
3. extract_bearer_token() pulls the token out of the header
4. session_issuer.authenticate() validates the token and its session row
5. The User row is returned to the route handler
Any failure raises an InvalidSession subclass, rendered as 401.
"""

from typing import Optional

from fastapi import Depends, Header, Request
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidSession
from app.db.session import get_db
from app.models.users import User
from app.services.rate_limiter import enforce_rate_limit, get_rate_limit
from app.services.session_issuer import SessionIdentity, authenticate


def extract_bearer_token(authorization: Optional[str]) -> str:
    """
    Extract the token from an Authorization header value.
    Args:
        authorization: The Authorization header value (e.g., "Bearer eyJ...")
    Returns:
        The extracted token string
    Raises:
        InvalidSession: If the header is missing or not a Bearer credential
    """
    if not authorization:
        raise InvalidSession("authorization header missing")

    scheme, _, token = authorization.strip().partition(" ")
    token = token.strip()
    if scheme.lower() != "bearer" or not token:
        raise InvalidSession("invalid authorization header")
    return token


def get_bearer_token(
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> str:
    return extract_bearer_token(authorization)


def get_current_session(
    token: str = Depends(get_bearer_token), db: Session = Depends(get_db)
) -> SessionIdentity:
    return authenticate(db, token)


def get_current_user(
    identity: SessionIdentity = Depends(get_current_session), db: Session = Depends(get_db)
) -> User:
    """
    returning the User the session belongs to.
    """
    user = db.query(User).filter(User.id == identity.user_id).first()
    if user is None:
        raise InvalidSession("session user no longer exists")
    return user


def limit_by_client_ip(action: str, limit_name: str = "auth"):
    """
    Dependency factory: count the request against `<action>:<client ip>`.
    Usage:
        @router.post("/nonce", dependencies=[Depends(limit_by_client_ip("auth:nonce"))])
    """

    def dependency(request: Request, db: Session = Depends(get_db)) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        host = request.client.host if request.client else "unknown"
        enforce_rate_limit(db, f"{action}:{host}", get_rate_limit(limit_name))

    return dependency


def limit_by_user(action: str, limit_name: str):
    """Dependency factory: count the request against `<action>:<user id>` (after authentication)."""

    def dependency(user: User = Depends(get_current_user), db: Session = Depends(get_db)) -> None:
        if not settings.RATE_LIMIT_ENABLED:
            return
        enforce_rate_limit(db, f"{action}:{user.id}", get_rate_limit(limit_name))

    return dependency
