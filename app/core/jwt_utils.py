"""
JWT Token Utilities

This module handles JSON Web Token (JWT) encoding and decoding for wallet sessions.
After a user successfully verifies their wallet signature, the session issuer stores a
session row and wraps its id in a JWT that is used for subsequent authenticated API requests.

Flow:
1. User verifies wallet signature -> create_access_token() generates JWT for a new session id
2. User makes API request with JWT in Authorization header -> decode_token() validates it
3. The session issuer checks the `sid` claim against the session table (revocation, expiry)

The JWT contains:
- wallet_address: The authenticated wallet address
- sid: Random session id (256 bits), the key of the session row
- iat: Issued at timestamp
- exp: Expiration timestamp (configurable via ACCESS_TOKEN_EXPIRE_SECONDS)
"""

from typing import Any, Dict, Optional

import jwt

from app.core.config import settings
from app.core.errors import InvalidSession, SessionExpired


if not settings.ENCODE_KEY:
    raise RuntimeError("ENCODE_KEY is not configured")


def create_access_token(
    wallet_address: str,
    session_id: str,
    issued_at: int,
    expires_at: int,
    extra_claims: Optional[Dict[str, Any]] = None,
) -> str:
    """
    Create a JWT access token for a stored session.

    Args:
        wallet_address: The wallet address that was verified
        session_id: Id of the session row the token is bound to
        issued_at: Epoch seconds
        expires_at: Epoch seconds, same value as stored on the session row
        extra_claims: Optional additional claims to include in the JWT payload

    Returns:
        A JWT token string that can be used in Authorization: Bearer <token> header

    Raises:
        ValueError: If wallet_address or session_id is empty
    """
    if not wallet_address or not session_id:
        raise ValueError("wallet_address and session_id are required")

    payload: Dict[str, Any] = {
        "wallet_address": wallet_address,
        "sid": session_id,
        "iat": issued_at,
        "exp": expires_at,
    }
    if extra_claims:
        payload.update(extra_claims)

    return jwt.encode(payload, settings.ENCODE_KEY, algorithm=settings.ENCODE_ALGORITHM)


def decode_token(token: str, verify_exp: bool = True) -> Dict[str, Any]:
    """
    Verify and decode a JWT token.

    Args:
        token: The JWT token string from Authorization header
        verify_exp: Set False to read the claims of an expired token (logout)

    Returns:
        Decoded JWT payload dictionary containing wallet_address and sid

    Raises:
        SessionExpired: token signature is fine but `exp` has passed
        InvalidSession: token is missing, malformed, forged, or missing required claims
    """
    if not token:
        raise InvalidSession("missing token")

    try:
        payload = jwt.decode(
            token,
            settings.ENCODE_KEY,
            algorithms=[settings.ENCODE_ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except jwt.ExpiredSignatureError:
        raise SessionExpired("token expired")
    except jwt.InvalidTokenError:
        raise InvalidSession("invalid token")

    if "wallet_address" not in payload or "sid" not in payload:
        raise InvalidSession("invalid token payload")

    return payload
