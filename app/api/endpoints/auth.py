from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_bearer_token, get_current_user, limit_by_client_ip
from app.db.session import get_db
import app.schemas.auth as schemas
from app.models.users import User
from app.services import session_issuer
from app.services.wallet_login import login_with_signature, request_challenge

router = APIRouter()
group_tags = ["Auth"]


@router.post(
    "/nonce",
    tags=group_tags,
    response_model=schemas.NonceResponse,
    dependencies=[Depends(limit_by_client_ip("auth:nonce"))],
)
def request_nonce(body: schemas.NonceRequest, db: Session = Depends(get_db)) -> schemas.NonceResponse:
    """Generate and store a sign-in challenge for a wallet address.

    Any earlier unconsumed challenge for the same wallet stops being valid.
    """
    challenge = request_challenge(db, body.wallet_address)
    return schemas.NonceResponse(
        nonce=challenge.nonce,
        message=challenge.message,
        expires_at=challenge.expires_at,
    )


@router.post(
    "/verify",
    tags=group_tags,
    response_model=schemas.AuthResponse,
    dependencies=[Depends(limit_by_client_ip("auth:verify"))],
)
def verify_wallet(body: schemas.VerifyRequest, db: Session = Depends(get_db)) -> schemas.AuthResponse:
    """Verify the signed challenge and return a bearer token.

    Every failure (no challenge, expired challenge, wrong signer) is the same 401.
    """
    token, user = login_with_signature(db, body.wallet_address, body.signature, body.key)
    return schemas.AuthResponse(
        token=token,
        wallet_address=user.wallet_address,
        user=schemas.UserResponse.model_validate(user),
    )


@router.get(
    "/me",
    tags=group_tags,
    response_model=schemas.UserResponse,
)
def get_me(user: User = Depends(get_current_user)) -> schemas.UserResponse:
    return schemas.UserResponse.model_validate(user)


@router.post(
    "/logout",
    tags=group_tags,
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
def logout(
    user: User = Depends(get_current_user),
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> Response:
    session_issuer.revoke(db, token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
