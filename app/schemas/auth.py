from datetime import datetime
from typing import Optional

from pydantic import Field

from app.schemas.my_base_model import CamelModel, CustomBaseModel


class NonceRequest(CamelModel):
    """Request model for nonce generation - input validation"""

    wallet_address: str = Field(..., min_length=1, max_length=255, description="Wallet address")


class NonceResponse(CustomBaseModel):
    """Response model for nonce generation - output"""

    nonce: str = ""
    message: str = ""
    expires_at: int = 0


class VerifyRequest(CamelModel):
    """Request model for wallet verification - input validation"""

    wallet_address: str = Field(..., max_length=255, description="Wallet address")
    signature: str = Field(..., max_length=1024, description="Signature of the challenge message")
    key: Optional[str] = Field(
        None, max_length=512, description="Public key, required for Cardano wallets"
    )


class UserResponse(CustomBaseModel):
    """Authenticated user profile"""

    id: str = ""
    wallet_address: str = ""
    created_at: Optional[datetime] = None


class AuthResponse(CustomBaseModel):
    """Response model for authentication - output"""

    token: str
    token_type: str = "bearer"
    wallet_address: str
    user: UserResponse
