from datetime import datetime
from typing import Optional

from app.schemas.my_base_model import CustomBaseModel


class CertificateResponse(CustomBaseModel):
    """Certificate as seen by its owner"""

    id: str = ""
    user_id: str = ""
    course_id: str = ""
    course_title: Optional[str] = None
    quiz_attempt_id: Optional[str] = None
    score: Optional[int] = None
    verification_code: str = ""
    tx_hash: Optional[str] = None
    issued_at: Optional[datetime] = None


class VerifiedCertificateResponse(CustomBaseModel):
    """Public view of a certificate"""

    id: str = ""
    verification_code: str = ""
    course_id: str = ""
    course_title: Optional[str] = None
    wallet_address: Optional[str] = None
    score: Optional[int] = None
    tx_hash: Optional[str] = None
    issued_at: Optional[datetime] = None


class VerificationResponse(CustomBaseModel):
    valid: bool = False
    certificate: Optional[VerifiedCertificateResponse] = None
