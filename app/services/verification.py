"""
Public certificate lookup. Read-only and unauthenticated.

Unknown and malformed codes produce the same answer, so the endpoint cannot be used to
learn anything about the code format.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from app.models.courses import Course
from app.models.rewards import Certificate
from app.models.users import User
from app.services.certificates import normalize_verification_code


@dataclass
class VerifiedCertificate:
    id: str
    verification_code: str
    course_id: str
    course_title: Optional[str]
    wallet_address: Optional[str]
    score: Optional[int]
    tx_hash: Optional[str]
    issued_at: datetime


@dataclass
class VerificationResult:
    valid: bool
    certificate: Optional[VerifiedCertificate] = None


def lookup(db: Session, code: str) -> VerificationResult:
    normalized = normalize_verification_code(code)
    if normalized is None:
        return VerificationResult(valid=False)

    row = (
        db.query(Certificate, Course.title, User.wallet_address)
        .outerjoin(Course, Course.id == Certificate.course_id)
        .outerjoin(User, User.id == Certificate.user_id)
        .filter(Certificate.verification_code == normalized)
        .first()
    )
    if row is None:
        return VerificationResult(valid=False)

    certificate, course_title, wallet_address = row
    return VerificationResult(
        valid=True,
        certificate=VerifiedCertificate(
            id=certificate.id,
            verification_code=certificate.verification_code,
            course_id=certificate.course_id,
            course_title=course_title,
            wallet_address=wallet_address,
            score=certificate.score,
            tx_hash=certificate.tx_hash,
            issued_at=certificate.issued_at,
        ),
    )
