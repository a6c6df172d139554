"""
handle course completion certificates
table: certificates
columns:
    id: str (uuid)
    user_id: str
    course_id: str
    quiz_attempt_id: str (attempt that earned it)
    score: int
    verification_code: str (public lookup code, unique, never reused)
    tx_hash: str (optional on-chain anchor)
    issued_at: datetime

At most one certificate per (user_id, course_id).
"""

import logging
import re
import secrets
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.locks import KeyedLock
from app.models.rewards import Certificate

logger = logging.getLogger(__name__)

# excludes 0/O and 1/I/L
CODE_ALPHABET = "ABCDEFGHJKMNPQRSTUVWXYZ23456789"
MAX_CODE_ATTEMPTS = 8

_issue_locks = KeyedLock()


def generate_verification_code(length: Optional[int] = None) -> str:
    length = length or settings.CERTIFICATE_CODE_LENGTH
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def normalize_verification_code(code: str) -> Optional[str]:
    """Uppercase and strip separators. Returns None when the result cannot be a code."""
    if not isinstance(code, str):
        return None
    cleaned = re.sub(r"[\s-]", "", code).upper()
    if not 4 <= len(cleaned) <= 32 or any(ch not in CODE_ALPHABET for ch in cleaned):
        return None
    return cleaned


def _find_certificate(db: Session, user_id: str, course_id: str) -> Optional[Certificate]:
    return (
        db.query(Certificate)
        .filter(Certificate.user_id == user_id, Certificate.course_id == course_id)
        .first()
    )


def issue_certificate(
    db: Session,
    user_id: str,
    course_id: str,
    quiz_attempt_id: Optional[str] = None,
    score: Optional[int] = None,
) -> Tuple[Certificate, bool]:
    """
    Issue the completion certificate for (user, course), or return the existing one.

    A verification code collision only triggers a fresh code; it never fails the issuance
    unless MAX_CODE_ATTEMPTS codes in a row collide.

    Returns:
        (certificate, created)
    """
    with _issue_locks.hold((user_id, course_id)):
        existing = _find_certificate(db, user_id, course_id)
        if existing is not None:
            return existing, False

        for attempt in range(1, MAX_CODE_ATTEMPTS + 1):
            certificate = Certificate(
                user_id=user_id,
                course_id=course_id,
                quiz_attempt_id=quiz_attempt_id,
                score=score,
                verification_code=generate_verification_code(),
            )
            db.add(certificate)
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                existing = _find_certificate(db, user_id, course_id)
                if existing is not None:
                    logger.info("duplicate certificate issue resolved to %s", existing.id)
                    return existing, False
                logger.warning("verification code collision, regenerating (attempt %d)", attempt)
                continue

            db.refresh(certificate)
            logger.info(
                "certificate %s issued: user=%s course=%s code=%s",
                certificate.id, user_id, course_id, certificate.verification_code,
            )
            return certificate, True

    raise RuntimeError("could not allocate a unique verification code")


def list_certificates(db: Session, user_id: str) -> List[Certificate]:
    return (
        db.query(Certificate)
        .filter(Certificate.user_id == user_id)
        .order_by(Certificate.issued_at.desc())
        .all()
    )
