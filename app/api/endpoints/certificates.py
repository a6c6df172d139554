from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.db.session import get_db
import app.schemas.certificate as schemas
from app.models.courses import Course
from app.models.users import User
from app.services.certificates import list_certificates
from app.services.verification import lookup

router = APIRouter()
group_tags = ["Certificates"]


@router.get(
    "",
    tags=group_tags,
    response_model=List[schemas.CertificateResponse],
)
def get_my_certificates(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> List[schemas.CertificateResponse]:
    certificates = list_certificates(db, user.id)
    titles = dict(
        db.query(Course.id, Course.title)
        .filter(Course.id.in_({c.course_id for c in certificates}))
        .all()
    ) if certificates else {}

    responses = []
    for certificate in certificates:
        response = schemas.CertificateResponse.model_validate(certificate)
        response.course_title = titles.get(certificate.course_id)
        responses.append(response)
    return responses


@router.get(
    "/verify/{code:path}",
    tags=group_tags,
    response_model=schemas.VerificationResponse,
)
def verify_certificate(code: str, db: Session = Depends(get_db)) -> schemas.VerificationResponse:
    """
    Public certificate check, no authentication.

    Always 200: unknown and malformed codes both return {"valid": false}.
    """
    result = lookup(db, code)
    if not result.valid:
        return schemas.VerificationResponse(valid=False)
    return schemas.VerificationResponse(
        valid=True,
        certificate=schemas.VerifiedCertificateResponse.model_validate(result.certificate),
    )
