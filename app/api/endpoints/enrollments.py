from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user
from app.db.session import get_db
import app.schemas.enrollment as schemas
from app.models.users import User
from app.services.enrollments import enroll, list_enrollments

router = APIRouter()
group_tags = ["Enrollments"]


@router.get(
    "/enrollments",
    tags=group_tags,
    response_model=List[schemas.EnrollmentResponse],
)
def get_my_enrollments(
    user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> List[schemas.EnrollmentResponse]:
    responses = []
    for item in list_enrollments(db, user.id):
        response = schemas.EnrollmentResponse.model_validate(item.enrollment)
        response.quiz_passed = item.quiz_passed
        response.failed_attempt_count = item.failed_attempt_count
        responses.append(response)
    return responses


@router.post(
    "/courses/{course_id}/enroll",
    tags=group_tags,
    response_model=schemas.EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
)
def enroll_in_course(
    course_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)
) -> schemas.EnrollmentResponse:
    return schemas.EnrollmentResponse.model_validate(enroll(db, user.id, course_id))
