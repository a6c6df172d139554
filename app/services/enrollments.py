from dataclasses import dataclass
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from app.core.errors import AlreadyEnrolled, CourseNotFound
from app.models.courses import Course, Enrollment, Quiz, QuizAttempt


@dataclass
class EnrollmentStatus:
    enrollment: Enrollment
    quiz_passed: bool
    failed_attempt_count: int


def enroll(db: Session, user_id: str, course_id: str) -> Enrollment:
    if db.query(Course.id).filter(Course.id == course_id).first() is None:
        raise CourseNotFound(f"course {course_id} not found")
    enrollment = Enrollment(user_id=user_id, course_id=course_id)
    db.add(enrollment)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise AlreadyEnrolled(f"user {user_id} already enrolled in {course_id}")
    db.refresh(enrollment)
    return enrollment


def list_enrollments(db: Session, user_id: str) -> List[EnrollmentStatus]:
    enrollments = (
        db.query(Enrollment)
        .options(joinedload(Enrollment.course))
        .filter(Enrollment.user_id == user_id)
        .order_by(Enrollment.enrolled_at.desc())
        .all()
    )
    attempts = (
        db.query(Quiz.course_id, QuizAttempt.passed)
        .join(Quiz, Quiz.id == QuizAttempt.quiz_id)
        .filter(QuizAttempt.user_id == user_id)
        .all()
    )
    passed_courses = {course_id for course_id, passed in attempts if passed}
    failed_counts: dict = {}
    for course_id, passed in attempts:
        if not passed:
            failed_counts[course_id] = failed_counts.get(course_id, 0) + 1

    return [
        EnrollmentStatus(
            enrollment=enrollment,
            quiz_passed=enrollment.course_id in passed_courses,
            failed_attempt_count=failed_counts.get(enrollment.course_id, 0),
        )
        for enrollment in enrollments
    ]
