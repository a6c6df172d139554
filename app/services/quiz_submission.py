"""
Quiz submission pipeline: grade -> record attempt -> on pass, reward + certificate.

The attempt is committed before any grant, so a passing grade is durable even if a later
step fails; re-submitting then fills in whatever is missing without duplicating anything.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Mapping, Optional

from sqlalchemy.orm import Session, selectinload

from app.core.config import settings
from app.core.errors import CourseNotFound, QuizNotFound
from app.models.courses import Course, Enrollment, Quiz, QuizAttempt
from app.models.rewards import STATUS_PENDING, Certificate, Reward
from app.services import certificates, reward_ledger
from app.services.grading import GradeResult, grade, quiz_definition_from_model

logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    attempt: QuizAttempt
    grade: GradeResult
    reward: Optional[Reward] = None
    bonus_reward: Optional[Reward] = None
    certificate: Optional[Certificate] = None
    new_pending_reward_ids: List[str] = field(default_factory=list)


def get_quiz(db: Session, quiz_id: str) -> Quiz:
    quiz = (
        db.query(Quiz)
        .options(selectinload(Quiz.questions))
        .filter(Quiz.id == quiz_id)
        .first()
    )
    if quiz is None:
        raise QuizNotFound(f"quiz {quiz_id} not found")
    return quiz


def _complete_enrollment(db: Session, user_id: str, course_id: str) -> None:
    enrollment = (
        db.query(Enrollment)
        .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
        .first()
    )
    if enrollment is None or enrollment.status == "completed":
        return
    enrollment.status = "completed"
    enrollment.progress = 100
    enrollment.completed_at = datetime.now(timezone.utc)
    db.commit()


def submit_quiz(
    db: Session, user_id: str, quiz_id: str, answers: Mapping[str, Any]
) -> SubmissionResult:
    """
    Grade a submission for the user and issue the pass rewards exactly once.

    Raises:
        QuizNotFound: unknown quiz id
        CourseNotFound: quiz points at a missing course
        IncompleteSubmission: not every question answered (nothing is persisted)
    """
    quiz = get_quiz(db, quiz_id)
    course = db.query(Course).filter(Course.id == quiz.course_id).first()
    if course is None:
        raise CourseNotFound(f"course {quiz.course_id} not found")
    course_id, reward_amount, bonus_amount = course.id, course.reward_amount, course.bonus_amount

    result = grade(quiz_definition_from_model(quiz), answers)

    attempt = QuizAttempt(
        user_id=user_id,
        quiz_id=quiz.id,
        answers=dict(answers),
        score=result.score,
        correct_count=result.correct_count,
        total_questions=result.total_questions,
        passed=result.passed,
    )
    db.add(attempt)
    db.commit()
    db.refresh(attempt)
    logger.info(
        "quiz %s attempt %s by user %s: score=%d passed=%s",
        quiz.id, attempt.id, user_id, result.score, result.passed,
    )

    submission = SubmissionResult(attempt=attempt, grade=result)
    if not result.passed:
        return submission

    reward, created = reward_ledger.grant_course_completion(db, user_id, course_id, reward_amount)
    submission.reward = reward
    if created and reward.status == STATUS_PENDING and reward.amount > 0:
        submission.new_pending_reward_ids.append(reward.id)

    if bonus_amount and result.score >= settings.QUIZ_BONUS_SCORE:
        bonus, created = reward_ledger.grant_quiz_bonus(db, user_id, course_id, bonus_amount)
        submission.bonus_reward = bonus
        if created and bonus.status == STATUS_PENDING:
            submission.new_pending_reward_ids.append(bonus.id)

    certificate, _ = certificates.issue_certificate(
        db, user_id, course_id, quiz_attempt_id=attempt.id, score=result.score
    )
    submission.certificate = certificate

    _complete_enrollment(db, user_id, course_id)
    return submission
