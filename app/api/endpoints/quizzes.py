from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from sqlalchemy.orm import Session

from app.core.dependencies import get_current_user, limit_by_user
from app.db.session import get_db
import app.schemas.quiz as schemas
from app.models.courses import Course
from app.models.rewards import Certificate, Reward
from app.models.users import User
from app.schemas.certificate import CertificateResponse
from app.schemas.reward import RewardResponse
from app.services.disbursement import get_disbursement_client, run_disbursement
from app.services.quiz_submission import get_quiz, submit_quiz

router = APIRouter()
group_tags = ["Quiz"]


def _reward_response(reward: Optional[Reward]) -> Optional[RewardResponse]:
    return RewardResponse.model_validate(reward) if reward is not None else None


def _certificate_response(
    certificate: Optional[Certificate], course_title: Optional[str]
) -> Optional[CertificateResponse]:
    if certificate is None:
        return None
    response = CertificateResponse.model_validate(certificate)
    response.course_title = course_title
    return response


@router.get(
    "/{quiz_id}",
    tags=group_tags,
    response_model=schemas.PublicQuiz,
)
def get_public_quiz(quiz_id: str, db: Session = Depends(get_db)) -> schemas.PublicQuiz:
    """Quiz for the taker. Correct options and explanations are never included."""
    quiz = get_quiz(db, quiz_id)
    questions = [
        schemas.PublicQuestion(
            id=question.id,
            text=question.text,
            options=[
                schemas.QuestionOption(id=str(option.get("id", "")), text=str(option.get("text", "")))
                for option in (question.options or [])
                if isinstance(option, dict)
            ],
        )
        for question in quiz.questions
    ]
    return schemas.PublicQuiz(
        id=quiz.id,
        course_id=quiz.course_id,
        title=quiz.title,
        passing_score=quiz.passing_score,
        questions=questions,
    )


@router.post(
    "/{quiz_id}/submit",
    tags=group_tags,
    response_model=schemas.SubmitQuizResponse,
    dependencies=[Depends(limit_by_user("quiz_submit", "quiz_submit"))],
)
def submit_quiz_answers(
    quiz_id: str,
    body: schemas.SubmitQuizRequest,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> schemas.SubmitQuizResponse:
    """
    Grade a submission. On a pass the course reward and certificate are issued once per
    wallet and course; later passes return the same reward and certificate.

    Payout of new rewards starts after the response is sent.
    """
    result = submit_quiz(db, user.id, quiz_id, body.answers)

    if result.new_pending_reward_ids and get_disbursement_client() is not None:
        for reward_id in result.new_pending_reward_ids:
            background_tasks.add_task(run_disbursement, reward_id)

    course_title = None
    if result.certificate is not None:
        course_title = db.query(Course.title).filter(Course.id == result.certificate.course_id).scalar()

    grade = result.grade
    return schemas.SubmitQuizResponse(
        attempt=schemas.QuizAttemptResponse.model_validate(result.attempt),
        score=grade.score,
        passed=grade.passed,
        correct_count=grade.correct_count,
        total_questions=grade.total_questions,
        feedback={
            question_id: schemas.QuestionFeedbackResponse(
                correct=item.correct,
                correct_option_id=item.correct_option_id,
                explanation=item.explanation,
            )
            for question_id, item in grade.feedback.items()
        },
        reward=_reward_response(result.reward),
        bonus_reward=_reward_response(result.bonus_reward),
        certificate=_certificate_response(result.certificate, course_title),
    )
