from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field

from app.schemas.certificate import CertificateResponse
from app.schemas.my_base_model import CamelModel, CustomBaseModel
from app.schemas.reward import RewardResponse


class QuestionOption(CustomBaseModel):
    id: str = ""
    text: str = ""


class PublicQuestion(CustomBaseModel):
    """Question as shown to the quiz taker: no answer key, no explanation."""

    id: str = ""
    text: str = ""
    options: List[QuestionOption] = []


class PublicQuiz(CustomBaseModel):
    id: str = ""
    course_id: str = ""
    title: str = ""
    passing_score: int = 0
    questions: List[PublicQuestion] = []


class SubmitQuizRequest(CamelModel):
    """answers: questionId -> optionId"""

    answers: Dict[str, Any] = Field(..., description="Mapping of question id to chosen option id")


class QuestionFeedbackResponse(CustomBaseModel):
    correct: bool = False
    correct_option_id: str = ""
    explanation: Optional[str] = None


class QuizAttemptResponse(CustomBaseModel):
    id: str = ""
    user_id: str = ""
    quiz_id: str = ""
    answers: Dict[str, Any] = {}
    score: int = 0
    passed: bool = False
    created_at: Optional[datetime] = None


class SubmitQuizResponse(CustomBaseModel):
    """Grade is always present; reward/certificate are null only when the attempt failed."""

    attempt: QuizAttemptResponse
    score: int = 0
    passed: bool = False
    correct_count: int = 0
    total_questions: int = 0
    feedback: Dict[str, QuestionFeedbackResponse] = {}
    reward: Optional[RewardResponse] = None
    bonus_reward: Optional[RewardResponse] = None
    certificate: Optional[CertificateResponse] = None
