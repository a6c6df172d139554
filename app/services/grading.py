"""
Quiz grading.

grade() is a pure function over a quiz definition and a submitted answer mapping. It only
refuses submissions that leave questions unanswered; any other oddity (unknown option id,
non-string answer, answers for questions not in the quiz) simply counts as incorrect.
"""

from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence

from app.core.errors import IncompleteSubmission


@dataclass(frozen=True)
class QuestionDefinition:
    id: str
    text: str
    option_ids: frozenset
    correct_option_id: str
    explanation: Optional[str] = None


@dataclass(frozen=True)
class QuizDefinition:
    quiz_id: str
    passing_score: int
    questions: Sequence[QuestionDefinition] = ()


@dataclass
class QuestionFeedback:
    correct: bool
    correct_option_id: str
    explanation: Optional[str] = None


@dataclass
class GradeResult:
    score: int
    correct_count: int
    total_questions: int
    passed: bool
    feedback: Dict[str, QuestionFeedback] = field(default_factory=dict)


def quiz_definition_from_model(quiz: Any) -> QuizDefinition:
    """Build a QuizDefinition from a Quiz ORM row (with its questions loaded)."""
    questions: List[QuestionDefinition] = []
    for question in quiz.questions:
        option_ids = frozenset(
            str(option.get("id")) for option in (question.options or []) if isinstance(option, dict)
        )
        questions.append(
            QuestionDefinition(
                id=str(question.id),
                text=question.text,
                option_ids=option_ids,
                correct_option_id=str(question.correct_option_id),
                explanation=question.explanation,
            )
        )
    return QuizDefinition(
        quiz_id=str(quiz.id), passing_score=int(quiz.passing_score), questions=tuple(questions)
    )


def percent_score(correct_count: int, total_questions: int) -> int:
    """100 * correct / total, rounded half up (2.5 -> 3, not banker's rounding)."""
    if total_questions <= 0:
        return 0
    ratio = Decimal(100 * correct_count) / Decimal(total_questions)
    return int(ratio.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def grade(quiz: QuizDefinition, submitted_answers: Mapping[str, Any]) -> GradeResult:
    """
    Score a submission against the quiz answer key.

    Raises:
        IncompleteSubmission: one or more question ids have no entry in submitted_answers
    """
    missing = [q.id for q in quiz.questions if q.id not in submitted_answers]
    if missing:
        raise IncompleteSubmission(missing)

    correct_count = 0
    feedback: Dict[str, QuestionFeedback] = {}
    for question in quiz.questions:
        answer = submitted_answers[question.id]
        is_correct = (
            isinstance(answer, str)
            and answer in question.option_ids
            and answer == question.correct_option_id
        )
        if is_correct:
            correct_count += 1
        feedback[question.id] = QuestionFeedback(
            correct=is_correct,
            correct_option_id=question.correct_option_id,
            explanation=question.explanation,
        )

    total = len(quiz.questions)
    score = percent_score(correct_count, total)
    return GradeResult(
        score=score,
        correct_count=correct_count,
        total_questions=total,
        passed=score >= quiz.passing_score,
        feedback=feedback,
    )
