import pytest

from app.core.errors import IncompleteSubmission
from app.services.grading import (
    QuestionDefinition,
    QuizDefinition,
    grade,
    percent_score,
    quiz_definition_from_model,
)


def build_quiz(question_count: int = 5, passing_score: int = 70) -> QuizDefinition:
    questions = tuple(
        QuestionDefinition(
            id=f"q{i + 1}",
            text=f"Question {i + 1}?",
            option_ids=frozenset("abcd"),
            correct_option_id="a",
            explanation=f"why {i + 1}",
        )
        for i in range(question_count)
    )
    return QuizDefinition(quiz_id="quiz-1", passing_score=passing_score, questions=questions)


class TestGrade:
    def test_four_of_five_scores_eighty_and_passes(self):
        result = grade(build_quiz(), {"q1": "a", "q2": "a", "q3": "a", "q4": "a", "q5": "c"})

        assert result.score == 80
        assert result.correct_count == 4
        assert result.total_questions == 5
        assert result.passed is True
        assert result.feedback["q5"].correct is False
        assert result.feedback["q5"].correct_option_id == "a"
        assert result.feedback["q5"].explanation == "why 5"

    def test_score_equal_to_threshold_passes(self):
        result = grade(build_quiz(10, passing_score=70), {f"q{i + 1}": ("a" if i < 7 else "b") for i in range(10)})
        assert result.score == 70
        assert result.passed is True

    def test_score_below_threshold_fails(self):
        result = grade(build_quiz(), {"q1": "a", "q2": "a", "q3": "a", "q4": "b", "q5": "b"})
        assert result.score == 60
        assert result.passed is False

    def test_unknown_option_counts_as_incorrect(self):
        result = grade(build_quiz(), {"q1": "z", "q2": "a", "q3": "a", "q4": "a", "q5": "a"})
        assert result.correct_count == 4
        assert result.feedback["q1"].correct is False

    @pytest.mark.parametrize("answer", [None, 1, ["a"], {"id": "a"}])
    def test_non_string_answer_counts_as_incorrect(self, answer):
        answers = {"q1": answer, "q2": "a", "q3": "a", "q4": "a", "q5": "a"}
        assert grade(build_quiz(), answers).correct_count == 4

    def test_extra_answers_are_ignored(self):
        answers = {f"q{i + 1}": "a" for i in range(5)}
        answers["q99"] = "a"
        result = grade(build_quiz(), answers)
        assert result.score == 100
        assert result.total_questions == 5

    def test_missing_answers_are_rejected(self):
        with pytest.raises(IncompleteSubmission) as exc_info:
            grade(build_quiz(), {"q1": "a", "q2": "a", "q4": "a"})

        assert exc_info.value.status_code == 400
        assert exc_info.value.missing_question_ids == ["q3", "q5"]

    def test_empty_quiz_scores_zero(self):
        result = grade(QuizDefinition(quiz_id="empty", passing_score=0), {})
        assert result.score == 0
        assert result.total_questions == 0


class TestPercentScore:
    @pytest.mark.parametrize(
        "correct,total,expected",
        [
            (1, 8, 13),  # 12.5 rounds up
            (3, 8, 38),  # 37.5 rounds up
            (1, 3, 33),
            (2, 3, 67),
            (0, 5, 0),
            (5, 5, 100),
        ],
    )
    def test_rounds_half_up(self, correct, total, expected):
        assert percent_score(correct, total) == expected


def test_definition_from_model(quiz):
    definition = quiz_definition_from_model(quiz)

    assert definition.quiz_id == quiz.id
    assert definition.passing_score == 70
    assert [q.id for q in definition.questions] == ["q1", "q2", "q3", "q4", "q5"]
    assert definition.questions[0].option_ids == frozenset("abcd")
