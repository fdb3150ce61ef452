# tests/test_quiz.py
import pytest

from study_planner.quiz import (
    QuestionFeedback, QuizResult, QuizResultError, result_from_dict,
    result_to_percent, validate_quiz_result,
)


def test_result_to_percent():
    assert result_to_percent(QuizResult(score=4, total_questions=5)) == 80
    assert result_to_percent(QuizResult(score=2, total_questions=3)) == 67
    assert result_to_percent(QuizResult(score=5, total_questions=5)) == 100


def test_result_to_percent_empty_quiz():
    assert result_to_percent(QuizResult(score=0, total_questions=0)) == 0


def test_validate_accepts_matching_result():
    result = QuizResult(
        score=1, total_questions=2,
        feedbacks=(QuestionFeedback(1, True), QuestionFeedback(2, False)),
    )
    validate_quiz_result(result, [1, 2])


def test_validate_rejects_wrong_count():
    with pytest.raises(QuizResultError):
        validate_quiz_result(QuizResult(score=1, total_questions=3), [1, 2])


def test_validate_rejects_score_out_of_range():
    with pytest.raises(QuizResultError):
        validate_quiz_result(QuizResult(score=3, total_questions=2), [1, 2])


def test_validate_rejects_unknown_question_ids():
    result = QuizResult(score=1, total_questions=2, feedbacks=(QuestionFeedback(9, True),))
    with pytest.raises(QuizResultError, match="unknown question ids"):
        validate_quiz_result(result, [1, 2])


def test_result_from_dict_camel_case():
    result = result_from_dict({
        "score": 2,
        "totalQuestions": 3,
        "feedbacks": [
            {"questionId": 1, "isCorrect": True, "userAnswer": "A", "correctAnswer": "A", "explanation": "ok"},
        ],
        "generalAdvice": "Review chain rule",
    })
    assert result.total_questions == 3
    assert result.feedbacks[0].is_correct is True
    assert result.general_advice == "Review chain rule"


def test_result_from_dict_malformed():
    with pytest.raises(QuizResultError):
        result_from_dict({"score": 2})
    with pytest.raises(QuizResultError):
        result_from_dict({"score": "two", "total_questions": 3})
