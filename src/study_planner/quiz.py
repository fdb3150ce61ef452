"""Graded quiz results handed back by the external evaluator."""
from dataclasses import dataclass, field

from study_planner.sm2 import clamp_score, round_half_up


class QuizResultError(ValueError):
    """The evaluator returned a result that doesn't match the quiz."""


@dataclass(frozen=True)
class QuestionFeedback:
    question_id: int
    is_correct: bool
    user_answer: str = ""
    correct_answer: str = ""
    explanation: str = ""


@dataclass(frozen=True)
class QuizResult:
    score: int  # correct answers
    total_questions: int
    feedbacks: tuple = field(default_factory=tuple)
    general_advice: str = ""


def validate_quiz_result(result: QuizResult, question_ids: list) -> None:
    """Check counts and ids only; the grading itself is taken as given."""
    if result.total_questions != len(question_ids):
        raise QuizResultError(
            f"Expected {len(question_ids)} questions, evaluator reported {result.total_questions}"
        )
    if not 0 <= result.score <= result.total_questions:
        raise QuizResultError(f"Score {result.score} out of range 0-{result.total_questions}")
    unknown = {f.question_id for f in result.feedbacks} - set(question_ids)
    if unknown:
        raise QuizResultError(f"Feedback for unknown question ids: {sorted(unknown)}")


def result_to_percent(result: QuizResult) -> int:
    """Quiz score as a 0-100 percentage."""
    if result.total_questions <= 0:
        return 0
    return round_half_up(clamp_score(result.score / result.total_questions * 100))


def result_from_dict(data: dict) -> QuizResult:
    """Build a result from the evaluator's JSON (camelCase or snake_case keys)."""
    try:
        feedbacks = tuple(
            QuestionFeedback(
                question_id=int(f.get("questionId", f.get("question_id"))),
                is_correct=bool(f.get("isCorrect", f.get("is_correct"))),
                user_answer=f.get("userAnswer", f.get("user_answer", "")),
                correct_answer=f.get("correctAnswer", f.get("correct_answer", "")),
                explanation=f.get("explanation", ""),
            )
            for f in data.get("feedbacks", [])
        )
        return QuizResult(
            score=int(data["score"]),
            total_questions=int(data.get("totalQuestions", data.get("total_questions"))),
            feedbacks=feedbacks,
            general_advice=data.get("generalAdvice", data.get("general_advice", "")),
        )
    except (KeyError, TypeError, ValueError) as e:
        raise QuizResultError(f"Malformed quiz result: {e}") from e
