"""Score reading attempts and derive band scores and feedback.

Everything here is a pure function of its inputs. Answers are matched to
questions by position: ``answers[i]`` is scored against ``questions[i]``.
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Sequence

from .errors import ReadingValidationError
from .reading_prompts import DIFFICULTIES, QUESTION_TYPES

ANSWERS_PER_ATTEMPT = 10
STRENGTH_THRESHOLD = 70
WEAKNESS_THRESHOLD = 50
GENERAL_ADVICE_THRESHOLD = 60

QUESTION_TYPE_LABELS: Dict[str, str] = {
    "detail": "detail-finding",
    "main_idea": "main idea identification",
    "inference": "inference making",
    "vocabulary": "vocabulary understanding",
    "reference": "reference tracking",
}

GENERAL_RECOMMENDATIONS = (
    "Increase daily reading practice with academic texts",
    "Work on time management during reading tests",
)

OVERALL_COMMENTS = (
    (80, "Excellent performance! You demonstrate strong reading comprehension skills."),
    (60, "Good performance with room for improvement in specific areas."),
    (40, "Adequate performance, but significant improvement needed for IELTS success."),
)
LOWEST_COMMENT = "Needs substantial improvement. Focus on fundamental reading skills."


def band_score(percentage: float) -> int:
    return max(1, min(9, math.floor(percentage / 10)))


def running_average(old_average: float, count: int, new_value: float) -> float:
    """Fold ``new_value`` into an average that now covers ``count`` samples."""

    if count <= 0:
        raise ValueError("count must be positive")
    return round((old_average * (count - 1) + new_value) / count, 2)


def _empty_breakdown(keys: Sequence[str]) -> Dict[str, Dict[str, int]]:
    return {key: {"correct": 0, "total": 0} for key in keys}


def score_answers(
    questions: Sequence[dict],
    answers: Sequence[dict],
    answers_per_attempt: int = ANSWERS_PER_ATTEMPT,
) -> Dict[str, Any]:
    if len(answers) != answers_per_attempt:
        raise ReadingValidationError(f"Must provide exactly {answers_per_attempt} answers")
    if len(questions) < len(answers):
        raise ReadingValidationError(
            f"Reading test has only {len(questions)} questions, {len(answers)} answers submitted"
        )

    processed: List[Dict[str, Any]] = []
    correct_answers = 0
    for index, answer in enumerate(answers):
        question = questions[index]
        selected = answer.get("selectedAnswer")
        is_correct = selected == question["correctAnswer"]
        if is_correct:
            correct_answers += 1
        processed.append(
            {
                "questionNumber": question.get("questionNumber", index + 1),
                "selectedAnswer": selected,
                "correctAnswer": question["correctAnswer"],
                "isCorrect": is_correct,
                "timeSpent": answer.get("timeSpent") or 0,
            }
        )

    percentage = correct_answers * 100 / answers_per_attempt
    return {
        "answers": processed,
        "score": {
            "totalQuestions": answers_per_attempt,
            "correctAnswers": correct_answers,
            "percentage": percentage,
            "bandScore": band_score(percentage),
        },
    }


def calculate_performance(questions: Sequence[dict], processed_answers: Sequence[dict]) -> Dict[str, Any]:
    difficulty_breakdown = _empty_breakdown(DIFFICULTIES)
    type_breakdown = _empty_breakdown(QUESTION_TYPES)
    for index, answer in enumerate(processed_answers):
        if index >= len(questions):
            break
        question = questions[index]
        for breakdown, key in (
            (difficulty_breakdown, question.get("difficulty") or "medium"),
            (type_breakdown, question.get("questionType") or "detail"),
        ):
            bucket = breakdown.setdefault(key, {"correct": 0, "total": 0})
            bucket["total"] += 1
            if answer["isCorrect"]:
                bucket["correct"] += 1
    return {
        "difficultyBreakdown": difficulty_breakdown,
        "questionTypeBreakdown": type_breakdown,
    }


def overall_comment(percentage: float) -> str:
    for threshold, comment in OVERALL_COMMENTS:
        if percentage >= threshold:
            return comment
    return LOWEST_COMMENT


def generate_feedback(performance: Dict[str, Any], percentage: float) -> Dict[str, Any]:
    strengths: List[str] = []
    weaknesses: List[str] = []
    recommendations: List[str] = []

    for difficulty, stats in performance.get("difficultyBreakdown", {}).items():
        if not stats["total"]:
            continue
        accuracy = stats["correct"] / stats["total"] * 100
        if accuracy >= STRENGTH_THRESHOLD:
            strengths.append(f"Strong performance on {difficulty} questions ({accuracy:.1f}%)")
        elif accuracy < WEAKNESS_THRESHOLD:
            weaknesses.append(f"Need improvement on {difficulty} questions ({accuracy:.1f}%)")
            recommendations.append(f"Practice more {difficulty} level reading exercises")

    for question_type, stats in performance.get("questionTypeBreakdown", {}).items():
        if not stats["total"]:
            continue
        accuracy = stats["correct"] / stats["total"] * 100
        if accuracy < WEAKNESS_THRESHOLD:
            label = QUESTION_TYPE_LABELS.get(question_type, question_type.replace("_", " "))
            weaknesses.append(f"Difficulty with {label} questions")
            recommendations.append(f"Focus on {label} practice exercises")

    if percentage < GENERAL_ADVICE_THRESHOLD:
        recommendations.extend(GENERAL_RECOMMENDATIONS)

    return {
        "strengths": strengths,
        "weaknesses": weaknesses,
        "recommendations": recommendations,
        "overallComment": overall_comment(percentage),
    }


def score_attempt(
    questions: Sequence[dict],
    answers: Sequence[dict],
    answers_per_attempt: int = ANSWERS_PER_ATTEMPT,
) -> Dict[str, Any]:
    """Score answers positionally and attach performance breakdowns and feedback."""

    scored = score_answers(questions, answers, answers_per_attempt)
    performance = calculate_performance(questions, scored["answers"])
    feedback = generate_feedback(performance, scored["score"]["percentage"])
    return {**scored, "performance": performance, "feedback": feedback}
