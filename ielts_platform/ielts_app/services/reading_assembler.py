"""Assemble multi-passage IELTS reading tests from generated passages and questions.

Assembly is purely in memory. Nothing is written to the database here; the
caller persists the returned draft only after every round has succeeded.
"""

from __future__ import annotations

import math
import random
from typing import Any, Dict, List

from flask import current_app

from ..metrics import record_generation
from .errors import ReadingValidationError, failure_result
from .passage_generator import DEFAULT_WORD_COUNT, count_words, generate_themed_passage
from .question_generator import generate_questions
from .reading_prompts import DIFFICULTIES, LEVELS, OPTION_KEYS, QUESTION_TYPES, THEMES

PASSAGES_PER_TEST = 3
MIN_QUESTIONS_PER_PASSAGE = 12
MAX_QUESTIONS_PER_PASSAGE = 14
WORDS_PER_MINUTE = 200
FULL_TEST_MINUTES = 60
ROUND_MINUTES = 20


def reading_time(word_count: int) -> int:
    return math.ceil(word_count / WORDS_PER_MINUTE)


def choose_themes(count: int = PASSAGES_PER_TEST, rng=None) -> List[str]:
    rng = rng or random
    return rng.sample(list(THEMES), count)


def _normalize_options(options: Any) -> Dict[str, str]:
    normalized: Dict[str, str] = {}
    if isinstance(options, dict):
        items = options.items()
    elif isinstance(options, list):
        items = zip(OPTION_KEYS, options)
    else:
        items = []
    for key, text in items:
        if text is None:
            continue
        label = str(key).strip().upper()
        value = str(text).strip()
        if label and value:
            normalized[label] = value
    return normalized


def _normalize_correct_answer(value: Any, options: Dict[str, str]) -> str | None:
    answer = str(value or "").strip().upper()
    if answer in options:
        return answer
    # Accept "B)" / "B." / "B: text" style answers.
    if answer[:1] in options and (len(answer) == 1 or not answer[1].isalpha()):
        return answer[:1]
    return None


def normalize_question(raw: Any, *, question_number: int, passage_number: int) -> Dict[str, Any]:
    if not isinstance(raw, dict):
        raise ReadingValidationError(f"Question {question_number} is not an object")
    text = str(raw.get("questionText") or raw.get("question") or "").strip()
    if not text:
        raise ReadingValidationError(f"Question {question_number} has no text")
    options = _normalize_options(raw.get("options"))
    if set(options) != set(OPTION_KEYS):
        raise ReadingValidationError(
            f"Question {question_number} must have exactly the options {', '.join(OPTION_KEYS)}",
            {"options": sorted(options)},
        )
    correct = _normalize_correct_answer(raw.get("correctAnswer"), options)
    if correct is None:
        raise ReadingValidationError(
            f"Question {question_number} has an invalid correct answer",
            {"correctAnswer": raw.get("correctAnswer")},
        )
    difficulty = str(raw.get("difficulty") or "").strip().lower()
    question_type = str(raw.get("questionType") or "").strip().lower()
    return {
        "questionNumber": question_number,
        "questionText": text,
        "options": {key: options[key] for key in OPTION_KEYS},
        "correctAnswer": correct,
        "explanation": str(raw.get("explanation") or "").strip(),
        "difficulty": difficulty if difficulty in DIFFICULTIES else "medium",
        "questionType": question_type if question_type in QUESTION_TYPES else "detail",
        "passageNumber": passage_number,
    }


def _build_passage(passage_data: dict, *, passage_number: int, theme: str) -> Dict[str, Any]:
    word_count = count_words(passage_data.get("content"))
    return {
        "passageNumber": passage_number,
        "title": passage_data.get("title"),
        "content": passage_data.get("content"),
        "wordCount": word_count,
        "readingTime": reading_time(word_count),
        "summary": passage_data.get("summary"),
        "theme": theme,
        "topic": passage_data.get("topic"),
    }


def _generate_round(theme: str, level: str, question_count: int, *, client=None) -> Dict[str, Any]:
    word_count = current_app.config.get("READING_PASSAGE_WORD_COUNT", DEFAULT_WORD_COUNT)
    passage_result = generate_themed_passage(theme, level, word_count, client=client)
    if not passage_result["success"]:
        return {**passage_result, "stage": "passage"}
    questions_result = generate_questions(
        passage_result["data"]["content"], level, question_count, client=client
    )
    if not questions_result["success"]:
        return {**questions_result, "stage": "questions"}
    return {"success": True, "passage": passage_result["data"], "questions": questions_result["data"]}


def _check_round_size(questions: List[Any], label: str) -> None:
    if not MIN_QUESTIONS_PER_PASSAGE <= len(questions) <= MAX_QUESTIONS_PER_PASSAGE:
        raise ReadingValidationError(
            f"{label} has {len(questions)} questions; expected "
            f"{MIN_QUESTIONS_PER_PASSAGE}-{MAX_QUESTIONS_PER_PASSAGE}",
            {"count": len(questions)},
        )


def validate_assembled_test(draft: Dict[str, Any]) -> None:
    """Check the numbering and sizing invariants of an assembled test before it is persisted."""

    questions = draft.get("questions") or []
    numbers = [q["questionNumber"] for q in questions]
    if numbers != list(range(1, len(questions) + 1)):
        raise ReadingValidationError("Question numbers must run contiguously from 1")
    by_passage = draft.get("questionsByPassage") or {}
    indexed: List[int] = []
    for passage in draft.get("passages") or []:
        key = f"passage{passage['passageNumber']}"
        _check_round_size(by_passage.get(key, []), f"Passage {passage['passageNumber']}")
        indexed.extend(by_passage.get(key, []))
    if indexed != numbers:
        raise ReadingValidationError("questionsByPassage must partition the question numbers in order")


def generate_complete_reading_test(level: str = "intermediate", *, rng=None, client=None) -> Dict[str, Any]:
    """Build a three-passage test in memory; any failed round aborts the whole test."""

    app = current_app
    rng = rng or random
    if level not in LEVELS:
        return failure_result(ReadingValidationError(f"Invalid level. Must be one of: {', '.join(LEVELS)}"))

    themes = choose_themes(PASSAGES_PER_TEST, rng)
    passages: List[Dict[str, Any]] = []
    questions: List[Dict[str, Any]] = []
    questions_by_passage: Dict[str, List[int]] = {}

    for passage_number, theme in enumerate(themes, start=1):
        question_count = rng.randint(MIN_QUESTIONS_PER_PASSAGE, MAX_QUESTIONS_PER_PASSAGE)
        app.logger.info(
            "Generating round %s/%s (theme=%s, level=%s, questions=%s)",
            passage_number,
            PASSAGES_PER_TEST,
            theme,
            level,
            question_count,
        )
        round_result = _generate_round(theme, level, question_count, client=client)
        if not round_result["success"]:
            app.logger.warning(
                "Aborting reading test: round %s %s generation failed: %s",
                passage_number,
                round_result.get("stage"),
                round_result.get("error"),
                extra={"stage": round_result.get("stage"), "error_code": round_result.get("errorCode")},
            )
            record_generation("test", False)
            return {
                "success": False,
                "error": f"Failed to generate {round_result.get('stage')} for passage {passage_number}: {round_result.get('error')}",
                "errorCode": round_result.get("errorCode"),
                "data": {},
            }

        numbers: List[int] = []
        try:
            _check_round_size(round_result["questions"], f"Passage {passage_number}")
            for raw in round_result["questions"]:
                question = normalize_question(
                    raw, question_number=len(questions) + 1, passage_number=passage_number
                )
                questions.append(question)
                numbers.append(question["questionNumber"])
        except ReadingValidationError as exc:
            app.logger.warning(
                "Aborting reading test: %s", exc.message, extra={"stage": "questions", "error_code": exc.code}
            )
            record_generation("test", False)
            return failure_result(exc)
        passages.append(_build_passage(round_result["passage"], passage_number=passage_number, theme=theme))
        questions_by_passage[f"passage{passage_number}"] = numbers

    draft = {
        "title": f"IELTS Academic Reading Test: {', '.join(theme.title() for theme in themes)}",
        "passages": passages,
        "questions": questions,
        "questionsByPassage": questions_by_passage,
        "metadata": {
            "theme": "mixed",
            "themes": themes,
            "level": level,
            "tags": [*themes, level, "ai-generated"],
            "totalQuestions": len(questions),
            "totalPassages": len(passages),
            "estimatedCompletionTime": FULL_TEST_MINUTES,
        },
    }
    try:
        validate_assembled_test(draft)
    except ReadingValidationError as exc:  # pragma: no cover - guarded by construction
        record_generation("test", False)
        return failure_result(exc)
    record_generation("test", True)
    return {"success": True, "data": draft}


def generate_single_passage_round(
    round_number: int, level: str = "intermediate", *, rng=None, client=None
) -> Dict[str, Any]:
    """Generate one passage with 12-14 questions numbered locally from 1."""

    app = current_app
    rng = rng or random
    if round_number not in range(1, PASSAGES_PER_TEST + 1):
        return failure_result(ReadingValidationError(f"Round number must be between 1 and {PASSAGES_PER_TEST}"))
    if level not in LEVELS:
        return failure_result(ReadingValidationError(f"Invalid level. Must be one of: {', '.join(LEVELS)}"))

    theme = choose_themes(1, rng)[0]
    question_count = rng.randint(MIN_QUESTIONS_PER_PASSAGE, MAX_QUESTIONS_PER_PASSAGE)
    app.logger.info("Generating standalone round %s (theme=%s, level=%s)", round_number, theme, level)
    round_result = _generate_round(theme, level, question_count, client=client)
    if not round_result["success"]:
        record_generation("round", False)
        return {
            "success": False,
            "error": f"Failed to generate {round_result.get('stage')} for round {round_number}: {round_result.get('error')}",
            "errorCode": round_result.get("errorCode"),
            "data": {},
        }
    try:
        _check_round_size(round_result["questions"], f"Round {round_number}")
        questions = [
            normalize_question(raw, question_number=index, passage_number=round_number)
            for index, raw in enumerate(round_result["questions"], start=1)
        ]
    except ReadingValidationError as exc:
        record_generation("round", False)
        return failure_result(exc)

    record_generation("round", True)
    return {
        "success": True,
        "data": {
            "roundNumber": round_number,
            "passage": _build_passage(round_result["passage"], passage_number=round_number, theme=theme),
            "questions": questions,
            "metadata": {
                "theme": theme,
                "level": level,
                "totalQuestions": len(questions),
                "estimatedCompletionTime": ROUND_MINUTES,
            },
        },
    }
