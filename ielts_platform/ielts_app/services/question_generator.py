"""Generate multiple-choice questions, either about a passage or about a topic."""

from __future__ import annotations

from typing import Any, Dict

from flask import current_app

from ..metrics import record_generation
from .ai_client import get_ai_client
from .errors import EmptyGeneration, ReadingError, failure_result
from .reading_prompts import build_questions_prompt, build_topic_questions_prompt, describe_skill
from .response_sanitizer import sanitize_json_response


def _request_questions(prompt: str, question_count: int, kind: str, *, client=None) -> Dict[str, Any]:
    app = current_app
    try:
        client = client or get_ai_client()
        text = client.complete(prompt, model=app.config.get("AI_READING_MODEL"))
        parsed = sanitize_json_response(text)
        questions = parsed.get("questions")
        if not isinstance(questions, list) or not questions:
            raise EmptyGeneration("Completion returned no questions")
    except ReadingError as exc:
        app.logger.warning(
            "Question generation failed (%s): %s %s",
            exc.code,
            exc.message,
            exc.payload,
            extra={"error_code": exc.code, "kind": kind},
        )
        record_generation(kind, False)
        return failure_result(exc, data=[])
    except Exception as exc:  # pragma: no cover - unexpected provider payloads
        app.logger.exception("Unexpected error while generating questions")
        record_generation(kind, False)
        return failure_result(exc, data=[])

    if len(questions) != question_count:
        app.logger.info(
            "Question count mismatch: requested %s, received %s", question_count, len(questions)
        )
    record_generation(kind, True)
    return {"success": True, "data": questions, "count": len(questions)}


def generate_questions(
    passage_content: str,
    level: str = "intermediate",
    question_count: int = 10,
    *,
    client=None,
) -> Dict[str, Any]:
    """Ask for ``question_count`` questions about a passage.

    Returns the raw question objects in the order the service produced them;
    numbering and passage tagging are left to the caller.
    """

    prompt = build_questions_prompt(passage_content, level, question_count)
    return _request_questions(prompt, question_count, "questions", client=client)


def generate_topic_questions(
    topic: str = "General Knowledge", question_count: int = 5, *, client=None
) -> Dict[str, Any]:
    prompt = build_topic_questions_prompt(topic, question_count)
    result = _request_questions(prompt, question_count, "topic_questions", client=client)
    result["topic"] = topic
    return result


def generate_skill_questions(skill: str = "reading", question_count: int = 5, *, client=None) -> Dict[str, Any]:
    """Topic questions for one IELTS skill; unknown skills fall back to reading."""

    result = generate_topic_questions(describe_skill(skill), question_count, client=client)
    result["skill"] = (skill or "reading").lower()
    return result
