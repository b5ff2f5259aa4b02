"""Generate IELTS reading passages through the completion service."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict

from flask import current_app

from ..metrics import record_generation
from .ai_client import get_ai_client
from .errors import ParseFailure, ReadingError, failure_result
from .reading_prompts import build_passage_prompt, describe_theme
from .response_sanitizer import sanitize_json_response

DEFAULT_WORD_COUNT = 750


def count_words(content: str | None) -> int:
    return len((content or "").split())


def _extract_passage(parsed: Dict[str, Any]) -> Dict[str, Any]:
    passage = parsed.get("passage")
    if not isinstance(passage, dict) or not passage:
        raise ParseFailure("Completion JSON has no 'passage' object", {"keys": sorted(parsed)})
    content = passage.get("content")
    if not isinstance(content, str) or not content.strip():
        raise ParseFailure("Generated passage has no content")
    return passage


def generate_passage(
    topic: str = "Academic Research",
    level: str = "intermediate",
    word_count: int = DEFAULT_WORD_COUNT,
    *,
    client=None,
) -> Dict[str, Any]:
    """Generate one passage; failures come back as ``{"success": False, ...}``."""

    app = current_app
    try:
        client = client or get_ai_client()
        prompt = build_passage_prompt(topic, level, word_count)
        text = client.complete(prompt, model=app.config.get("AI_READING_MODEL"))
        passage = _extract_passage(sanitize_json_response(text))
    except ReadingError as exc:
        app.logger.warning(
            "Passage generation failed (%s): %s %s",
            exc.code,
            exc.message,
            exc.payload,
            extra={"error_code": exc.code, "kind": "passage"},
        )
        record_generation("passage", False)
        return failure_result(exc)
    except Exception as exc:
        app.logger.exception("Unexpected error while generating passage")
        record_generation("passage", False)
        return failure_result(exc)

    content = passage["content"].strip()
    actual_words = count_words(content)
    app.logger.info(
        "Generated passage '%s' (%s words, requested %s)",
        passage.get("title"),
        actual_words,
        word_count,
    )
    record_generation("passage", True)
    return {
        "success": True,
        "data": {
            "title": (passage.get("title") or "").strip() or "Untitled Passage",
            "content": content,
            "level": passage.get("level") or level,
            "topic": passage.get("topic") or topic,
            "summary": (passage.get("summary") or "").strip(),
        },
        "metadata": {
            "generatedAt": datetime.now(timezone.utc).isoformat(),
            "requestedWordCount": word_count,
            "actualWordCount": actual_words,
        },
    }


def generate_themed_passage(
    theme: str = "science",
    level: str = "intermediate",
    word_count: int = DEFAULT_WORD_COUNT,
    *,
    client=None,
) -> Dict[str, Any]:
    return generate_passage(describe_theme(theme), level, word_count, client=client)
