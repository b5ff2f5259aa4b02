"""Business logic modules (AI client, generators, assembly, scoring)."""

from . import (
    ai_client,
    passage_generator,
    question_generator,
    reading_assembler,
    reading_prompts,
    reading_service,
    response_sanitizer,
    scoring_engine,
)

__all__ = [
    "ai_client",
    "passage_generator",
    "question_generator",
    "reading_assembler",
    "reading_prompts",
    "reading_service",
    "response_sanitizer",
    "scoring_engine",
]
