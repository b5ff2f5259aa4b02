"""Serialization / validation schemas (Marshmallow)."""

from .reading_schema import (
    AnswerSchema,
    GenerateQuerySchema,
    PaginationQuerySchema,
    PassageRequestSchema,
    QuestionsRequestSchema,
    RandomTestQuerySchema,
    ReadingAttemptSchema,
    ReadingTestSchema,
    SubmitAttemptSchema,
    ReadingTestListQuerySchema,
    SkillQuestionsRequestSchema,
    ReadingTestDetailQuerySchema,
    ThemedPassageRequestSchema,
    TopicQuestionsRequestSchema,
)

__all__ = [
    "AnswerSchema",
    "GenerateQuerySchema",
    "PaginationQuerySchema",
    "PassageRequestSchema",
    "QuestionsRequestSchema",
    "RandomTestQuerySchema",
    "ReadingAttemptSchema",
    "ReadingTestSchema",
    "SubmitAttemptSchema",
    "ReadingTestListQuerySchema",
    "SkillQuestionsRequestSchema",
    "ReadingTestDetailQuerySchema",
    "ThemedPassageRequestSchema",
    "TopicQuestionsRequestSchema",
]
