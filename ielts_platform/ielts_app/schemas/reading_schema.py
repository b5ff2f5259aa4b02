"""Schemas for reading test generation, listing and submission APIs."""

from __future__ import annotations

from datetime import timezone

from marshmallow import EXCLUDE, Schema, fields, validate

from ..services.reading_prompts import DIFFICULTIES, LEVELS, OPTION_KEYS, QUESTION_TYPES, SKILLS, THEMES

SORT_FIELDS = ("createdAt", "title", "averageScore", "totalAttempts")


class QuerySchema(Schema):
    class Meta:
        unknown = EXCLUDE


class GenerateQuerySchema(QuerySchema):
    level = fields.String(load_default="intermediate", validate=validate.OneOf(LEVELS))


class PaginationQuerySchema(QuerySchema):
    page = fields.Integer(load_default=1, validate=validate.Range(min=1))
    limit = fields.Integer(load_default=None, validate=validate.Range(min=1))


class ReadingTestListQuerySchema(PaginationQuerySchema):
    theme = fields.String(load_default=None, validate=validate.OneOf((*THEMES, "mixed")))
    level = fields.String(load_default=None, validate=validate.OneOf(LEVELS))
    sort_by = fields.String(data_key="sortBy", load_default="createdAt", validate=validate.OneOf(SORT_FIELDS))
    sort_order = fields.String(data_key="sortOrder", load_default="desc", validate=validate.OneOf(("asc", "desc")))


class RandomTestQuerySchema(QuerySchema):
    level = fields.String(load_default=None, validate=validate.OneOf(LEVELS))


class ReadingTestDetailQuerySchema(QuerySchema):
    difficulty = fields.String(load_default=None, validate=validate.OneOf(DIFFICULTIES))
    question_type = fields.String(data_key="questionType", load_default=None, validate=validate.OneOf(QUESTION_TYPES))


class AnswerSchema(Schema):
    question_number = fields.Integer(data_key="questionNumber", load_default=None)
    selected_answer = fields.String(
        data_key="selectedAnswer",
        load_default=None,
        allow_none=True,
        validate=validate.OneOf(OPTION_KEYS),
    )
    time_spent = fields.Integer(data_key="timeSpent", load_default=0, validate=validate.Range(min=0))


class SubmitAttemptSchema(Schema):
    answers = fields.List(fields.Nested(AnswerSchema), required=True)
    start_time = fields.AwareDateTime(data_key="startTime", required=True, default_timezone=timezone.utc)
    end_time = fields.AwareDateTime(data_key="endTime", required=True, default_timezone=timezone.utc)


class PassageRequestSchema(Schema):
    topic = fields.String(load_default="Academic Research", validate=validate.Length(min=1, max=200))
    level = fields.String(load_default="intermediate", validate=validate.OneOf(LEVELS))
    word_count = fields.Integer(data_key="wordCount", load_default=750, validate=validate.Range(min=200, max=1000))


class ThemedPassageRequestSchema(Schema):
    theme = fields.String(load_default="science", validate=validate.OneOf(THEMES))
    level = fields.String(load_default="intermediate", validate=validate.OneOf(LEVELS))
    word_count = fields.Integer(data_key="wordCount", load_default=750, validate=validate.Range(min=200, max=1000))


class QuestionsRequestSchema(Schema):
    passage = fields.String(required=True, validate=validate.Length(min=1))
    level = fields.String(load_default="intermediate", validate=validate.OneOf(LEVELS))
    count = fields.Integer(load_default=10, validate=validate.Range(min=1, max=14))


class TopicQuestionsRequestSchema(Schema):
    topic = fields.String(load_default="General Knowledge", validate=validate.Length(min=1, max=200))
    count = fields.Integer(load_default=5, validate=validate.Range(min=1, max=10))


class SkillQuestionsRequestSchema(Schema):
    skill = fields.String(load_default="reading", validate=validate.OneOf(SKILLS))
    count = fields.Integer(load_default=5, validate=validate.Range(min=1, max=10))


def _iso(value):
    return value.isoformat() if value is not None else None


class ReadingTestSchema(Schema):
    id = fields.Integer(dump_only=True)
    title = fields.String()
    passages = fields.List(fields.Dict())
    questions = fields.List(fields.Dict())
    questions_by_passage = fields.Dict(data_key="questionsByPassage")
    metadata_json = fields.Dict(data_key="metadata")
    theme = fields.String()
    level = fields.String()
    scoring = fields.Method("get_scoring")
    statistics = fields.Method("get_statistics")
    is_active = fields.Boolean(data_key="isActive")
    generated_by = fields.String(data_key="generatedBy")
    created_at = fields.DateTime(data_key="createdAt", dump_only=True)

    def get_scoring(self, obj):
        return {
            "totalMarks": obj.total_marks,
            "passingScore": obj.passing_score,
            "timeLimit": obj.time_limit,
        }

    def get_statistics(self, obj):
        return {
            "totalAttempts": obj.total_attempts,
            "averageScore": obj.average_score,
            "averageTimeSpent": obj.average_time_spent,
        }


class ReadingAttemptSchema(Schema):
    id = fields.Integer(dump_only=True)
    reading_test_id = fields.Integer(data_key="readingTestId")
    reading_test = fields.Method("get_reading_test", data_key="readingTest")
    answers = fields.List(fields.Dict())
    score = fields.Dict()
    timing = fields.Method("get_timing")
    performance = fields.Dict()
    feedback = fields.Dict()
    created_at = fields.DateTime(data_key="createdAt", dump_only=True)

    def get_reading_test(self, obj):
        test = obj.reading_test
        if test is None:
            return None
        return {"id": test.id, "title": test.title, "theme": test.theme, "level": test.level}

    def get_timing(self, obj):
        timing = dict(obj.timing)
        timing["startTime"] = _iso(timing["startTime"])
        timing["endTime"] = _iso(timing["endTime"])
        return timing
