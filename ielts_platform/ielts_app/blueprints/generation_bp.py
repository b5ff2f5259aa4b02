"""Standalone passage and question generation endpoints."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError

from ..extensions import limiter
from ..schemas import (
    PassageRequestSchema,
    QuestionsRequestSchema,
    SkillQuestionsRequestSchema,
    ThemedPassageRequestSchema,
    TopicQuestionsRequestSchema,
)
from ..services import passage_generator, question_generator

generation_bp = Blueprint("generation_bp", __name__)

passage_schema = PassageRequestSchema()
themed_passage_schema = ThemedPassageRequestSchema()
questions_schema = QuestionsRequestSchema()
topic_questions_schema = TopicQuestionsRequestSchema()
skill_questions_schema = SkillQuestionsRequestSchema()


def _generation_rate_limit() -> str:
    return current_app.config.get("GENERATION_RATE_LIMIT", "10 per minute")


def _respond(result: dict, failure_message: str):
    if result["success"]:
        return jsonify(result)
    return (
        jsonify({"message": failure_message, "error": result["error"], "errorCode": result["errorCode"]}),
        HTTPStatus.INTERNAL_SERVER_ERROR,
    )


@generation_bp.errorhandler(ValidationError)
def handle_validation_error(err: ValidationError):
    return jsonify({"errors": err.messages}), HTTPStatus.BAD_REQUEST


@generation_bp.get("/status")
def status():
    cfg = current_app.config
    return jsonify(
        {
            "apiKeyConfigured": bool(cfg.get("OPENAI_API_KEY")),
            "model": cfg.get("AI_READING_MODEL"),
            "apiBase": cfg.get("AI_API_BASE"),
        }
    )


@generation_bp.post("/passage")
@limiter.limit(_generation_rate_limit)
def passage():
    payload = passage_schema.load(request.get_json(silent=True) or {})
    result = passage_generator.generate_passage(payload["topic"], payload["level"], payload["word_count"])
    return _respond(result, "Failed to generate passage")


@generation_bp.post("/themed-passage")
@limiter.limit(_generation_rate_limit)
def themed_passage():
    payload = themed_passage_schema.load(request.get_json(silent=True) or {})
    result = passage_generator.generate_themed_passage(payload["theme"], payload["level"], payload["word_count"])
    return _respond(result, "Failed to generate themed passage")


@generation_bp.post("/questions")
@limiter.limit(_generation_rate_limit)
def questions():
    payload = questions_schema.load(request.get_json(silent=True) or {})
    result = question_generator.generate_questions(payload["passage"], payload["level"], payload["count"])
    return _respond(result, "Failed to generate questions")


@generation_bp.post("/mcq")
@limiter.limit(_generation_rate_limit)
def topic_questions():
    payload = topic_questions_schema.load(request.get_json(silent=True) or {})
    result = question_generator.generate_topic_questions(payload["topic"], payload["count"])
    return _respond(result, "Failed to generate questions")


@generation_bp.post("/ielts-questions")
@limiter.limit(_generation_rate_limit)
def skill_questions():
    payload = skill_questions_schema.load(request.get_json(silent=True) or {})
    result = question_generator.generate_skill_questions(payload["skill"], payload["count"])
    return _respond(result, f"Failed to generate IELTS {payload['skill']} questions")
