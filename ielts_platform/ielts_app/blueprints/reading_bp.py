"""Reading test blueprint: generation, browsing, submission and history."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import get_jwt_identity, jwt_required
from marshmallow import ValidationError

from ..extensions import limiter
from ..schemas import (
    AnswerSchema,
    GenerateQuerySchema,
    PaginationQuerySchema,
    RandomTestQuerySchema,
    ReadingAttemptSchema,
    ReadingTestDetailQuerySchema,
    ReadingTestListQuerySchema,
    ReadingTestSchema,
    SubmitAttemptSchema,
)
from ..services import reading_assembler, reading_service
from ..services.errors import ReadingValidationError

reading_bp = Blueprint("reading_bp", __name__)

generate_query_schema = GenerateQuerySchema()
list_query_schema = ReadingTestListQuerySchema()
random_query_schema = RandomTestQuerySchema()
detail_query_schema = ReadingTestDetailQuerySchema()
pagination_schema = PaginationQuerySchema()
submit_schema = SubmitAttemptSchema()
answer_schema = AnswerSchema()
test_schema = ReadingTestSchema()
test_summary_schema = ReadingTestSchema(exclude=("passages", "questions", "questions_by_passage"))
attempt_schema = ReadingAttemptSchema()


def _generation_rate_limit() -> str:
    return current_app.config.get("GENERATION_RATE_LIMIT", "10 per minute")


def _generation_failure(message: str, result: dict):
    status = (
        HTTPStatus.BAD_REQUEST
        if result.get("errorCode") == ReadingValidationError.code
        else HTTPStatus.INTERNAL_SERVER_ERROR
    )
    return (
        jsonify({"message": message, "error": result.get("error"), "errorCode": result.get("errorCode")}),
        status,
    )


@reading_bp.errorhandler(ValidationError)
def handle_validation_error(err: ValidationError):
    return jsonify({"errors": err.messages}), HTTPStatus.BAD_REQUEST


@reading_bp.errorhandler(ReadingValidationError)
def handle_reading_validation_error(err: ReadingValidationError):
    return jsonify({"message": err.message, "errorCode": err.code}), HTTPStatus.BAD_REQUEST


@reading_bp.get("/ping")
def ping():
    return jsonify({"module": "reading", "status": "ok"})


@reading_bp.get("/generate-round/<int:round_number>")
@limiter.limit(_generation_rate_limit)
def generate_round(round_number: int):
    params = generate_query_schema.load(request.args)
    result = reading_assembler.generate_single_passage_round(round_number, params["level"])
    if not result["success"]:
        return _generation_failure(f"Failed to generate round {round_number}", result)
    return jsonify({"round": result["data"]})


@reading_bp.get("/generate-test")
@limiter.limit(_generation_rate_limit)
def generate_test():
    params = generate_query_schema.load(request.args)
    result = reading_assembler.generate_complete_reading_test(params["level"])
    if not result["success"]:
        return _generation_failure("Failed to generate reading test", result)
    test = reading_service.persist_generated_test(result["data"])
    return (
        jsonify({"message": "Reading test generated", "test": test_schema.dump(test)}),
        HTTPStatus.CREATED,
    )


@reading_bp.get("/tests")
def list_tests():
    params = list_query_schema.load(request.args)
    pagination = reading_service.list_tests(
        page=params["page"],
        per_page=reading_service.resolve_page_size(params["limit"]),
        theme=params["theme"],
        level=params["level"],
        sort_by=params["sort_by"],
        sort_order=params["sort_order"],
    )
    return jsonify(
        {
            "tests": test_summary_schema.dump(pagination.items, many=True),
            "pagination": reading_service.pagination_payload(pagination, "totalTests"),
        }
    )


@reading_bp.get("/tests/random")
def random_test():
    params = random_query_schema.load(request.args)
    test = reading_service.get_random_test(params["level"])
    if test is None:
        return jsonify({"message": "No reading tests available"}), HTTPStatus.NOT_FOUND
    return jsonify({"test": test_schema.dump(test)})


@reading_bp.get("/tests/<int:test_id>")
def get_test(test_id: int):
    params = detail_query_schema.load(request.args)
    test = reading_service.get_active_test(test_id)
    analysis = reading_service.describe_test(
        test, difficulty=params["difficulty"], question_type=params["question_type"]
    )
    return jsonify({"test": test_schema.dump(test), "analysis": analysis})


@reading_bp.post("/submit/<int:test_id>")
@jwt_required()
def submit(test_id: int):
    payload = submit_schema.load(request.get_json(silent=True) or {})
    attempt = reading_service.submit_attempt(
        test_id,
        get_jwt_identity(),
        answer_schema.dump(payload["answers"], many=True),
        payload["start_time"],
        payload["end_time"],
    )
    dumped = attempt_schema.dump(attempt)
    return (
        jsonify(
            {
                "attemptId": attempt.id,
                "score": dumped["score"],
                "timing": dumped["timing"],
                "performance": dumped["performance"],
                "feedback": dumped["feedback"],
            }
        ),
        HTTPStatus.CREATED,
    )


@reading_bp.get("/my-attempts")
@jwt_required()
def my_attempts():
    params = pagination_schema.load(request.args)
    pagination = reading_service.list_user_attempts(
        get_jwt_identity(),
        page=params["page"],
        per_page=reading_service.resolve_page_size(params["limit"]),
    )
    return jsonify(
        {
            "attempts": attempt_schema.dump(pagination.items, many=True),
            "pagination": reading_service.pagination_payload(pagination, "totalAttempts"),
        }
    )


@reading_bp.get("/my-stats")
@jwt_required()
def my_stats():
    return jsonify({"stats": reading_service.get_user_stats(get_jwt_identity())})
