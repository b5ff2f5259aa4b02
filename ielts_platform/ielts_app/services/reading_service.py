"""Persistence and attempt workflow for reading tests."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, Optional, Sequence

from flask import abort, current_app
from sqlalchemy import func, update

from ..extensions import db
from ..metrics import ATTEMPTS_SCORED
from ..models import ReadingTest, ReadingTestAttempt
from . import scoring_engine
from .errors import ReadingValidationError
from .reading_assembler import validate_assembled_test

SORT_COLUMNS = {
    "createdAt": ReadingTest.created_at,
    "title": ReadingTest.title,
    "averageScore": ReadingTest.average_score,
    "totalAttempts": ReadingTest.total_attempts,
}


def resolve_page_size(limit: int | None) -> int:
    cfg = current_app.config
    default = int(cfg.get("READING_PAGE_SIZE", 10))
    ceiling = int(cfg.get("READING_MAX_PAGE_SIZE", 50))
    return min(limit or default, ceiling)


def pagination_payload(pagination, total_key: str) -> Dict[str, Any]:
    return {
        "currentPage": pagination.page,
        "totalPages": pagination.pages,
        total_key: pagination.total,
        "hasNextPage": pagination.has_next,
        "hasPrevPage": pagination.has_prev,
    }


def persist_generated_test(draft: Dict[str, Any], *, created_by: str | None = None) -> ReadingTest:
    """Second phase of test generation: write a fully assembled draft."""

    validate_assembled_test(draft)
    metadata = draft["metadata"]
    test = ReadingTest(
        title=draft["title"],
        passages=draft["passages"],
        questions=draft["questions"],
        questions_by_passage=draft["questionsByPassage"],
        metadata_json=metadata,
        theme=metadata.get("theme", "mixed"),
        level=metadata.get("level", "intermediate"),
        time_limit=metadata.get("estimatedCompletionTime", 60),
        generated_by="ai",
        created_by=created_by,
    )
    db.session.add(test)
    db.session.commit()
    current_app.logger.info(
        "Persisted reading test %s with %s questions",
        test.id,
        len(test.questions),
        extra={"test_id": test.id},
    )
    return test


def list_tests(
    page: int,
    per_page: int,
    theme: Optional[str] = None,
    level: Optional[str] = None,
    sort_by: str = "createdAt",
    sort_order: str = "desc",
):
    query = ReadingTest.query.filter(ReadingTest.is_active.is_(True))
    if theme:
        query = query.filter(ReadingTest.theme == theme)
    if level:
        query = query.filter(ReadingTest.level == level)
    column = SORT_COLUMNS.get(sort_by, ReadingTest.created_at)
    ordering = column.desc() if sort_order == "desc" else column.asc()
    return query.order_by(ordering, ReadingTest.id.desc()).paginate(
        page=page, per_page=per_page, error_out=False
    )


def get_active_test(test_id: int) -> ReadingTest:
    test = db.session.get(ReadingTest, test_id)
    if test is None or not test.is_active:
        abort(404)
    return test


def get_random_test(level: Optional[str] = None) -> ReadingTest | None:
    query = ReadingTest.query.filter(ReadingTest.is_active.is_(True))
    if level:
        query = query.filter(ReadingTest.level == level)
    return query.order_by(func.random()).first()


def describe_test(
    test: ReadingTest, difficulty: Optional[str] = None, question_type: Optional[str] = None
) -> Dict[str, Any]:
    """Analysis block for the detail payload; optional filters add matching question lists."""

    analysis: Dict[str, Any] = {
        "difficultyDistribution": test.difficulty_distribution(),
        "questionTypesDistribution": test.question_type_distribution(),
        "averageDifficulty": test.average_difficulty(),
    }
    if difficulty:
        analysis["questionsByDifficulty"] = test.questions_by_difficulty(difficulty)
    if question_type:
        analysis["questionsByType"] = test.questions_by_type(question_type)
    return analysis


def elapsed_minutes(start_time: datetime, end_time: datetime) -> int:
    return math.floor((end_time - start_time).total_seconds() / 60)


def _apply_statistics(test_id: int, percentage: float, time_spent: int) -> None:
    # One statement; SET expressions read the pre-update row (same fold as running_average).
    count = ReadingTest.total_attempts
    db.session.execute(
        update(ReadingTest)
        .where(ReadingTest.id == test_id)
        .values(
            total_attempts=count + 1,
            average_score=func.round((ReadingTest.average_score * count + percentage) / (count + 1), 2),
            average_time_spent=func.round(
                (ReadingTest.average_time_spent * count + time_spent) / (count + 1), 2
            ),
        )
        .execution_options(synchronize_session=False)
    )


def submit_attempt(
    test_id: int,
    user_id: str,
    answers: Sequence[dict],
    start_time: datetime,
    end_time: datetime,
) -> ReadingTestAttempt:
    test = get_active_test(test_id)
    if end_time < start_time:
        raise ReadingValidationError("endTime must not be earlier than startTime")

    answers_per_attempt = int(current_app.config.get("READING_ANSWERS_PER_ATTEMPT", 10))
    result = scoring_engine.score_attempt(test.questions, answers, answers_per_attempt)
    score = result["score"]
    time_spent = elapsed_minutes(start_time, end_time)

    attempt = ReadingTestAttempt(
        user_id=str(user_id),
        reading_test_id=test.id,
        answers=result["answers"],
        total_questions=score["totalQuestions"],
        correct_answers=score["correctAnswers"],
        percentage=score["percentage"],
        band_score=score["bandScore"],
        start_time=start_time,
        end_time=end_time,
        total_time_spent=time_spent,
        time_limit=test.time_limit,
        performance=result["performance"],
        feedback=result["feedback"],
    )
    db.session.add(attempt)
    db.session.flush()
    _apply_statistics(test.id, score["percentage"], time_spent)
    db.session.commit()
    ATTEMPTS_SCORED.inc()
    current_app.logger.info(
        "Scored attempt %s on test %s: %s/%s (band %s)",
        attempt.id,
        test.id,
        score["correctAnswers"],
        score["totalQuestions"],
        score["bandScore"],
    )
    return attempt


def list_user_attempts(user_id: str, page: int, per_page: int):
    return (
        ReadingTestAttempt.query.filter_by(user_id=str(user_id))
        .order_by(ReadingTestAttempt.created_at.desc(), ReadingTestAttempt.id.desc())
        .paginate(page=page, per_page=per_page, error_out=False)
    )


def get_user_stats(user_id: str) -> Dict[str, Any]:
    row = (
        db.session.query(
            func.count(ReadingTestAttempt.id),
            func.avg(ReadingTestAttempt.percentage),
            func.avg(ReadingTestAttempt.band_score),
            func.avg(ReadingTestAttempt.total_time_spent),
            func.max(ReadingTestAttempt.percentage),
            func.max(ReadingTestAttempt.created_at),
        )
        .filter(ReadingTestAttempt.user_id == str(user_id))
        .one()
    )
    total, avg_score, avg_band, avg_time, best, latest = row

    def _rounded(value):
        return round(float(value), 2) if value is not None else None

    return {
        "totalAttempts": total or 0,
        "averageScore": _rounded(avg_score),
        "averageBandScore": _rounded(avg_band),
        "averageTimeSpent": _rounded(avg_time),
        "bestScore": _rounded(best),
        "latestAttempt": latest.isoformat() if latest else None,
    }


def count_summary() -> Dict[str, int]:
    return {
        "tests": ReadingTest.query.count(),
        "activeTests": ReadingTest.query.filter(ReadingTest.is_active.is_(True)).count(),
        "attempts": ReadingTestAttempt.query.count(),
    }
