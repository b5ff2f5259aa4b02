"""Reading test and attempt models."""

from __future__ import annotations

from datetime import datetime, timezone

from ..extensions import db


def utcnow():
    return datetime.now(timezone.utc)


DIFFICULTY_WEIGHTS = {"easy": 1, "medium": 2, "hard": 3}


class ReadingTest(db.Model):
    __tablename__ = "reading_tests"
    __table_args__ = (
        db.Index("ix_reading_tests_theme_level", "theme", "level"),
        db.Index("ix_reading_tests_active_created", "is_active", "created_at"),
    )

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(255), nullable=False)
    passages = db.Column(db.JSON, nullable=False)
    questions = db.Column(db.JSON, nullable=False)
    questions_by_passage = db.Column(db.JSON, nullable=False)
    metadata_json = db.Column("metadata", db.JSON, nullable=False)
    theme = db.Column(db.String(32), nullable=False, default="mixed")
    level = db.Column(db.String(32), nullable=False, default="intermediate")
    total_marks = db.Column(db.Integer, nullable=False, default=40)
    passing_score = db.Column(db.Integer, nullable=False, default=24)
    time_limit = db.Column(db.Integer, nullable=False, default=60)  # minutes
    total_attempts = db.Column(db.Integer, nullable=False, default=0, server_default="0")
    average_score = db.Column(db.Float, nullable=False, default=0.0, server_default="0")
    average_time_spent = db.Column(db.Float, nullable=False, default=0.0, server_default="0")
    is_active = db.Column(db.Boolean, nullable=False, default=True, server_default="1")
    generated_by = db.Column(db.String(16), nullable=False, default="ai")
    created_by = db.Column(db.String(64))
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    attempts = db.relationship("ReadingTestAttempt", back_populates="reading_test", lazy="dynamic")

    def difficulty_distribution(self) -> dict:
        distribution = {key: 0 for key in DIFFICULTY_WEIGHTS}
        for question in self.questions or []:
            key = question.get("difficulty", "medium")
            distribution[key] = distribution.get(key, 0) + 1
        return distribution

    def question_type_distribution(self) -> dict:
        distribution = {key: 0 for key in ("detail", "main_idea", "inference", "vocabulary", "reference")}
        for question in self.questions or []:
            key = question.get("questionType", "detail")
            distribution[key] = distribution.get(key, 0) + 1
        return distribution

    def average_difficulty(self) -> float | None:
        questions = self.questions or []
        if not questions:
            return None
        total = sum(DIFFICULTY_WEIGHTS.get(q.get("difficulty"), 2) for q in questions)
        return round(total / len(questions), 2)

    def questions_by_difficulty(self, difficulty: str) -> list[dict]:
        return [q for q in self.questions or [] if q.get("difficulty") == difficulty]

    def questions_by_type(self, question_type: str) -> list[dict]:
        return [q for q in self.questions or [] if q.get("questionType") == question_type]


class ReadingTestAttempt(db.Model):
    __tablename__ = "reading_test_attempts"
    __table_args__ = (
        db.Index("ix_reading_attempts_user_created", "user_id", "created_at"),
        db.Index("ix_reading_attempts_test_percentage", "reading_test_id", "percentage"),
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)
    reading_test_id = db.Column(db.Integer, db.ForeignKey("reading_tests.id"), nullable=False)
    answers = db.Column(db.JSON, nullable=False)
    total_questions = db.Column(db.Integer, nullable=False, default=10)
    correct_answers = db.Column(db.Integer, nullable=False)
    percentage = db.Column(db.Float, nullable=False)
    band_score = db.Column(db.Integer, nullable=False, index=True)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=False)
    total_time_spent = db.Column(db.Integer, nullable=False)  # minutes
    time_limit = db.Column(db.Integer, nullable=False, default=20)
    is_completed = db.Column(db.Boolean, nullable=False, default=True)
    performance = db.Column(db.JSON, nullable=False)
    feedback = db.Column(db.JSON, nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), default=utcnow, nullable=False)

    reading_test = db.relationship("ReadingTest", back_populates="attempts")

    @property
    def score(self) -> dict:
        return {
            "totalQuestions": self.total_questions,
            "correctAnswers": self.correct_answers,
            "percentage": self.percentage,
            "bandScore": self.band_score,
        }

    @property
    def timing(self) -> dict:
        return {
            "startTime": self.start_time,
            "endTime": self.end_time,
            "totalTimeSpent": self.total_time_spent,
            "timeLimit": self.time_limit,
            "isCompleted": self.is_completed,
        }
