"""Pytest configuration for ensuring project modules resolve correctly."""

from __future__ import annotations

import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

import pytest

from ielts_app import create_app
from ielts_app.extensions import db
from ielts_app.utils.security import generate_access_token


def passage_completion(title: str = "The Coral Reef Survey", words: int = 760) -> str:
    content = " ".join(["reef"] * words)
    return json.dumps(
        {
            "passage": {
                "title": title,
                "content": content,
                "wordCount": words,
                "level": "intermediate",
                "topic": "Environmental issues and climate change",
                "summary": "A survey of reef health.",
            }
        }
    )


def questions_completion(count: int, correct: str = "B") -> str:
    difficulties = ("easy", "medium", "hard")
    types = ("detail", "main_idea", "inference", "vocabulary", "reference")
    return json.dumps(
        {
            "questions": [
                {
                    "questionText": f"Question {index + 1} about the passage?",
                    "options": {"A": "First", "B": "Second", "C": "Third", "D": "Fourth"},
                    "correctAnswer": correct,
                    "explanation": "Stated in paragraph two.",
                    "difficulty": difficulties[index % 3],
                    "questionType": types[index % 5],
                }
                for index in range(count)
            ]
        }
    )


class FakeCompletionClient:
    """Stands in for AIClient, answering passage and question prompts with canned JSON."""

    def __init__(self, questions_per_round: int = 13, fail_on_call: int | None = None, failure=None):
        self.questions_per_round = questions_per_round
        self.fail_on_call = fail_on_call
        self.failure = failure
        self.prompts: list[str] = []

    def complete(self, prompt: str, model: str | None = None) -> str:
        self.prompts.append(prompt)
        if self.fail_on_call is not None and len(self.prompts) == self.fail_on_call:
            if isinstance(self.failure, Exception):
                raise self.failure
            return self.failure or "Sorry, I cannot help with that."
        if prompt.startswith("Based on the following passage"):
            return questions_completion(self.questions_per_round)
        return passage_completion(title=f"Passage {len(self.prompts) // 2 + 1}")


class FixedRng:
    """Deterministic stand-in for the ``random`` module."""

    def __init__(self, question_count: int = 13):
        self.question_count = question_count

    def sample(self, population, k):
        return list(population)[:k]

    def randint(self, low, high):
        return self.question_count


@pytest.fixture()
def app_with_db():
    app = create_app("test")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app_with_db):
    return app_with_db.test_client()


@pytest.fixture()
def fake_client_factory():
    return FakeCompletionClient


@pytest.fixture()
def fixed_rng():
    return FixedRng()


@pytest.fixture()
def candidate_token(app_with_db):
    with app_with_db.app_context():
        return generate_access_token("candidate-1")


@pytest.fixture()
def auth_headers(candidate_token):
    return {"Authorization": f"Bearer {candidate_token}"}
