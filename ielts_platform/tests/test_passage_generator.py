"""Tests for passage generation results."""

from __future__ import annotations

from ielts_app.services import passage_generator
from ielts_app.services.errors import UpstreamServiceError


class StubClient:
    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    def complete(self, prompt, model=None):
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


FENCED_PASSAGE = (
    "Here is your passage:\n"
    "```json\n"
    '{"passage": {"title": "Urban Beekeeping", "content": "Bees thrive in cities. Rooftop hives multiply."\n'
    '"wordCount": 750, "level": "intermediate", "topic": "Cities", "summary": "Bees in cities.",}}\n'
    "```"
)


def test_generate_passage_success(app_with_db):
    client = StubClient(FENCED_PASSAGE)
    result = passage_generator.generate_passage("Cities", "intermediate", 750, client=client)
    assert result["success"] is True
    data = result["data"]
    assert data["title"] == "Urban Beekeeping"
    assert data["summary"] == "Bees in cities."
    assert set(data) == {"title", "content", "level", "topic", "summary"}
    assert result["metadata"]["requestedWordCount"] == 750
    assert result["metadata"]["actualWordCount"] == 7
    assert "generatedAt" in result["metadata"]
    assert "Cities" in client.prompts[0]


def test_themed_passage_uses_theme_description(app_with_db):
    client = StubClient(FENCED_PASSAGE)
    passage_generator.generate_themed_passage("health", "advanced", 600, client=client)
    assert "Healthcare systems and medical research" in client.prompts[0]
    assert "approximately 600 words" in client.prompts[0]


def test_generate_passage_reports_missing_json(app_with_db):
    result = passage_generator.generate_passage(client=StubClient("Sorry, I cannot help with that."))
    assert result == {
        "success": False,
        "error": "No JSON object found in completion",
        "errorCode": "no_json_found",
        "data": {},
    }


def test_generate_passage_requires_passage_object(app_with_db):
    result = passage_generator.generate_passage(client=StubClient('{"text": "no passage key"}'))
    assert result["success"] is False
    assert result["errorCode"] == "parse_failure"


def test_generate_passage_reports_upstream_failure(app_with_db):
    client = StubClient(UpstreamServiceError("Completion service request failed: timeout"))
    result = passage_generator.generate_passage(client=client)
    assert result["success"] is False
    assert result["errorCode"] == "upstream_service_error"
    assert "timeout" in result["error"]


def test_generate_passage_never_raises_on_unexpected_errors(app_with_db):
    result = passage_generator.generate_passage(client=StubClient(RuntimeError("kaboom")))
    assert result["success"] is False
    assert result["errorCode"] == "unexpected_error"
    assert result["error"] == "kaboom"


def test_count_words():
    assert passage_generator.count_words("  one two\n\nthree ") == 3
    assert passage_generator.count_words(None) == 0
