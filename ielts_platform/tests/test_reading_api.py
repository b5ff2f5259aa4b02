"""Tests for the reading test HTTP surface."""

from __future__ import annotations

import pytest

from ielts_app.extensions import db
from ielts_app.models import ReadingTest, ReadingTestAttempt
from ielts_app.utils.security import generate_access_token

START = "2026-01-05T10:00:00Z"


def _make_test(title="Reading Test", theme="mixed", level="intermediate", is_active=True, question_count=12):
    difficulties = ("easy", "medium", "hard")
    questions = [
        {
            "questionNumber": index + 1,
            "questionText": f"Question {index + 1}?",
            "options": {"A": "a", "B": "b", "C": "c", "D": "d"},
            "correctAnswer": "A",
            "explanation": "",
            "difficulty": difficulties[index % 3],
            "questionType": "detail",
            "passageNumber": 1,
        }
        for index in range(question_count)
    ]
    test = ReadingTest(
        title=title,
        passages=[{"passageNumber": 1, "title": "P1", "content": "text", "wordCount": 1, "readingTime": 1}],
        questions=questions,
        questions_by_passage={"passage1": list(range(1, question_count + 1))},
        metadata_json={"theme": theme, "level": level, "totalQuestions": question_count},
        theme=theme,
        level=level,
        is_active=is_active,
    )
    db.session.add(test)
    db.session.commit()
    return test.id


def _submission(correct, end="2026-01-05T10:17:45Z"):
    return {
        "answers": [
            {"questionNumber": index + 1, "selectedAnswer": "A" if index < correct else "C", "timeSpent": 20}
            for index in range(10)
        ],
        "startTime": START,
        "endTime": end,
    }


@pytest.fixture()
def reading_test_id(app_with_db):
    return _make_test()


def test_generate_test_persists_assembled_test(app_with_db, client, fake_client_factory):
    app_with_db.extensions["ai_client"] = fake_client_factory(questions_per_round=13)
    resp = client.get("/api/reading/generate-test?level=advanced")
    assert resp.status_code == 201, resp.get_json()
    test = resp.get_json()["test"]
    assert len(test["questions"]) == 39
    assert test["metadata"]["level"] == "advanced"
    assert test["theme"] == "mixed"
    assert test["scoring"] == {"totalMarks": 40, "passingScore": 24, "timeLimit": 60}
    assert test["statistics"]["totalAttempts"] == 0
    assert ReadingTest.query.count() == 1


def test_generate_test_failure_persists_nothing(app_with_db, client, fake_client_factory):
    app_with_db.extensions["ai_client"] = fake_client_factory(fail_on_call=3)
    resp = client.get("/api/reading/generate-test")
    assert resp.status_code == 500
    payload = resp.get_json()
    assert payload["message"] == "Failed to generate reading test"
    assert payload["errorCode"] == "no_json_found"
    assert "passage 2" in payload["error"]
    assert ReadingTest.query.count() == 0


def test_generate_test_rejects_unknown_level(client):
    resp = client.get("/api/reading/generate-test?level=expert")
    assert resp.status_code == 400
    assert "level" in resp.get_json()["errors"]


def test_generate_round(app_with_db, client, fake_client_factory):
    app_with_db.extensions["ai_client"] = fake_client_factory(questions_per_round=12)
    resp = client.get("/api/reading/generate-round/3?level=beginner")
    assert resp.status_code == 200
    round_payload = resp.get_json()["round"]
    assert round_payload["roundNumber"] == 3
    assert [q["questionNumber"] for q in round_payload["questions"]] == list(range(1, 13))
    assert ReadingTest.query.count() == 0


def test_generate_round_rejects_out_of_range_round(app_with_db, client, fake_client_factory):
    app_with_db.extensions["ai_client"] = fake_client_factory()
    resp = client.get("/api/reading/generate-round/4")
    assert resp.status_code == 400
    assert resp.get_json()["errorCode"] == "validation_error"


def test_list_tests_paginates_and_filters(app_with_db, client):
    _make_test(title="Bravo")
    _make_test(title="Alpha", level="advanced")
    _make_test(title="Charlie")
    _make_test(title="Hidden", is_active=False)

    resp = client.get("/api/reading/tests?limit=2&sortBy=title&sortOrder=asc")
    assert resp.status_code == 200
    payload = resp.get_json()
    assert [t["title"] for t in payload["tests"]] == ["Alpha", "Bravo"]
    assert "questions" not in payload["tests"][0]
    assert payload["pagination"] == {
        "currentPage": 1,
        "totalPages": 2,
        "totalTests": 3,
        "hasNextPage": True,
        "hasPrevPage": False,
    }

    filtered = client.get("/api/reading/tests?level=advanced").get_json()
    assert [t["title"] for t in filtered["tests"]] == ["Alpha"]


def test_list_tests_rejects_bad_sort_field(client):
    resp = client.get("/api/reading/tests?sortBy=difficulty")
    assert resp.status_code == 400
    assert "sortBy" in resp.get_json()["errors"]


def test_get_test_includes_analysis(client, reading_test_id):
    resp = client.get(f"/api/reading/tests/{reading_test_id}")
    assert resp.status_code == 200
    payload = resp.get_json()
    assert payload["test"]["id"] == reading_test_id
    analysis = payload["analysis"]
    assert analysis["difficultyDistribution"] == {"easy": 4, "medium": 4, "hard": 4}
    assert analysis["questionTypesDistribution"]["detail"] == 12
    assert analysis["averageDifficulty"] == 2.0
    assert "questionsByDifficulty" not in analysis


def test_get_test_filters_questions_by_difficulty_and_type(client, reading_test_id):
    resp = client.get(f"/api/reading/tests/{reading_test_id}?difficulty=hard&questionType=detail")
    assert resp.status_code == 200
    analysis = resp.get_json()["analysis"]
    assert [q["questionNumber"] for q in analysis["questionsByDifficulty"]] == [3, 6, 9, 12]
    assert len(analysis["questionsByType"]) == 12


def test_get_test_rejects_unknown_filter_values(client, reading_test_id):
    resp = client.get(f"/api/reading/tests/{reading_test_id}?difficulty=extreme&questionType=essay")
    assert resp.status_code == 400
    errors = resp.get_json()["errors"]
    assert "difficulty" in errors
    assert "questionType" in errors


def test_get_missing_or_inactive_test_returns_404(app_with_db, client):
    inactive_id = _make_test(is_active=False)
    assert client.get(f"/api/reading/tests/{inactive_id}").status_code == 404
    assert client.get("/api/reading/tests/9999").status_code == 404


def test_random_test(app_with_db, client):
    assert client.get("/api/reading/tests/random").status_code == 404
    _make_test(title="Only advanced", level="advanced")
    resp = client.get("/api/reading/tests/random?level=advanced")
    assert resp.status_code == 200
    assert resp.get_json()["test"]["title"] == "Only advanced"
    assert client.get("/api/reading/tests/random?level=beginner").status_code == 404


def test_submit_scores_and_updates_statistics(app_with_db, client, auth_headers, reading_test_id):
    resp = client.post(f"/api/reading/submit/{reading_test_id}", json=_submission(9), headers=auth_headers)
    assert resp.status_code == 201, resp.get_json()
    payload = resp.get_json()
    assert payload["attemptId"]
    assert payload["score"] == {"totalQuestions": 10, "correctAnswers": 9, "percentage": 90.0, "bandScore": 9}
    assert payload["timing"]["totalTimeSpent"] == 17
    assert payload["timing"]["timeLimit"] == 60
    assert payload["performance"]["difficultyBreakdown"]["easy"] == {"correct": 3, "total": 4}
    assert payload["feedback"]["overallComment"].startswith("Excellent performance!")

    test = db.session.get(ReadingTest, reading_test_id)
    assert test.total_attempts == 1
    assert test.average_score == 90.0
    assert test.average_time_spent == 17.0

    second = client.post(
        f"/api/reading/submit/{reading_test_id}",
        json=_submission(5, end="2026-01-05T10:20:00Z"),
        headers=auth_headers,
    )
    assert second.status_code == 201
    db.session.expire_all()
    test = db.session.get(ReadingTest, reading_test_id)
    assert test.total_attempts == 2
    assert test.average_score == 70.0
    assert test.average_time_spent == 18.5
    attempt = ReadingTestAttempt.query.filter_by(percentage=50.0).one()
    assert attempt.user_id == "candidate-1"
    assert attempt.band_score == 5


def test_submit_requires_token(client, reading_test_id):
    resp = client.post(f"/api/reading/submit/{reading_test_id}", json=_submission(9))
    assert resp.status_code == 401


def test_submit_rejects_wrong_answer_count(client, auth_headers, reading_test_id):
    body = _submission(9)
    body["answers"] = body["answers"][:9]
    resp = client.post(f"/api/reading/submit/{reading_test_id}", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.get_json()["message"] == "Must provide exactly 10 answers"
    assert ReadingTestAttempt.query.count() == 0


def test_submit_rejects_invalid_option(client, auth_headers, reading_test_id):
    body = _submission(9)
    body["answers"][0]["selectedAnswer"] = "E"
    resp = client.post(f"/api/reading/submit/{reading_test_id}", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert "answers" in resp.get_json()["errors"]


def test_submit_rejects_missing_times(client, auth_headers, reading_test_id):
    body = _submission(9)
    del body["startTime"]
    resp = client.post(f"/api/reading/submit/{reading_test_id}", json=body, headers=auth_headers)
    assert resp.status_code == 400
    assert "startTime" in resp.get_json()["errors"]


def test_submit_rejects_end_before_start(client, auth_headers, reading_test_id):
    resp = client.post(
        f"/api/reading/submit/{reading_test_id}",
        json=_submission(9, end="2026-01-05T09:59:00Z"),
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.get_json()["errorCode"] == "validation_error"


def test_submit_unknown_test_returns_404(client, auth_headers):
    resp = client.post("/api/reading/submit/4242", json=_submission(9), headers=auth_headers)
    assert resp.status_code == 404


def test_attempt_history_and_stats(app_with_db, client, auth_headers, reading_test_id):
    client.post(f"/api/reading/submit/{reading_test_id}", json=_submission(9), headers=auth_headers)
    client.post(
        f"/api/reading/submit/{reading_test_id}",
        json=_submission(5, end="2026-01-05T10:20:00Z"),
        headers=auth_headers,
    )

    history = client.get("/api/reading/my-attempts?limit=1", headers=auth_headers)
    assert history.status_code == 200
    payload = history.get_json()
    assert len(payload["attempts"]) == 1
    latest = payload["attempts"][0]
    assert latest["score"]["percentage"] == 50.0
    assert latest["readingTest"]["title"] == "Reading Test"
    assert latest["readingTest"]["level"] == "intermediate"
    assert payload["pagination"]["totalAttempts"] == 2
    assert payload["pagination"]["hasNextPage"] is True

    stats = client.get("/api/reading/my-stats", headers=auth_headers).get_json()["stats"]
    assert stats["totalAttempts"] == 2
    assert stats["averageScore"] == 70.0
    assert stats["averageBandScore"] == 7.0
    assert stats["averageTimeSpent"] == 18.5
    assert stats["bestScore"] == 90.0
    assert stats["latestAttempt"] is not None


def test_history_is_scoped_to_the_caller(app_with_db, client, auth_headers, reading_test_id):
    client.post(f"/api/reading/submit/{reading_test_id}", json=_submission(9), headers=auth_headers)
    other_token = generate_access_token("candidate-2")
    other_headers = {"Authorization": f"Bearer {other_token}"}

    history = client.get("/api/reading/my-attempts", headers=other_headers).get_json()
    assert history["attempts"] == []
    stats = client.get("/api/reading/my-stats", headers=other_headers).get_json()["stats"]
    assert stats["totalAttempts"] == 0
    assert stats["averageScore"] is None


def test_cli_generate_and_stats(app_with_db, fake_client_factory):
    app_with_db.extensions["ai_client"] = fake_client_factory(questions_per_round=12)
    runner = app_with_db.test_cli_runner()
    result = runner.invoke(args=["reading", "generate-test", "--level", "beginner"])
    assert result.exit_code == 0, result.output
    assert "Generated reading test" in result.output
    assert "(36 questions)" in result.output
    assert ReadingTest.query.count() == 1

    stats = runner.invoke(args=["reading", "stats"])
    assert stats.exit_code == 0, stats.output
    assert "Tests: 1 (1 active), attempts: 0" in stats.output


def test_cli_generate_reports_failure(app_with_db, fake_client_factory):
    app_with_db.extensions["ai_client"] = fake_client_factory(fail_on_call=1)
    runner = app_with_db.test_cli_runner()
    result = runner.invoke(args=["reading", "generate-test"])
    assert result.exit_code != 0
    assert "no_json_found" in result.output
