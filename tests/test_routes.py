import pytest
from fastapi.testclient import TestClient

from kcheck.app import app
from kcheck.database import get_db

HEADERS = {"X-User-Id": "lead-1"}


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _create_question(client: TestClient, **overrides) -> dict:
    payload = {
        "question_text": "Which port does HTTPS use?",
        "options": [{"text": "443", "is_correct": True}, {"text": "80", "is_correct": False}],
    }
    payload.update(overrides)
    response = client.post("/api/kc/questions", json=payload)
    assert response.status_code == 200, response.text
    return response.json()


def _create_test(client: TestClient, question_ids: list[str]) -> dict:
    response = client.post(
        "/api/kc/tests",
        json={"name": "Networking", "questions": [{"question_id": q} for q in question_ids]},
    )
    assert response.status_code == 200, response.text
    return response.json()


def test_full_flow(client: TestClient) -> None:
    category = client.post("/api/kc/categories", json={"name": "Network", "default_weighting": 2})
    assert category.status_code == 200
    question = _create_question(client, category_id=category.json()["id"])
    assert question["effective_weighting"] == 2

    test = _create_test(client, [question["id"]])
    run = client.post(
        "/api/kc/runs",
        json={"name": "Week 1", "test_ids": [test["id"]], "user_ids": ["agent-7"]},
        headers=HEADERS,
    )
    assert run.status_code == 200, run.text
    run_body = run.json()
    assert run_body["run_number"] == "TR-0001"
    assert run_body["created_by"] == "lead-1"

    mine = client.get("/api/kc/assignments/mine", headers={"X-User-Id": "agent-7"})
    [assignment] = mine.json()

    correct = [o["id"] for o in question["options"] if o["is_correct"]]
    result = client.post(
        "/api/kc/results",
        json={
            "test_id": test["id"],
            "user_id": "agent-7",
            "assignment_id": assignment["id"],
            "answers": [{"question_id": question["id"], "selected_options": correct}],
        },
        headers={"X-User-Id": "agent-7"},
    )
    assert result.status_code == 200, result.text
    assert result.json()["percentage"] == 100
    assert result.json()["evaluator_id"] is None

    finished = client.get(f"/api/kc/runs/{run_body['id']}").json()
    assert finished["status"] == "completed"
    assert finished["stats"]["completed_count"] == 1

    pending = client.get("/api/kc/assignments/mine/pending-count", headers={"X-User-Id": "agent-7"})
    assert pending.json() == {"count": 0}


def test_run_creation_requires_actor(client: TestClient) -> None:
    response = client.post("/api/kc/runs", json={"name": "Anonymous"})
    assert response.status_code == 401


def test_missing_entities_return_404(client: TestClient) -> None:
    assert client.get("/api/kc/tests/missing").status_code == 404
    assert client.get("/api/kc/questions/missing").status_code == 404
    response = client.post("/api/kc/results", json={"test_id": "missing", "user_id": "u1"})
    assert response.status_code == 404


def test_invalid_question_returns_400(client: TestClient) -> None:
    response = client.post(
        "/api/kc/questions",
        json={
            "question_text": "Explain DNS",
            "question_type": "open_question",
            "options": [{"text": "A", "is_correct": True}],
        },
    )
    assert response.status_code == 400


def test_delete_and_permanent_delete(client: TestClient) -> None:
    question = _create_question(client)
    test = _create_test(client, [question["id"]])
    client.post("/api/kc/results", json={"test_id": test["id"], "user_id": "u1"})

    refused = client.delete(f"/api/kc/tests/{test['id']}/permanent")
    assert refused.status_code == 400
    assert "archived" in refused.json()["detail"]

    archived = client.delete(f"/api/kc/tests/{test['id']}")
    assert archived.json() == {"success": True, "archived": True, "deleted": False, "error": None}

    assert client.delete(f"/api/kc/tests/{test['id']}/permanent").json()["deleted"]


def test_check_answer_preview(client: TestClient) -> None:
    response = client.post(
        "/api/kc/check-answer",
        json={"answer": "reset the router", "exact_answer": "reset teh router"},
    )
    assert response.json() == {"is_correct": True, "matched_triggers": ["exact_match"]}


def test_admin_endpoints(client: TestClient) -> None:
    assert client.get("/api/kc/admin/orphaned-assignments").json() == {"count": 0}
    migrated = client.post("/api/kc/admin/migrate-orphaned-assignments").json()
    assert migrated["count"] == 0
    stats = client.get("/api/kc/statistics", headers=HEADERS).json()
    assert stats["total_tests"] == 0
    archive = client.get("/api/kc/archive/statistics").json()
    assert archive == {"archived_questions": 0, "archived_tests": 0, "archived_runs": 0}
