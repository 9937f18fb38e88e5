import os

import pytest


@pytest.fixture
def frontend(settings):
    os.makedirs(settings.FRONTEND_DIR, exist_ok=True)
    index = os.path.join(settings.FRONTEND_DIR, "index.html")
    with open(index, "w") as f:
        f.write("<html>portal</html>")
    yield settings.FRONTEND_DIR
    os.remove(index)


def test_liveness(client):
    res = client.get("/api/test")
    assert res.status_code == 200
    assert res.json()["backend"] == "running"


def test_spa_fallback(client, frontend):
    res = client.get("/exams/today")
    assert res.status_code == 200
    assert "portal" in res.text


def test_api_routes_win_over_fallback(client, frontend):
    assert client.get("/students").json() == []


def test_missing_frontend_is_json_404(client):
    res = client.get("/nowhere")
    assert res.status_code == 404
    assert res.json() == {"error": "Not found"}


def test_validation_errors_are_400(client):
    res = client.post("/drafts", json={"title": "x"})
    assert res.status_code == 400
    assert res.json()["error"] == "Invalid request"
    assert "subject" in res.json()["fields"]
