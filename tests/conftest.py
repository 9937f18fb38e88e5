import os
import tempfile

_TMP = tempfile.mkdtemp(prefix="academy-tests-")
os.environ.setdefault("MONGO_URI", "mongodb://localhost:27017")
os.environ["JWT_SECRET"] = "test-secret"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ENVIRONMENT"] = "test"
os.environ["UPLOAD_DIR"] = os.path.join(_TMP, "uploads")
os.environ["FRONTEND_DIR"] = os.path.join(_TMP, "frontend")

import mongomock
import pytest
from fastapi.testclient import TestClient

import database
from main import create_app
from settings import get_settings


@pytest.fixture
def mongo_db():
    db = mongomock.MongoClient()["academy_test"]
    database.use_database(db)
    yield db
    database.db = None


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def app(mongo_db):
    application = create_app()
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    # No context manager: the lifespan would connect to a real server.
    return TestClient(app)


@pytest.fixture
def override_settings(app):
    def apply(**changes):
        patched = get_settings().model_copy(update=changes)
        app.dependency_overrides[get_settings] = lambda: patched
        return patched
    return apply


@pytest.fixture
def auth_headers(client):
    def login(mobile="9000000001", name="Asha", password="secret123"):
        client.post("/students", json={"name": name, "roll": "R1", "mobile": mobile, "password": password})
        res = client.post("/student-login", json={"mobile": mobile, "password": password})
        assert res.status_code == 200
        return {"Authorization": f"Bearer {res.json()['token']}"}
    return login


class NoPrecheck:
    """Collection wrapper whose find_one sees nothing, as a request losing a race would."""

    def __init__(self, coll):
        self._coll = coll

    def find_one(self, *args, **kwargs):
        return None

    def __getattr__(self, name):
        return getattr(self._coll, name)


def without_precheck(db, name):
    """Stand-in for `collection` that hides existing documents of one collection."""
    return lambda requested: NoPrecheck(db[requested]) if requested == name else db[requested]


def make_questions(answers):
    return [
        {
            "questionText": f"Question {i + 1}",
            "options": ["A) one", "B) two", "C) three", "D) four"],
            "correctAnswer": answer,
        }
        for i, answer in enumerate(answers)
    ]


@pytest.fixture
def conducted_exam(client):
    def conduct(answers=("A", "B", "C", "D"), title="Science", test_number=1, subject="Science",
                class_num=None, duration=None):
        res = client.post("/drafts", json={
            "title": title,
            "subject": subject,
            "testNumber": test_number,
            "classNum": class_num,
            "duration": duration,
            "questions": make_questions(answers),
        })
        assert res.status_code == 200
        res = client.post(f"/conduct/{res.json()['draftId']}")
        assert res.status_code == 200
        return res.json()["examId"]
    return conduct
