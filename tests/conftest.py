from datetime import datetime, timezone

import mongomock
import pytest

from quiz_backend.database import ensure_indexes
from quiz_backend.extensions import bcrypt, mongo
from quiz_backend.main import create_testing_app

PASSWORD = "secret123"


@pytest.fixture
def app():
    app = create_testing_app()
    mongo.cx = mongomock.MongoClient()
    mongo.db = mongo.cx["quiz_app_test"]
    ensure_indexes(mongo.db)
    yield app


@pytest.fixture
def db(app):
    return mongo.db


@pytest.fixture
def client(app):
    return app.test_client()


def make_user(db, username, email, role="User", password=PASSWORD):
    now = datetime.now(timezone.utc)
    user = {
        "username": username,
        "email": email,
        "password": bcrypt.generate_password_hash(password).decode("utf-8"),
        "role": role,
        "createdAt": now,
        "updatedAt": now,
    }
    user["_id"] = db.users.insert_one(user).inserted_id
    return user


def login(app, user, password=PASSWORD):
    client = app.test_client()
    response = client.post("/api/auth/login", json={"email": user["email"], "password": password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def admin_user(db):
    return make_user(db, "admin", "admin@example.com", role="Admin")


@pytest.fixture
def regular_user(db):
    return make_user(db, "alice", "alice@example.com")


@pytest.fixture
def admin_client(app, admin_user):
    return login(app, admin_user)


@pytest.fixture
def user_client(app, regular_user):
    return login(app, regular_user)


@pytest.fixture
def make_quiz(db, admin_user):
    """Insert a quiz owned by ``admin_user`` with the given questions."""

    def _make_quiz(questions=(), is_active=True, title="Capitals", owner=None):
        now = datetime.now(timezone.utc)
        quiz = {
            "title": title,
            "description": "Test quiz",
            "createdBy": (owner or admin_user)["_id"],
            "questions": [],
            "isActive": is_active,
            "createdAt": now,
            "updatedAt": now,
        }
        quiz["_id"] = db.quizzes.insert_one(quiz).inserted_id
        for text, options, answer in questions:
            question_id = db.questions.insert_one({
                "questionText": text,
                "options": list(options),
                "correctAnswer": answer,
                "quiz": quiz["_id"],
            }).inserted_id
            quiz["questions"].append(question_id)
        db.quizzes.update_one({"_id": quiz["_id"]}, {"$set": {"questions": quiz["questions"]}})
        return quiz

    return _make_quiz


CAPITALS = [
    ("Capital of France?", ["Paris", "Lyon"], "Paris"),
    ("Capital of Japan?", ["Osaka", "Tokyo", "Kyoto"], "Tokyo"),
    ("Capital of Peru?", ["Lima", "Cusco"], "Lima"),
    ("Capital of Chile?", ["Santiago", "Valparaiso"], "Santiago"),
]
