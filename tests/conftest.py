import mongomock
import pytest
from fastapi.testclient import TestClient

from auth import create_access_token
from config import Settings
from database import Database
from main import create_app


BOOK = {
    "title": "The Great Gatsby",
    "author": "F. Scott Fitzgerald",
    "description": "A classic American novel",
    "coverImage": "https://example.com/gatsby.jpg",
    "price": 12.99,
    "genre": "Classic Literature",
    "stock": 25,
}


@pytest.fixture
def settings():
    return Settings(database_name="bookstore_test", jwt_secret="test-secret")


@pytest.fixture
def database():
    # fresh in-memory database per test
    return Database(mongomock.MongoClient()["bookstore_test"])


@pytest.fixture
def client(settings, database):
    app = create_app(settings, database)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def make_user(settings, database):
    def _make_user(role="user", email=None):
        user = database.users.create({
            "name": f"{role} tester",
            "email": email or f"{role}@example.com",
            "passwordHash": "not-a-real-hash",
            "role": role,
        })
        user_id = str(user["_id"])
        token = create_access_token({"sub": user_id}, settings)
        return user_id, {"Authorization": f"Bearer {token}"}

    return _make_user


@pytest.fixture
def user(make_user):
    return make_user("user")


@pytest.fixture
def admin(make_user):
    return make_user("admin")


@pytest.fixture
def create_book(client, admin):
    _, headers = admin

    def _create_book(**overrides):
        res = client.post("/products", json={**BOOK, **overrides}, headers=headers)
        assert res.status_code == 201, res.text
        return res.json()["product"]

    return _create_book
