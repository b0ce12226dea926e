from datetime import timedelta

from bson import ObjectId

from auth import create_access_token
from config import Settings


def test_register_login_and_me(client):
    res = client.post("/auth/register", json={"name": "Ada", "email": "Ada@Example.com", "password": "s3cret"})
    assert res.status_code == 201
    body = res.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["email"] == "ada@example.com"
    assert body["user"]["role"] == "user"
    assert "passwordHash" not in body["user"]

    res = client.post("/auth/login", json={"email": "ada@example.com", "password": "s3cret"})
    assert res.status_code == 200
    token = res.json()["access_token"]

    res = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json()["name"] == "Ada"
    assert "passwordHash" not in res.json()


def test_register_duplicate_email(client):
    payload = {"name": "Ada", "email": "ada@example.com", "password": "s3cret"}
    client.post("/auth/register", json=payload)
    res = client.post("/auth/register", json={**payload, "email": "ADA@example.com"})
    assert res.status_code == 400
    assert res.json() == {"message": "Email already registered"}


def test_login_wrong_password(client):
    client.post("/auth/register", json={"name": "Ada", "email": "ada@example.com", "password": "s3cret"})
    res = client.post("/auth/login", json={"email": "ada@example.com", "password": "nope"})
    assert res.status_code == 400
    assert res.json() == {"message": "Invalid email or password"}


def test_missing_token(client):
    res = client.get("/auth/me")
    assert res.status_code == 401
    assert res.headers["www-authenticate"] == "Bearer"


def test_non_bearer_header(client, user):
    res = client.get("/auth/me", headers={"Authorization": "Basic abc"})
    assert res.status_code == 401


def test_token_signed_with_other_key(client, user):
    user_id, _ = user
    token = create_access_token({"sub": user_id}, Settings(jwt_secret="someone-else"))
    res = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json() == {"message": "Token is not valid"}


def test_expired_token(client, settings, user):
    user_id, _ = user
    token = create_access_token({"sub": user_id}, settings, expires_delta=timedelta(minutes=-5))
    res = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401


def test_token_for_unknown_user(client, settings):
    token = create_access_token({"sub": str(ObjectId())}, settings)
    res = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 401
    assert res.json() == {"message": "User not found"}


def test_admin_can_create_product_user_cannot(client, user, admin):
    from conftest import BOOK

    _, user_headers = user
    _, admin_headers = admin
    assert client.post("/products", json=BOOK, headers=user_headers).status_code == 403
    assert client.post("/products", json=BOOK, headers=admin_headers).status_code == 201
