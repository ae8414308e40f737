from __future__ import annotations

from fastapi.testclient import TestClient

from tests.conftest import auth, mint_token


def _register(client: TestClient, **overrides) -> dict:
    body = {
        "name": "Ada",
        "email": "ada@example.com",
        "password": "correct-horse",
        **overrides,
    }
    return client.post("/v1/auth/register", json=body)


def test_register_returns_token_and_user(client: TestClient) -> None:
    resp = _register(client)
    assert resp.status_code == 201
    data = resp.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["email"] == "ada@example.com"
    assert data["user"]["role"] == "student"
    assert data["user"]["enrollments"] == []


def test_register_duplicate_email(client: TestClient) -> None:
    assert _register(client).status_code == 201
    resp = _register(client, email="ADA@example.com")
    assert resp.status_code == 409
    assert resp.json()["detail"]["code"] == "conflict"


def test_register_validation_error(client: TestClient) -> None:
    resp = _register(client, password="short")
    assert resp.status_code == 422
    assert resp.json()["detail"]["code"] == "invalid_input"


def test_login_and_me(client: TestClient) -> None:
    _register(client, role="instructor")

    resp = client.post(
        "/v1/auth/login", json={"email": " Ada@Example.com", "password": "correct-horse"}
    )
    assert resp.status_code == 200
    token = resp.json()["access_token"]

    me = client.get("/v1/auth/me", headers=auth(token))
    assert me.status_code == 200
    assert me.json()["role"] == "instructor"


def test_login_wrong_password(client: TestClient) -> None:
    _register(client)
    resp = client.post(
        "/v1/auth/login", json={"email": "ada@example.com", "password": "wrong-pass"}
    )
    assert resp.status_code == 401


def test_me_requires_token(client: TestClient) -> None:
    assert client.get("/v1/auth/me").status_code == 401
    assert client.get("/v1/auth/me", headers=auth("garbage")).status_code == 401


def test_me_rejects_non_uuid_subject(client: TestClient) -> None:
    resp = client.get("/v1/auth/me", headers=auth(mint_token(username="alice")))
    assert resp.status_code == 401


def test_me_unknown_user(client: TestClient) -> None:
    resp = client.get("/v1/auth/me", headers=auth(mint_token()))
    assert resp.status_code == 404
