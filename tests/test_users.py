import pytest
from fastapi.testclient import TestClient

from backend.app.core.security import decode_access_token
from backend.app.db.base import Base
from backend.app.db.session import engine
from backend.app.main import app

client = TestClient(app)


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def create_user(company_id, **overrides):
    payload = {
        "companyId": company_id,
        "name": "Olivia Owner",
        "email": "owner@spartan.example.com",
        "password": "secret123",
        "role": "owner",
    }
    payload.update(overrides)
    return client.post("/api/users", json=payload)


def test_create_and_list_users(make_company):
    company = make_company(client)

    response = create_user(company["id"])

    assert response.status_code == 201
    user = response.json()["user"]
    assert user["email"] == "owner@spartan.example.com"
    assert "passwordHash" not in user

    listed = client.get("/api/users", params={"companyId": company["id"]}).json()["users"]
    assert [u["companyName"] for u in listed] == ["Spartan Exteriors"]


def test_create_user_requires_existing_company():
    response = create_user("missing")
    assert response.status_code == 404


def test_duplicate_email_conflicts(make_company):
    company = make_company(client)
    create_user(company["id"])
    response = create_user(company["id"], name="Someone Else")
    assert response.status_code == 409
    assert response.json() == {"error": "User with this email already exists"}


def test_login_returns_web_token(make_company):
    company = make_company(client)
    user_id = create_user(company["id"]).json()["user"]["id"]

    response = client.post("/api/users/login", json={"email": "owner@spartan.example.com", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["token_type"] == "bearer"
    assert body["user"]["lastLogin"] is not None
    claims = decode_access_token(body["access_token"])
    assert claims["sub"] == user_id
    assert claims["kind"] == "web"
    assert claims["company_id"] == company["id"]


def test_login_with_wrong_password(make_company):
    company = make_company(client)
    create_user(company["id"])
    response = client.post("/api/users/login", json={"email": "owner@spartan.example.com", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"error": "Invalid email or password"}


def test_inactive_user_cannot_login(make_company):
    company = make_company(client)
    create_user(company["id"], isActive=False)
    response = client.post("/api/users/login", json={"email": "owner@spartan.example.com", "password": "secret123"})
    assert response.status_code == 401


def test_update_and_delete_user(make_company):
    company = make_company(client)
    user_id = create_user(company["id"]).json()["user"]["id"]

    response = client.put("/api/users", json={"id": user_id, "role": "manager", "password": "changed123"})
    assert response.status_code == 200
    assert response.json()["user"]["role"] == "manager"
    login = client.post("/api/users/login", json={"email": "owner@spartan.example.com", "password": "changed123"})
    assert login.status_code == 200

    assert client.delete("/api/users", params={"id": user_id}).status_code == 200
    assert client.delete("/api/users", params={"id": user_id}).status_code == 404


def test_verify_accepts_web_token(make_company):
    company = make_company(client)
    create_user(company["id"])
    token = client.post("/api/users/login", json={"email": "owner@spartan.example.com", "password": "secret123"}).json()["access_token"]

    response = client.get("/api/auth/verify", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["kind"] == "web"
    assert body["user"]["role"] == "owner"
    assert "manage_users" in body["permissions"]
