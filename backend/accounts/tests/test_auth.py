import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

User = get_user_model()


@pytest.fixture
def client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        username="guest@example.com",
        email="guest@example.com",
        password="examplepass",
        first_name="Layla",
        last_name="Guest",
    )


def test_register_creates_user_and_returns_tokens(db, client):
    payload = {
        "email": "New@Example.com",
        "password": "password123",
        "confirm_password": "password123",
        "first_name": "Nour",
        "last_name": "Hassan",
        "phone": "01001234567",
    }
    response = client.post("/api/auth/register/", payload, format="json")

    assert response.status_code == 201
    body = response.json()
    assert body["user"]["email"] == "new@example.com"
    assert body["user"]["display_name"] == "Nour Hassan"
    assert "access" in body and "refresh" in body
    assert User.objects.filter(username="new@example.com").exists()


def test_register_rejects_mismatched_passwords(db, client):
    payload = {
        "email": "new@example.com",
        "password": "password123",
        "confirm_password": "password456",
    }
    response = client.post("/api/auth/register/", payload, format="json")

    assert response.status_code == 400
    assert "confirm_password" in response.json()


def test_register_with_existing_email_is_rejected(db, client, user):
    payload = {"email": "guest@example.com", "password": "password123"}
    response = client.post("/api/auth/register/", payload, format="json")

    assert response.status_code == 400
    assert "email" in response.json()


def test_login_returns_tokens_and_user_payload(db, client, user):
    response = client.post(
        "/api/auth/login/",
        {"email": "guest@example.com", "password": "examplepass"},
        format="json",
    )

    assert response.status_code == 200
    data = response.json()
    assert set(data.keys()) == {"access", "refresh", "user"}
    assert data["user"]["email"] == "guest@example.com"


def test_refresh_issues_new_access_token(db, client, user):
    login_response = client.post(
        "/api/auth/login/",
        {"email": "guest@example.com", "password": "examplepass"},
        format="json",
    )

    refresh_token = login_response.json()["refresh"]
    refresh_response = client.post("/api/auth/refresh/", {"refresh": refresh_token}, format="json")

    assert refresh_response.status_code == 200
    assert "access" in refresh_response.json()


def test_me_endpoint_requires_authentication(db, client):
    response = client.get("/api/auth/me/")
    assert response.status_code == 401


def test_me_endpoint_accepts_bearer_token(db, client, user):
    login_response = client.post(
        "/api/auth/login/",
        {"email": "guest@example.com", "password": "examplepass"},
        format="json",
    )
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {login_response.json()['access']}")

    response = client.get("/api/auth/me/")

    assert response.status_code == 200
    assert response.json()["email"] == "guest@example.com"


def test_me_patch_keeps_username_in_sync(db, client, user):
    client.force_authenticate(user=user)

    response = client.patch(
        "/api/auth/me/",
        {"email": "updated@example.com", "phone": "01111111111"},
        format="json",
    )

    assert response.status_code == 200
    user.refresh_from_db()
    assert user.email == "updated@example.com"
    assert user.username == "updated@example.com"
    assert user.phone == "01111111111"
