"""
Tests for authentication: password hashing, tokens and login endpoints.
"""

import jwt
import pytest

from tablebook_shared.config.settings import JWT_AUDIENCE, JWT_ISSUER, JWT_SECRET
from tablebook_shared.security.auth import (
    sign_customer_token,
    sign_jwt,
    sign_staff_token,
    verify_jwt,
)
from tablebook_shared.security.password import hash_password, verify_password
from tablebook_shared.utils.exceptions import AuthenticationError
from tests.conftest import TEST_PASSWORD, bearer


class TestPasswordHashing:
    """Test password hashing utilities."""

    def test_hash_password_returns_bcrypt_hash(self):
        hashed = hash_password("mypassword", rounds=4)
        assert hashed.startswith("$2b$")

    def test_verify_password(self):
        hashed = hash_password("mypassword", rounds=4)
        assert verify_password("mypassword", hashed) is True
        assert verify_password("wrongpassword", hashed) is False

    def test_plain_text_never_verifies(self):
        assert verify_password("plaintext", "plaintext") is False


class TestTokens:
    """JWT claims and validation."""

    def test_staff_token_carries_venue(self):
        claims = verify_jwt(sign_staff_token(7, 3, "s@test.com", "manager"))

        assert claims["sub"] == "7"
        assert claims["role"] == "staff"
        assert claims["venue_id"] == 3

    def test_expired_token_rejected(self):
        token = sign_customer_token(1, "a@test.com", "A")
        claims = jwt.decode(token, JWT_SECRET, algorithms=["HS256"], audience=JWT_AUDIENCE, issuer=JWT_ISSUER)
        claims["exp"] = claims["iat"] - 10
        expired = jwt.encode(claims, JWT_SECRET, algorithm="HS256")

        with pytest.raises(AuthenticationError, match="expired"):
            verify_jwt(expired)

    def test_foreign_secret_rejected(self):
        forged = jwt.encode({"sub": "1", "role": "admin"}, "not-the-secret", algorithm="HS256")

        with pytest.raises(AuthenticationError):
            verify_jwt(forged)

    def test_staff_token_without_venue_rejected(self):
        token = sign_jwt({"sub": "1", "role": "staff", "email": "s@test.com"})

        with pytest.raises(AuthenticationError, match="venue_id"):
            verify_jwt(token)

    def test_unknown_role_rejected(self):
        token = sign_jwt({"sub": "1", "role": "waiter"})

        with pytest.raises(AuthenticationError, match="role"):
            verify_jwt(token)


class TestCustomerAuthEndpoints:
    """Customer registration, login and profile."""

    def test_register_returns_token(self, client):
        response = client.post(
            "/api/auth/register",
            json={"name": "New Diner", "email": "New@Test.com", "password": "secret123"},
        )

        assert response.status_code == 201
        data = response.json()
        assert data["token_type"] == "Bearer"
        assert data["user"]["email"] == "new@test.com"
        assert data["user"]["role"] == "customer"

        profile = client.get("/api/auth/profile", headers=bearer(data["access_token"]))
        assert profile.status_code == 200
        assert profile.json()["name"] == "New Diner"

    def test_register_duplicate_email_conflicts(self, client, seed_customer):
        response = client.post(
            "/api/auth/register",
            json={"name": "Again", "email": seed_customer.email, "password": "secret123"},
        )

        assert response.status_code == 409

    def test_register_validates_body(self, client):
        response = client.post(
            "/api/auth/register",
            json={"name": "Short", "email": "not-an-email", "password": "123"},
        )

        assert response.status_code == 422

    def test_login_success(self, client, seed_customer):
        response = client.post(
            "/api/auth/login",
            json={"email": seed_customer.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["user"]["id"] == seed_customer.id

    def test_login_wrong_password(self, client, seed_customer):
        response = client.post(
            "/api/auth/login",
            json={"email": seed_customer.email, "password": "wrongpassword"},
        )

        assert response.status_code == 401
        assert "Invalid email or password" in response.json()["detail"]

    def test_login_unknown_email_same_message(self, client):
        response = client.post(
            "/api/auth/login",
            json={"email": "nobody@test.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401
        assert "Invalid email or password" in response.json()["detail"]

    def test_profile_requires_token(self, client):
        assert client.get("/api/auth/profile").status_code == 401

    def test_profile_rejects_malformed_header(self, client):
        response = client.get("/api/auth/profile", headers={"Authorization": "Token abc"})
        assert response.status_code == 401

    def test_profile_forbidden_for_staff(self, client, staff_headers):
        assert client.get("/api/auth/profile", headers=staff_headers).status_code == 403


class TestStaffAndAdminLogin:
    """Staff and admin log in on their own routers."""

    def test_staff_login_binds_venue(self, client, seed_staff):
        response = client.post(
            "/api/staff/login",
            json={"email": "staff@test.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        user = response.json()["user"]
        assert user["restaurant_id"] == seed_staff.restaurant_id
        claims = verify_jwt(response.json()["access_token"])
        assert claims["venue_id"] == seed_staff.restaurant_id

    def test_inactive_staff_cannot_login(self, client, db_session, seed_staff):
        seed_staff.is_active = False
        db_session.commit()

        response = client.post(
            "/api/staff/login",
            json={"email": "staff@test.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    def test_customer_credentials_do_not_open_staff_login(self, client, seed_customer):
        response = client.post(
            "/api/staff/login",
            json={"email": seed_customer.email, "password": TEST_PASSWORD},
        )

        assert response.status_code == 401

    def test_admin_login(self, client, seed_admin):
        response = client.post(
            "/api/admin/login",
            json={"email": "admin@test.com", "password": TEST_PASSWORD},
        )

        assert response.status_code == 200
        assert response.json()["user"]["role"] == "admin"

    def test_admin_routes_reject_customers(self, client, customer_headers):
        assert client.get("/api/admin/stats", headers=customer_headers).status_code == 403

    def test_staff_routes_reject_admins(self, client, admin_headers):
        assert client.get("/api/staff/stats", headers=admin_headers).status_code == 403
