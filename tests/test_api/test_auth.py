"""
Tests for authentication API endpoints.

Endpoints tested:
- POST /api/v1/auth/register
- POST /api/v1/auth/login
- POST /api/v1/auth/refresh
- GET  /api/v1/auth/me
- PUT  /api/v1/auth/profile
- POST /api/v1/auth/change-password
"""

from datetime import datetime, timedelta

from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.config import get_settings
from skillswap.services.auth_service import create_access_token, create_refresh_token
from tests.factories import PASSWORD, auth_header, make_skill, make_user


def _get_secret():
    return get_settings().effective_jwt_secret


async def _add(db_session: AsyncSession, *objects):
    db_session.add_all(objects)
    await db_session.commit()


class TestRegister:
    """Tests for POST /api/v1/auth/register."""

    async def test_register_success(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "name": " Alice ",
                "email": "Alice@Example.com",
                "password": "secret1",
                "location": "Lisbon",
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["access_token"]
        assert data["refresh_token"]
        user = data["user"]
        assert user["name"] == "Alice"
        assert user["email"] == "alice@example.com"
        assert user["location"] == "Lisbon"
        assert user["role"] == "user"
        assert user["is_public"] is True
        assert user["rating"] == {"average": 0.0, "count": 0}
        assert user["skills_offered"] == []

    async def test_register_duplicate_email(self, client: AsyncClient, db_session: AsyncSession):
        await _add(db_session, make_user(email="taken@example.com"))

        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Other", "email": "TAKEN@example.com", "password": "secret1"},
        )
        assert response.status_code == 409

    async def test_register_short_password(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Bob", "email": "bob@example.com", "password": "123"},
        )
        assert response.status_code == 400

    async def test_register_invalid_email(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"name": "Bob", "email": "not-an-email", "password": "secret1"},
        )
        assert response.status_code == 400

    async def test_register_missing_field(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/register",
            json={"email": "bob@example.com", "password": "secret1"},
        )
        assert response.status_code == 400


class TestLogin:
    """Tests for POST /api/v1/auth/login."""

    async def test_login_success(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user(name="Alice", email="alice@example.com")
        await _add(db_session, user, make_skill(user.id, "Guitar"))

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": PASSWORD},
        )
        assert response.status_code == 200
        data = response.json()
        assert "access_token" in data
        assert "refresh_token" in data
        assert data["user"]["id"] == user.id
        assert data["user"]["skills_offered"][0]["name"] == "Guitar"

    async def test_login_wrong_password(self, client: AsyncClient, db_session: AsyncSession):
        await _add(db_session, make_user(email="alice@example.com"))

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "wrongpassword"},
        )
        assert response.status_code == 401

    async def test_login_unknown_email(self, client: AsyncClient):
        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "nobody@example.com", "password": PASSWORD},
        )
        assert response.status_code == 401

    async def test_login_banned_user(self, client: AsyncClient, db_session: AsyncSession):
        await _add(db_session, make_user(email="banned@example.com", is_banned=True))

        response = await client.post(
            "/api/v1/auth/login",
            json={"email": "banned@example.com", "password": PASSWORD},
        )
        assert response.status_code == 403


class TestRefreshToken:
    """Tests for POST /api/v1/auth/refresh."""

    async def test_refresh_success(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        await _add(db_session, user)

        token = create_refresh_token(user.id, _get_secret())
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        assert response.status_code == 200
        new_token = response.json()["access_token"]

        me = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {new_token}"}
        )
        assert me.status_code == 200
        assert me.json()["id"] == user.id

    async def test_refresh_with_access_token_rejected(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        user = make_user()
        await _add(db_session, user)

        token = create_access_token(user.id, user.role, _get_secret())
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        assert response.status_code == 401

    async def test_refresh_garbage_token(self, client: AsyncClient):
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": "garbage"})
        assert response.status_code == 401

    async def test_refresh_banned_user(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user(is_banned=True)
        await _add(db_session, user)

        token = create_refresh_token(user.id, _get_secret())
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        assert response.status_code == 403

    async def test_refresh_token_older_than_password_change(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        user = make_user(password_changed_at=datetime.utcnow() + timedelta(minutes=1))
        await _add(db_session, user)

        token = create_refresh_token(user.id, _get_secret())
        response = await client.post("/api/v1/auth/refresh", json={"refresh_token": token})
        assert response.status_code == 401
        assert response.json()["detail"] == "Token invalidated by password change"


class TestMe:
    """Tests for GET /api/v1/auth/me and the auth dependency."""

    async def test_me_returns_private_profile(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user(email="me@example.com")
        await _add(db_session, user)

        response = await client.get("/api/v1/auth/me", headers=auth_header(user))
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "me@example.com"
        assert data["is_banned"] is False

    async def test_me_requires_token(self, client: AsyncClient):
        response = await client.get("/api/v1/auth/me")
        assert response.status_code == 401

    async def test_me_rejects_refresh_token(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        await _add(db_session, user)

        token = create_refresh_token(user.id, _get_secret())
        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_me_token_for_deleted_user(self, client: AsyncClient):
        token = create_access_token("no-such-user", "user", _get_secret())
        response = await client.get(
            "/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401

    async def test_banned_user_token_is_refused(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        user = make_user(is_banned=True)
        await _add(db_session, user)

        response = await client.get("/api/v1/auth/me", headers=auth_header(user))
        assert response.status_code == 403

    async def test_access_token_older_than_password_change(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        user = make_user(password_changed_at=datetime.utcnow() + timedelta(minutes=1))
        await _add(db_session, user)

        response = await client.get("/api/v1/auth/me", headers=auth_header(user))
        assert response.status_code == 401
        assert response.json()["detail"] == "Token invalidated by password change"

    async def test_access_token_newer_than_password_change(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        user = make_user(password_changed_at=datetime.utcnow() - timedelta(minutes=1))
        await _add(db_session, user)

        response = await client.get("/api/v1/auth/me", headers=auth_header(user))
        assert response.status_code == 200


class TestProfile:
    """Tests for PUT /api/v1/auth/profile."""

    async def test_update_profile(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user(name="Old Name")
        await _add(db_session, user)

        response = await client.put(
            "/api/v1/auth/profile",
            json={"name": "New Name", "location": "Porto", "is_public": False},
            headers=auth_header(user),
        )
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "New Name"
        assert data["location"] == "Porto"
        assert data["is_public"] is False

        await db_session.refresh(user)
        assert user.name == "New Name"
        assert user.is_public is False

    async def test_update_profile_blank_name(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        await _add(db_session, user)

        response = await client.put(
            "/api/v1/auth/profile", json={"name": "   "}, headers=auth_header(user)
        )
        assert response.status_code == 400


class TestChangePassword:
    """Tests for POST /api/v1/auth/change-password."""

    async def test_change_password(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user(email="alice@example.com")
        await _add(db_session, user)

        response = await client.post(
            "/api/v1/auth/change-password",
            json={"current_password": PASSWORD, "new_password": "newsecret"},
            headers=auth_header(user),
        )
        assert response.status_code == 200

        old = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": PASSWORD},
        )
        assert old.status_code == 401
        new = await client.post(
            "/api/v1/auth/login",
            json={"email": "alice@example.com", "password": "newsecret"},
        )
        assert new.status_code == 200

    async def test_change_password_wrong_current(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        user = make_user()
        await _add(db_session, user)

        response = await client.post(
            "/api/v1/auth/change-password",
            json={"current_password": "wrong", "new_password": "newsecret"},
            headers=auth_header(user),
        )
        assert response.status_code == 400
