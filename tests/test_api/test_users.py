"""
Tests for user directory API endpoints.

Endpoints tested:
- GET    /api/v1/users/browse
- GET    /api/v1/users/{user_id}
- POST   /api/v1/users/skills/{kind}
- PUT    /api/v1/users/skills/{kind}/{skill_id}
- DELETE /api/v1/users/skills/{kind}/{skill_id}
- PUT    /api/v1/users/availability
"""

from httpx import AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from skillswap.db.models import UserSkillDB
from tests.factories import auth_header, make_skill, make_skills, make_user


async def _add(db_session: AsyncSession, *objects):
    db_session.add_all(objects)
    await db_session.commit()


class TestBrowse:
    """Tests for GET /api/v1/users/browse."""

    async def test_browse_lists_public_active_users_by_rating(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        low = make_user(name="Low", rating_average=3.0, rating_count=1)
        high = make_user(name="High", rating_average=4.8, rating_count=5)
        private = make_user(name="Hidden", is_public=False, rating_average=5.0)
        banned = make_user(name="Banned", is_banned=True, rating_average=5.0)
        await _add(db_session, low, high, private, banned)

        response = await client.get("/api/v1/users/browse")
        assert response.status_code == 200
        data = response.json()
        assert [u["name"] for u in data["users"]] == ["High", "Low"]
        assert "email" not in data["users"][0]
        assert data["pagination"] == {
            "current": 1, "total": 1, "has_next": False, "has_prev": False,
        }

    async def test_browse_filters_by_skill(self, client: AsyncClient, db_session: AsyncSession):
        guitarist = make_user(name="Guitarist")
        cook = make_user(name="Cook")
        await _add(
            db_session, guitarist, cook,
            *make_skills(guitarist.id, offered=["Jazz Guitar"]),
            *make_skills(cook.id, offered=["Cooking"], wanted=["Guitar"]),
        )

        response = await client.get("/api/v1/users/browse", params={"skill": "guitar"})
        names = sorted(u["name"] for u in response.json()["users"])
        assert names == ["Cook", "Guitarist"]

        response = await client.get("/api/v1/users/browse", params={"skill": "cook"})
        users = response.json()["users"]
        assert [u["name"] for u in users] == ["Cook"]
        assert users[0]["skills_offered"][0]["name"] == "Cooking"
        assert users[0]["skills_wanted"][0]["name"] == "Guitar"

    async def test_browse_filters_by_location(self, client: AsyncClient, db_session: AsyncSession):
        await _add(
            db_session,
            make_user(name="Lisbon", location="Lisbon, Portugal"),
            make_user(name="Berlin", location="Berlin"),
        )
        response = await client.get("/api/v1/users/browse", params={"location": "portugal"})
        assert [u["name"] for u in response.json()["users"]] == ["Lisbon"]

    async def test_browse_pagination(self, client: AsyncClient, db_session: AsyncSession):
        await _add(db_session, *[make_user(name=f"User {i}") for i in range(5)])

        response = await client.get("/api/v1/users/browse", params={"page": 2, "limit": 2})
        data = response.json()
        assert len(data["users"]) == 2
        assert data["pagination"] == {
            "current": 2, "total": 3, "has_next": True, "has_prev": True,
        }


class TestProfile:
    """Tests for GET /api/v1/users/{user_id}."""

    async def test_public_profile_anonymous(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user(name="Alice", location="Lisbon")
        await _add(db_session, user, make_skill(user.id, "Guitar", level="Advanced"))

        response = await client.get(f"/api/v1/users/{user.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Alice"
        assert data["skills_offered"][0]["level"] == "Advanced"
        assert data["availability"]["weekends"] is False
        assert "email" not in data

    async def test_private_profile_hidden_from_others(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        owner = make_user(is_public=False)
        other = make_user()
        await _add(db_session, owner, other)

        assert (await client.get(f"/api/v1/users/{owner.id}")).status_code == 403
        response = await client.get(f"/api/v1/users/{owner.id}", headers=auth_header(other))
        assert response.status_code == 403

    async def test_private_profile_visible_to_owner(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        owner = make_user(is_public=False)
        await _add(db_session, owner)

        response = await client.get(f"/api/v1/users/{owner.id}", headers=auth_header(owner))
        assert response.status_code == 200

    async def test_unknown_user(self, client: AsyncClient):
        response = await client.get("/api/v1/users/does-not-exist")
        assert response.status_code == 404


class TestSkills:
    """Tests for the skill catalog endpoints."""

    async def test_add_offered_skill(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        await _add(db_session, user)

        response = await client.post(
            "/api/v1/users/skills/offered",
            json={"name": "  Guitar ", "description": "Acoustic"},
            headers=auth_header(user),
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Guitar"
        assert data["level"] == "Intermediate"
        assert data["priority"] is None

        profile = (await client.get(f"/api/v1/users/{user.id}")).json()
        assert [s["id"] for s in profile["skills_offered"]] == [data["id"]]

    async def test_add_wanted_skill_with_priority(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        user = make_user()
        await _add(db_session, user)

        response = await client.post(
            "/api/v1/users/skills/wanted",
            json={"name": "Cooking", "priority": "High"},
            headers=auth_header(user),
        )
        assert response.status_code == 201
        assert response.json()["priority"] == "High"
        assert response.json()["level"] is None

    async def test_add_skill_rejects_bad_input(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        await _add(db_session, user)
        headers = auth_header(user)

        blank = await client.post("/api/v1/users/skills/offered", json={"name": " "}, headers=headers)
        assert blank.status_code == 400
        level = await client.post(
            "/api/v1/users/skills/offered",
            json={"name": "Guitar", "level": "Wizard"},
            headers=headers,
        )
        assert level.status_code == 400
        kind = await client.post("/api/v1/users/skills/other", json={"name": "Guitar"}, headers=headers)
        assert kind.status_code == 400

    async def test_add_skill_requires_auth(self, client: AsyncClient):
        response = await client.post("/api/v1/users/skills/offered", json={"name": "Guitar"})
        assert response.status_code == 401

    async def test_update_skill(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        skill = make_skill(user.id, "Guitar")
        await _add(db_session, user, skill)

        response = await client.put(
            f"/api/v1/users/skills/offered/{skill.id}",
            json={"name": "Bass Guitar", "level": "Expert"},
            headers=auth_header(user),
        )
        assert response.status_code == 200
        assert response.json()["name"] == "Bass Guitar"
        assert response.json()["level"] == "Expert"

    async def test_cannot_touch_someone_elses_skill(
        self, client: AsyncClient, db_session: AsyncSession
    ):
        owner = make_user()
        other = make_user()
        skill = make_skill(owner.id, "Guitar")
        await _add(db_session, owner, other, skill)

        update = await client.put(
            f"/api/v1/users/skills/offered/{skill.id}",
            json={"name": "Mine now"},
            headers=auth_header(other),
        )
        assert update.status_code == 404
        delete = await client.delete(
            f"/api/v1/users/skills/offered/{skill.id}", headers=auth_header(other)
        )
        assert delete.status_code == 404

    async def test_delete_skill(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        skill = make_skill(user.id, "Cooking", kind="wanted")
        await _add(db_session, user, skill)

        wrong_kind = await client.delete(
            f"/api/v1/users/skills/offered/{skill.id}", headers=auth_header(user)
        )
        assert wrong_kind.status_code == 404

        response = await client.delete(
            f"/api/v1/users/skills/wanted/{skill.id}", headers=auth_header(user)
        )
        assert response.status_code == 204

        skill_id = skill.id
        db_session.expire_all()
        result = await db_session.execute(select(UserSkillDB).where(UserSkillDB.id == skill_id))
        assert result.scalar_one_or_none() is None


class TestAvailability:
    """Tests for PUT /api/v1/users/availability."""

    async def test_update_availability(self, client: AsyncClient, db_session: AsyncSession):
        user = make_user()
        await _add(db_session, user)

        response = await client.put(
            "/api/v1/users/availability",
            json={"weekends": True, "evenings": True, "custom_schedule": "Sat mornings"},
            headers=auth_header(user),
        )
        assert response.status_code == 200
        assert response.json() == {
            "weekdays": False,
            "weekends": True,
            "evenings": True,
            "custom_schedule": "Sat mornings",
        }

        profile = (await client.get(f"/api/v1/users/{user.id}")).json()
        assert profile["availability"]["weekends"] is True
