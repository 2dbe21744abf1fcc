import pytest
from httpx import AsyncClient
from fastapi import status

from app.utils.time_utils import utc_now

from tests.conftest import add_message, make_friends


class TestUserProfileAPI:
    """프로필 조회/수정 API 테스트"""

    @pytest.mark.asyncio
    async def test_get_profile_with_stats(
        self, client: AsyncClient, gateway, session_factory, room_1, session_headers
    ):
        await make_friends(session_factory, "alice", "bob")
        await add_message(session_factory, "room_1", "alice", "hello", utc_now())
        await gateway.save_private_message("hi bob", "alice", "bob")

        response = await client.get("/user-profile/alice", headers=session_headers("alice"))

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["profile"]["username"] == "alice"
        assert data["profile"]["email"] == "alice@example.com"
        assert data["stats"] == {"friends": 1, "rooms": 1, "messages": 2}

    @pytest.mark.asyncio
    async def test_get_profile_of_other_user(self, client: AsyncClient, users, session_headers):
        response = await client.get("/user-profile/alice", headers=session_headers("bob"))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    @pytest.mark.asyncio
    async def test_update_email(self, client: AsyncClient, gateway, users, session_headers):
        response = await client.post(
            "/update-profile",
            json={"username": "alice", "email": "alice@new.example.com"},
            headers=session_headers("alice")
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["email"] == "alice@new.example.com"
        assert await gateway.find_user_by_email("alice@example.com") is None
        assert (await gateway.find_user_by_email("alice@new.example.com")).username == "alice"

    @pytest.mark.asyncio
    async def test_update_email_taken(self, client: AsyncClient, users, session_headers):
        response = await client.post(
            "/update-profile",
            json={"username": "alice", "email": "bob@example.com"},
            headers=session_headers("alice")
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["message"] == "Email already registered"


    @pytest.mark.asyncio
    async def test_user_info_hides_email(self, client: AsyncClient, users, session_headers):
        response = await client.get("/user-info/bob", headers=session_headers("alice"))

        assert response.status_code == status.HTTP_200_OK
        user = response.json()["user"]
        assert user["username"] == "bob"
        assert user["status"] == "Offline"
        assert "email" not in user

    @pytest.mark.asyncio
    async def test_user_info_unknown_user(self, client: AsyncClient, users, session_headers):
        response = await client.get("/user-info/ghost", headers=session_headers("alice"))

        assert response.status_code == status.HTTP_404_NOT_FOUND

class TestChangePasswordAPI:
    """비밀번호 변경 API 테스트"""

    @pytest.mark.asyncio
    async def test_change_password(self, client: AsyncClient, users, session_headers):
        response = await client.post(
            "/change-password",
            json={"username": "alice", "current_password": "secret123", "new_password": "better456"},
            headers=session_headers("alice")
        )
        assert response.status_code == status.HTTP_200_OK

        old_login = await client.post("/login", json={"email": "alice@example.com", "password": "secret123"})
        new_login = await client.post("/login", json={"email": "alice@example.com", "password": "better456"})

        assert old_login.status_code == status.HTTP_401_UNAUTHORIZED
        assert new_login.status_code == status.HTTP_200_OK

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, client: AsyncClient, users, session_headers):
        response = await client.post(
            "/change-password",
            json={"username": "alice", "current_password": "wrong", "new_password": "better456"},
            headers=session_headers("alice")
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["message"] == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_new_password_too_short(self, client: AsyncClient, users, session_headers):
        response = await client.post(
            "/change-password",
            json={"username": "alice", "current_password": "secret123", "new_password": "ab"},
            headers=session_headers("alice")
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
