import string
from datetime import timedelta

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import OperationalError

from app.core.errors import StorageError
from app.models.friendships import Friendship
from app.models.messages import PrivateMessage
from app.services.persistence import SqlPersistenceGateway
from app.utils.time_utils import utc_now

from tests.conftest import add_member, add_message, create_room, make_friends


async def count_rows(session_factory, model) -> int:
    async with session_factory() as db:
        result = await db.execute(select(func.count()).select_from(model))
        return result.scalar_one()


class TestUserPersistence:
    """사용자 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_create_and_find_user(self, gateway):
        user = await gateway.create_user("dave@example.com", "dave", "hash")

        assert user.status == "Offline"
        assert (await gateway.find_user_by_email("dave@example.com")).username == "dave"
        assert (await gateway.find_user_by_username("dave")).email == "dave@example.com"
        assert await gateway.find_user_by_username("nobody") is None

    @pytest.mark.asyncio
    async def test_save_user_status(self, gateway, users):
        assert await gateway.save_user("alice", "Online") is True
        assert (await gateway.find_user_by_username("alice")).status == "Online"

        assert await gateway.save_user("nobody", "Online") is False


class TestRoomPersistence:
    """채팅방/멤버십 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_create_room(self, gateway, users):
        room_id, invite_code = await gateway.create_room("General", "bob")

        assert room_id.startswith("room_")
        assert len(invite_code) == 8
        assert all(c in string.ascii_uppercase + string.digits for c in invite_code)

        room = await gateway.get_room_by_invite_code(invite_code)
        assert room.id == room_id
        assert (await gateway.get_room_by_id(room_id)).created_by == "bob"

    @pytest.mark.asyncio
    async def test_membership(self, gateway, room_1):
        assert await gateway.is_user_in_room("room_1", "alice") is True
        assert await gateway.is_user_in_room("room_1", "carol") is False

        members = await gateway.get_room_members("room_1")
        assert [m.username for m in members] == ["bob", "alice"]

        rooms = await gateway.get_user_rooms("alice")
        assert [r.id for r in rooms] == ["room_1"]

    @pytest.mark.asyncio
    async def test_add_user_to_room_keeps_joined_at(self, gateway, room_1):
        first = await gateway.get_room_member("room_1", "alice")
        again = await gateway.add_user_to_room("room_1", "alice")

        assert again.joined_at == first.joined_at
        assert len(await gateway.get_room_members("room_1")) == 2

    @pytest.mark.asyncio
    async def test_remove_user_from_room(self, gateway, room_1):
        assert await gateway.remove_user_from_room("room_1", "alice") is True
        assert await gateway.remove_user_from_room("room_1", "alice") is False
        assert await gateway.is_user_in_room("room_1", "alice") is False


class TestMessagePersistence:
    """메시지 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_backlog_is_filtered_by_joined_at(self, gateway, session_factory, users):
        """입장 이후 메시지만, 오래된 것부터"""
        await create_room(session_factory, "room_1", created_by="bob", invite_code="ABC123")
        joined_at = utc_now() - timedelta(hours=1)
        await add_member(session_factory, "room_1", "alice", joined_at=joined_at)

        await add_message(session_factory, "room_1", "bob", "before", joined_at - timedelta(minutes=5))
        await add_message(session_factory, "room_1", "bob", "at join", joined_at)
        await add_message(session_factory, "room_1", "bob", "second", joined_at + timedelta(minutes=2))
        await add_message(session_factory, "room_1", "bob", "first", joined_at + timedelta(minutes=1))
        await add_message(session_factory, "room_2", "bob", "other room", joined_at + timedelta(minutes=3))

        messages = await gateway.get_room_messages("room_1", since=joined_at)

        assert [m.text for m in messages] == ["first", "second"]

    @pytest.mark.asyncio
    async def test_backlog_is_capped(self, gateway, session_factory, users):
        base = utc_now() - timedelta(days=1)
        for i in range(105):
            await add_message(session_factory, "room_1", "bob", f"m{i}", base + timedelta(seconds=i))

        messages = await gateway.get_room_messages("room_1", since=base - timedelta(seconds=1))

        assert len(messages) == 100
        assert messages[0].text == "m0"
        assert messages[-1].text == "m99"

    @pytest.mark.asyncio
    async def test_backlog_limit_is_configurable(self, session_factory, users):
        gateway = SqlPersistenceGateway(session_factory, backlog_limit=3)
        for i in range(5):
            await gateway.save_message(f"m{i}", "bob", "room_1")

        assert len(await gateway.get_room_messages("room_1")) == 3

    @pytest.mark.asyncio
    async def test_save_message_assigns_server_time(self, gateway, users):
        before = utc_now()
        message = await gateway.save_message("hello", "alice", "room_1")

        assert message.id is not None
        assert message.time >= before
        assert message.sender == "alice"

    @pytest.mark.asyncio
    async def test_private_messages_both_directions(self, gateway, users):
        await gateway.save_private_message("hi bob", "alice", "bob")
        await gateway.save_private_message("hi alice", "bob", "alice")
        await gateway.save_private_message("hi carol", "alice", "carol")

        messages = await gateway.get_private_messages("bob", "alice")

        assert [m.text for m in messages] == ["hi bob", "hi alice"]
        assert all(m.read is False for m in messages)

    @pytest.mark.asyncio
    async def test_mark_private_messages_read(self, gateway, session_factory, users):
        await gateway.save_private_message("one", "bob", "alice")
        await gateway.save_private_message("two", "bob", "alice")
        await gateway.save_private_message("mine", "alice", "bob")

        assert await gateway.mark_private_messages_read("alice", "bob") == 2
        assert await gateway.mark_private_messages_read("alice", "bob") == 0

        messages = await gateway.get_private_messages("alice", "bob")
        assert {m.text: m.read for m in messages} == {"one": True, "two": True, "mine": False}


class TestFriendshipPersistence:
    """친구 관계 저장소 테스트"""

    @pytest.mark.asyncio
    async def test_requests_in_both_directions_collapse(self, gateway, session_factory, users):
        """A->B, B->A 요청은 하나의 pending 행"""
        first = await gateway.send_friend_request("bob", "alice")
        second = await gateway.send_friend_request("alice", "bob")

        assert first.id == second.id
        assert (first.user1, first.user2) == ("alice", "bob")
        assert second.status == "pending"
        assert second.requested_by == "bob"
        assert await count_rows(session_factory, Friendship) == 1

    @pytest.mark.asyncio
    async def test_pending_requests_are_received_only(self, gateway, users):
        await gateway.send_friend_request("alice", "bob")

        assert [name for name, _ in await gateway.get_pending_requests("bob")] == ["alice"]
        assert await gateway.get_pending_requests("alice") == []
        assert await gateway.has_pending_request("bob", "alice") is True

    @pytest.mark.asyncio
    async def test_respond_accept(self, gateway, users):
        await gateway.send_friend_request("alice", "bob")

        # 요청자 본인은 응답할 수 없음
        assert await gateway.respond_to_friend_request("alice", "bob", True) is False

        assert await gateway.respond_to_friend_request("bob", "alice", True) is True
        assert await gateway.are_friends("alice", "bob") is True
        assert await gateway.are_friends("bob", "alice") is True
        assert await gateway.has_pending_request("alice", "bob") is False

        assert [name for name, _ in await gateway.get_friends("alice")] == ["bob"]
        assert [name for name, _ in await gateway.get_friends("bob")] == ["alice"]

    @pytest.mark.asyncio
    async def test_rejected_request_can_be_resent(self, gateway, users):
        await gateway.send_friend_request("alice", "bob")
        assert await gateway.respond_to_friend_request("bob", "alice", False) is True
        assert await gateway.are_friends("alice", "bob") is False

        again = await gateway.send_friend_request("alice", "bob")
        assert again.status == "pending"

    @pytest.mark.asyncio
    async def test_respond_without_request(self, gateway, users):
        assert await gateway.respond_to_friend_request("bob", "carol", True) is False

    @pytest.mark.asyncio
    async def test_remove_friend(self, gateway, session_factory, users):
        await make_friends(session_factory, "alice", "bob")

        assert await gateway.remove_friend("bob", "alice") is True
        assert await gateway.are_friends("alice", "bob") is False
        assert await gateway.remove_friend("bob", "alice") is False


class TestStorageErrors:
    """저장소 실패는 StorageError로 변환"""

    @pytest.mark.asyncio
    async def test_sqlalchemy_error_is_wrapped(self, gateway, test_engine):
        async with test_engine.begin() as conn:
            await conn.exec_driver_sql("DROP TABLE messages")

        with pytest.raises(StorageError) as exc_info:
            await gateway.save_message("hello", "alice", "room_1")

        assert isinstance(exc_info.value.__cause__, OperationalError)

    @pytest.mark.asyncio
    async def test_ping(self, gateway):
        assert await gateway.ping() is True

    @pytest.mark.asyncio
    async def test_private_message_row_count(self, gateway, session_factory, users):
        await gateway.save_private_message("hi", "alice", "bob")
        assert await count_rows(session_factory, PrivateMessage) == 1
