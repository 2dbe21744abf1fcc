"""
영속성 게이트웨이

실시간 코어가 호출하고 기다리는 좁은 CRUD 인터페이스.
저장소 세부 사항은 *_service 모듈에 있고, 여기서는 세션 관리와
SQLAlchemyError -> StorageError 변환만 담당한다.
"""

import time
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import StorageError
from app.core.logging import get_logger, log_database_operation
from app.models import User, Room, RoomMember, Message, PrivateMessage, Friendship
from app.services import chat_room_service, message_service, user_service
from app.services.friendship_service import FriendshipService
from app.services.message_service import DEFAULT_BACKLOG_LIMIT

logger = get_logger(__name__)


class PersistenceGateway(ABC):
    """사용자/채팅방/멤버십/메시지/친구 관계 저장소 인터페이스"""

    # Users
    @abstractmethod
    async def create_user(self, email: str, username: str, password_hash: str) -> User: ...

    @abstractmethod
    async def find_user_by_email(self, email: str) -> Optional[User]: ...

    @abstractmethod
    async def find_user_by_username(self, username: str) -> Optional[User]: ...

    @abstractmethod
    async def save_user(self, username: str, status: str) -> bool: ...

    @abstractmethod
    async def update_user_email(self, username: str, email: str) -> Optional[User]: ...

    @abstractmethod
    async def update_user_password(self, username: str, password_hash: str) -> bool: ...

    @abstractmethod
    async def get_user_stats(self, username: str) -> Dict[str, int]: ...

    # Rooms
    @abstractmethod
    async def create_room(self, name: str, created_by: str) -> Tuple[str, str]: ...

    @abstractmethod
    async def get_room_by_invite_code(self, invite_code: str) -> Optional[Room]: ...

    @abstractmethod
    async def get_room_by_id(self, room_id: str) -> Optional[Room]: ...

    @abstractmethod
    async def get_user_rooms(self, username: str) -> List[Room]: ...

    @abstractmethod
    async def add_user_to_room(self, room_id: str, username: str) -> RoomMember: ...

    @abstractmethod
    async def remove_user_from_room(self, room_id: str, username: str) -> bool: ...

    @abstractmethod
    async def is_user_in_room(self, room_id: str, username: str) -> bool: ...

    @abstractmethod
    async def get_room_member(self, room_id: str, username: str) -> Optional[RoomMember]: ...

    @abstractmethod
    async def get_room_members(self, room_id: str) -> List[RoomMember]: ...

    # Messages
    @abstractmethod
    async def save_message(self, text: str, sender: str, room_id: str) -> Message: ...

    @abstractmethod
    async def get_room_messages(
        self, room_id: str, since: Optional[datetime] = None
    ) -> List[Message]: ...

    @abstractmethod
    async def save_private_message(self, text: str, sender: str, receiver: str) -> PrivateMessage: ...

    @abstractmethod
    async def get_private_messages(self, user1: str, user2: str) -> List[PrivateMessage]: ...

    @abstractmethod
    async def mark_private_messages_read(self, receiver: str, sender: str) -> int: ...

    @abstractmethod
    async def clear_room_messages(self, room_id: str) -> int: ...

    @abstractmethod
    async def clear_private_messages(self, user1: str, user2: str) -> int: ...

    # Friendships
    @abstractmethod
    async def send_friend_request(self, from_user: str, to_user: str) -> Friendship: ...

    @abstractmethod
    async def get_pending_requests(self, username: str) -> List[Tuple[str, datetime]]: ...

    @abstractmethod
    async def respond_to_friend_request(
        self, username: str, friend_username: str, accept: bool
    ) -> bool: ...

    @abstractmethod
    async def get_friends(self, username: str) -> List[Tuple[str, datetime]]: ...

    @abstractmethod
    async def are_friends(self, user1: str, user2: str) -> bool: ...

    @abstractmethod
    async def remove_friend(self, user1: str, user2: str) -> bool: ...

    @abstractmethod
    async def has_pending_request(self, user1: str, user2: str) -> bool: ...

    # Health
    @abstractmethod
    async def ping(self) -> bool: ...


class SqlPersistenceGateway(PersistenceGateway):
    """SQLAlchemy async 세션 팩토리 기반 구현"""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        backlog_limit: int = DEFAULT_BACKLOG_LIMIT
    ):
        self.session_factory = session_factory
        self.backlog_limit = backlog_limit

    @asynccontextmanager
    async def _session(self, operation: str):
        session: AsyncSession = self.session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            logger.error(f"Storage operation {operation} failed: {e}")
            raise StorageError(f"Storage operation failed: {operation}") from e
        finally:
            await session.close()

    # =========================================================================
    # Users
    # =========================================================================

    async def create_user(self, email: str, username: str, password_hash: str) -> User:
        start = time.perf_counter()
        async with self._session("create_user") as db:
            user = await user_service.create_user(db, email, username, password_hash)
        log_database_operation(
            logger, "INSERT", "users",
            duration_ms=(time.perf_counter() - start) * 1000,
            affected_rows=1
        )
        return user

    async def find_user_by_email(self, email: str) -> Optional[User]:
        async with self._session("find_user_by_email") as db:
            return await user_service.find_user_by_email(db, email)

    async def find_user_by_username(self, username: str) -> Optional[User]:
        async with self._session("find_user_by_username") as db:
            return await user_service.find_user_by_username(db, username)

    async def save_user(self, username: str, status: str) -> bool:
        async with self._session("save_user") as db:
            updated = await user_service.update_user_status(db, username, status)
        log_database_operation(
            logger, "UPDATE", "users",
            affected_rows=1 if updated else 0,
            status=status
        )
        return updated

    async def update_user_email(self, username: str, email: str) -> Optional[User]:
        async with self._session("update_user_email") as db:
            user = await user_service.update_user_email(db, username, email)
        log_database_operation(logger, "UPDATE", "users", affected_rows=1 if user else 0, field="email")
        return user

    async def update_user_password(self, username: str, password_hash: str) -> bool:
        async with self._session("update_user_password") as db:
            updated = await user_service.update_user_password(db, username, password_hash)
        log_database_operation(logger, "UPDATE", "users", affected_rows=1 if updated else 0, field="password")
        return updated

    async def get_user_stats(self, username: str) -> Dict[str, int]:
        async with self._session("get_user_stats") as db:
            friends = await FriendshipService.get_friends(db, username)
            rooms = await chat_room_service.get_user_rooms(db, username)
            messages = await message_service.count_sent_messages(db, username)
        return {"friends": len(friends), "rooms": len(rooms), "messages": messages}

    # =========================================================================
    # Rooms
    # =========================================================================

    async def create_room(self, name: str, created_by: str) -> Tuple[str, str]:
        async with self._session("create_room") as db:
            room = await chat_room_service.create_room(db, name, created_by)
        log_database_operation(logger, "INSERT", "rooms", affected_rows=1, room_id=room.id)
        return room.id, room.invite_code

    async def get_room_by_invite_code(self, invite_code: str) -> Optional[Room]:
        async with self._session("get_room_by_invite_code") as db:
            return await chat_room_service.find_room_by_invite_code(db, invite_code)

    async def get_room_by_id(self, room_id: str) -> Optional[Room]:
        async with self._session("get_room_by_id") as db:
            return await chat_room_service.find_room_by_id(db, room_id)

    async def get_user_rooms(self, username: str) -> List[Room]:
        async with self._session("get_user_rooms") as db:
            return await chat_room_service.get_user_rooms(db, username)

    async def add_user_to_room(self, room_id: str, username: str) -> RoomMember:
        async with self._session("add_user_to_room") as db:
            member = await chat_room_service.add_user_to_room(db, room_id, username)
        log_database_operation(logger, "INSERT", "room_members", room_id=room_id)
        return member

    async def remove_user_from_room(self, room_id: str, username: str) -> bool:
        async with self._session("remove_user_from_room") as db:
            removed = await chat_room_service.remove_user_from_room(db, room_id, username)
        log_database_operation(
            logger, "DELETE", "room_members",
            affected_rows=1 if removed else 0,
            room_id=room_id
        )
        return removed

    async def is_user_in_room(self, room_id: str, username: str) -> bool:
        async with self._session("is_user_in_room") as db:
            return await chat_room_service.is_user_in_room(db, room_id, username)

    async def get_room_member(self, room_id: str, username: str) -> Optional[RoomMember]:
        async with self._session("get_room_member") as db:
            return await chat_room_service.find_room_member(db, room_id, username)

    async def get_room_members(self, room_id: str) -> List[RoomMember]:
        async with self._session("get_room_members") as db:
            return await chat_room_service.get_room_members(db, room_id)

    # =========================================================================
    # Messages
    # =========================================================================

    async def save_message(self, text: str, sender: str, room_id: str) -> Message:
        start = time.perf_counter()
        async with self._session("save_message") as db:
            message = await message_service.create_message(db, text, sender, room_id)
        log_database_operation(
            logger, "INSERT", "messages",
            duration_ms=(time.perf_counter() - start) * 1000,
            affected_rows=1,
            room_id=room_id
        )
        return message

    async def get_room_messages(
        self, room_id: str, since: Optional[datetime] = None
    ) -> List[Message]:
        async with self._session("get_room_messages") as db:
            return await message_service.get_room_messages(
                db, room_id, since=since, limit=self.backlog_limit
            )

    async def save_private_message(self, text: str, sender: str, receiver: str) -> PrivateMessage:
        async with self._session("save_private_message") as db:
            message = await message_service.create_private_message(db, text, sender, receiver)
        log_database_operation(logger, "INSERT", "private_messages", affected_rows=1)
        return message

    async def get_private_messages(self, user1: str, user2: str) -> List[PrivateMessage]:
        async with self._session("get_private_messages") as db:
            return await message_service.get_private_messages(db, user1, user2)

    async def mark_private_messages_read(self, receiver: str, sender: str) -> int:
        async with self._session("mark_private_messages_read") as db:
            count = await message_service.mark_private_messages_read(db, receiver, sender)
        log_database_operation(logger, "UPDATE", "private_messages", affected_rows=count)
        return count

    async def clear_room_messages(self, room_id: str) -> int:
        async with self._session("clear_room_messages") as db:
            count = await message_service.delete_room_messages(db, room_id)
        log_database_operation(logger, "DELETE", "messages", affected_rows=count, room_id=room_id)
        return count

    async def clear_private_messages(self, user1: str, user2: str) -> int:
        async with self._session("clear_private_messages") as db:
            count = await message_service.delete_private_messages(db, user1, user2)
        log_database_operation(logger, "DELETE", "private_messages", affected_rows=count)
        return count

    # =========================================================================
    # Friendships
    # =========================================================================

    async def send_friend_request(self, from_user: str, to_user: str) -> Friendship:
        async with self._session("send_friend_request") as db:
            friendship = await FriendshipService.send_friend_request(db, from_user, to_user)
        log_database_operation(logger, "UPSERT", "friendships", status=friendship.status)
        return friendship

    async def get_pending_requests(self, username: str) -> List[Tuple[str, datetime]]:
        async with self._session("get_pending_requests") as db:
            return await FriendshipService.get_pending_requests(db, username)

    async def respond_to_friend_request(
        self, username: str, friend_username: str, accept: bool
    ) -> bool:
        async with self._session("respond_to_friend_request") as db:
            updated = await FriendshipService.respond_to_friend_request(
                db, username, friend_username, accept
            )
        log_database_operation(
            logger, "UPDATE", "friendships",
            affected_rows=1 if updated else 0,
            accept=accept
        )
        return updated

    async def get_friends(self, username: str) -> List[Tuple[str, datetime]]:
        async with self._session("get_friends") as db:
            return await FriendshipService.get_friends(db, username)

    async def are_friends(self, user1: str, user2: str) -> bool:
        async with self._session("are_friends") as db:
            return await FriendshipService.are_friends(db, user1, user2)

    async def remove_friend(self, user1: str, user2: str) -> bool:
        async with self._session("remove_friend") as db:
            removed = await FriendshipService.remove_friend(db, user1, user2)
        log_database_operation(
            logger, "DELETE", "friendships", affected_rows=1 if removed else 0
        )
        return removed

    async def has_pending_request(self, user1: str, user2: str) -> bool:
        async with self._session("has_pending_request") as db:
            return await FriendshipService.has_pending_request(db, user1, user2)

    # =========================================================================
    # Health
    # =========================================================================

    async def ping(self) -> bool:
        async with self._session("ping") as db:
            await db.execute(text("SELECT 1"))
        return True
