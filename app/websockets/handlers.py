"""
연결 게이트웨이

클라이언트 연결 하나의 실시간 세션. 들어오는 이벤트마다 세션을 검증하고,
Presence/방 인덱스를 갱신하고, 영속성 게이트웨이 호출과 팬아웃을 수행한다.

상태: UNAUTHENTICATED -> AUTHENTICATED -> IN_ROOM (방 전환 시 IN_ROOM 유지) -> CLOSED
"""

import enum
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING

from pydantic import ValidationError

from app.core.errors import (
    AuthError,
    ChatError,
    IdentityMismatch,
    NotAMember,
    NotFriends,
    RoomNotFound,
    SessionNotFound,
    StorageError,
)
from app.core.logging import get_logger, log_authentication_event, log_websocket_event
from app.schemas.events import (
    AuthenticatePayload,
    ChatMessagePayload,
    JoinRoomPayload,
    LeaveRoomPayload,
    MarkAsReadPayload,
    PrivateMessagePayload,
    RoomLookupPayload,
)
from app.schemas.message import RoomMessageResponse
from app.schemas.room import RoomMemberResponse, RoomResponse
from app.websockets.presence import BindResult

if TYPE_CHECKING:
    from app.websockets.connection_manager import ChatCoordinator

logger = get_logger(__name__)

# 예상치 못한 실패/저장소 실패 시 클라이언트에 보여줄 메시지
FAILURE_MESSAGES = {
    "join room": "Failed to join room",
    "leave_room": "Failed to leave room",
    "chat message": "Failed to send message",
    "private message": "Failed to send private message",
    "get room info": "Failed to get room info",
    "get room members": "Failed to get room members",
    "mark_as_read": "Failed to mark messages as read",
}


class ConnectionState(enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"
    IN_ROOM = "in_room"
    CLOSED = "closed"


class NotInRoom(ChatError):
    message = "Join a room first"


def serialize_messages(messages) -> list:
    return [RoomMessageResponse.model_validate(m).model_dump(mode="json") for m in messages]


def serialize_members(members) -> list:
    return [RoomMemberResponse.model_validate(m).model_dump(mode="json") for m in members]


def serialize_room(room) -> dict:
    return RoomResponse.model_validate(room).model_dump(mode="json")


class ConnectionGateway:
    """연결 하나에 대한 이벤트 상태 머신"""

    def __init__(self, connection: Any, coordinator: "ChatCoordinator"):
        self.connection = connection
        self.coordinator = coordinator
        self.sessions = coordinator.sessions
        self.presence = coordinator.presence
        self.rooms = coordinator.rooms
        self.dispatcher = coordinator.dispatcher
        self.persistence = coordinator.persistence

        self.state = ConnectionState.UNAUTHENTICATED
        self.identity: Optional[str] = None
        self.token: Optional[str] = None
        self.current_room: Optional[str] = None

        self._handlers: Dict[str, Callable[[Any], Awaitable[None]]] = {
            "authenticate": self.authenticate,
            "join room": self.join_room,
            "leave_room": self.leave_room,
            "chat message": self.send_room_message,
            "private message": self.send_private_message,
            "get room info": self.get_room_info,
            "get room members": self.get_room_members,
            "mark_as_read": self.mark_as_read,
            "disconnect": self._handle_disconnect_event,
        }

    @property
    def closed(self) -> bool:
        return self.state is ConnectionState.CLOSED

    async def handle_event(self, event: str, data: Any = None):
        """
        이벤트 하나를 처리합니다. 어떤 예외도 밖으로 전파하지 않습니다.

        Args:
            event: 이벤트 이름
            data: 이벤트 페이로드
        """
        if self.closed:
            logger.debug(f"Ignoring {event} on closed connection")
            return

        handler = self._handlers.get(event)
        if handler is None:
            logger.warning(f"Unknown event: {event} from user {self.identity}")
            await self._emit_error(f"Unknown event: {event}")
            return

        try:
            await handler(data)
        except ValidationError as e:
            logger.warning(f"Invalid payload for {event}: {e.error_count()} errors")
            await self._emit_error("Invalid payload")
        except AuthError as e:
            log_authentication_event(
                logger, event, username=self.identity, success=False, reason=e.message
            )
            await self.dispatcher.to_connection(self.connection, "session_expired")
        except StorageError as e:
            logger.error(f"Storage failure while handling {event}: {e}")
            await self._emit_error(FAILURE_MESSAGES.get(event, e.message))
        except ChatError as e:
            logger.info(f"Rejected {event} from user {self.identity}: {e.message}")
            await self._emit_error(e.message)
        except Exception as e:
            logger.exception(f"Error handling {event}: {e}")
            await self._emit_error(FAILURE_MESSAGES.get(event, "Internal server error"))

    async def _emit_error(self, message: str):
        await self.dispatcher.to_connection(self.connection, "error", {"message": message})

    def _require_binding(self, expected_identity: Optional[str] = None) -> str:
        """바인딩된 세션을 재검증하고, 이 연결이 여전히 해당 사용자의 연결인지 확인"""
        if self.identity is None or self.token is None:
            raise SessionNotFound()

        if expected_identity is not None and expected_identity != self.identity:
            raise IdentityMismatch()

        identity = self.sessions.validate(self.token, expected_identity=self.identity)
        if not self.presence.is_bound(identity, self.connection):
            raise IdentityMismatch("Connection superseded by a newer login")
        return identity

    # =========================================================================
    # Event handlers
    # =========================================================================

    async def authenticate(self, data: Any):
        payload = AuthenticatePayload.model_validate(data)
        identity = self.sessions.validate(payload.session_id, expected_identity=payload.username)

        # 고아가 되면서 방 인덱스에서 빠진 연결은 이전 방 상태를 버린다
        if self.current_room is not None and self.rooms.room_of(self.connection) != self.current_room:
            self._leave_live_room()

        if self.identity is not None and self.identity != identity and self.current_room:
            self._leave_live_room()

        outcome = self.presence.bind(identity, self.connection, payload.session_id)
        if outcome.result is BindResult.REBOUND:
            # 이전 연결은 더 이상 방 브로드캐스트를 받지 않는다
            orphan_room = self.rooms.room_of(outcome.previous)
            if orphan_room is not None:
                self.rooms.leave(outcome.previous, orphan_room)
        if outcome.displaced is not None:
            self.coordinator.persist_status_in_background(outcome.displaced, "Offline")

        self.identity = identity
        self.token = payload.session_id
        if self.state is ConnectionState.UNAUTHENTICATED:
            self.state = ConnectionState.AUTHENTICATED

        log_authentication_event(
            logger, "websocket_authenticate", username=identity,
            rebound=outcome.result is BindResult.REBOUND
        )
        self.coordinator.persist_status_in_background(identity, "Online")

    async def join_room(self, data: Any):
        payload = JoinRoomPayload.model_validate(data)
        if self.identity is None:
            raise SessionNotFound()
        if payload.username != self.identity:
            raise IdentityMismatch()

        identity = self.sessions.validate(payload.session_id, expected_identity=self.identity)
        room_id = payload.room_id

        room = await self.persistence.get_room_by_id(room_id)
        if room is None:
            raise RoomNotFound()

        member = await self.persistence.get_room_member(room_id, identity)
        if member is None:
            raise NotAMember()

        messages = await self.persistence.get_room_messages(room_id, since=member.joined_at)
        members = await self.persistence.get_room_members(room_id)

        # await 이후: 연결 종료/세션 폐기/다른 연결로 재바인딩 여부 재확인.
        # 저장소 조회가 모두 끝난 뒤에만 공유 레지스트리를 바꾼다
        if self.closed:
            return
        self._require_binding()

        self.rooms.join(room_id, self.connection)
        self.presence.set_current_room(identity, room_id, connection=self.connection)
        self.current_room = room_id
        self.state = ConnectionState.IN_ROOM

        await self.dispatcher.to_connection(self.connection, "load messages", serialize_messages(messages))
        await self.dispatcher.to_room(room_id, "room members", serialize_members(members))
        await self.dispatcher.to_connection(self.connection, "room info", serialize_room(room))

        log_websocket_event(logger, "join_room", identity, room_id, backlog=len(messages))

    async def leave_room(self, data: Any):
        payload = LeaveRoomPayload.model_validate(data)
        identity = self._require_binding(expected_identity=payload.username)
        room_id = payload.room_id

        await self.persistence.remove_user_from_room(room_id, identity)

        if self.closed:
            return
        if self.current_room == room_id:
            self._leave_live_room()

        await self.dispatcher.to_connection(self.connection, "leave_room_success", {"roomId": room_id})

        members = await self.persistence.get_room_members(room_id)
        await self.dispatcher.to_room(room_id, "room members", serialize_members(members))
        await self.dispatcher.to_room(room_id, "user_left", {"username": identity, "roomId": room_id})

        log_websocket_event(logger, "leave_room", identity, room_id)

    async def send_room_message(self, data: Any):
        if self.state is not ConnectionState.IN_ROOM or self.current_room is None:
            if self.identity is None:
                raise SessionNotFound()
            raise NotInRoom()

        payload = ChatMessagePayload.model_validate(data)
        identity = self._require_binding()
        room_id = self.current_room

        # 저장이 확인된 메시지만 브로드캐스트한다
        message = await self.persistence.save_message(payload.text, identity, room_id)

        message_data = {
            **(payload.model_extra or {}),
            "text": message.text,
            "sender": identity,
            "room_id": room_id,
            "time": message.time.isoformat(),
        }
        await self.dispatcher.to_room(room_id, "chat message", message_data)

        log_websocket_event(logger, "chat_message", identity, room_id)

    async def send_private_message(self, data: Any):
        payload = PrivateMessagePayload.model_validate(data)
        identity = self._require_binding(expected_identity=payload.sender)

        if not await self.persistence.are_friends(identity, payload.receiver):
            raise NotFriends()

        message = await self.persistence.save_private_message(
            payload.text, identity, payload.receiver
        )

        # 클라이언트가 보낸 time은 순서 결정에 쓰지 않는다
        extra = dict(payload.model_extra or {})
        message_data = {
            **extra,
            "sender": identity,
            "receiver": payload.receiver,
            "text": message.text,
            "time": message.time.isoformat(),
        }

        receiver_entry = self.presence.lookup(payload.receiver)
        if receiver_entry is not None and receiver_entry.connection is not self.connection:
            await self.dispatcher.to_connection(receiver_entry.connection, "private message", message_data)

        await self.dispatcher.to_connection(self.connection, "private message", message_data)

        log_websocket_event(
            logger, "private_message", identity,
            receiver=payload.receiver,
            delivered=receiver_entry is not None
        )

    async def get_room_info(self, data: Any):
        payload = RoomLookupPayload.model_validate(data)
        room = await self._authorized_room(payload.room_id)
        await self.dispatcher.to_connection(self.connection, "room info", serialize_room(room))

    async def get_room_members(self, data: Any):
        payload = RoomLookupPayload.model_validate(data)
        await self._authorized_room(payload.room_id)
        members = await self.persistence.get_room_members(payload.room_id)
        await self.dispatcher.to_connection(self.connection, "room members", serialize_members(members))

    async def _authorized_room(self, room_id: str):
        identity = self._require_binding()
        room = await self.persistence.get_room_by_id(room_id)
        if room is None:
            raise RoomNotFound()
        if not await self.persistence.is_user_in_room(room_id, identity):
            raise NotAMember()
        return room

    async def mark_as_read(self, data: Any):
        payload = MarkAsReadPayload.model_validate(data)
        identity = self._require_binding()

        count = await self.persistence.mark_private_messages_read(identity, payload.sender)
        await self.dispatcher.to_connection(
            self.connection, "unread_cleared", {"sender": payload.sender, "count": count}
        )

    async def _handle_disconnect_event(self, data: Any):
        await self.disconnect()

    def _leave_live_room(self):
        if self.current_room is not None:
            self.rooms.leave(self.connection, self.current_room)
            if self.identity is not None:
                self.presence.set_current_room(self.identity, None, connection=self.connection)
        self.current_room = None
        if self.state is ConnectionState.IN_ROOM:
            self.state = ConnectionState.AUTHENTICATED

    async def disconnect(self):
        """종료 상태로 전환. 여러 번 호출해도 안전하다."""
        if self.closed:
            return

        self.state = ConnectionState.CLOSED
        room_id = self.rooms.room_of(self.connection)
        if room_id is not None:
            self.rooms.leave(self.connection, room_id)

        entry = self.presence.unbind(self.connection)
        if entry is not None:
            self.coordinator.persist_status_in_background(entry.identity, "Offline")

        if room_id is not None and self.identity is not None:
            # 멤버십은 유지된다. 남은 연결들에게 목록을 다시 보낸다
            try:
                members = await self.persistence.get_room_members(room_id)
            except StorageError as e:
                logger.error(f"Failed to load members of {room_id} on disconnect: {e}")
            else:
                await self.dispatcher.to_room(room_id, "room members", serialize_members(members))
            await self.dispatcher.to_room(
                room_id, "user_disconnected", {"username": self.identity, "roomId": room_id}
            )

        log_websocket_event(
            logger, "disconnect", self.identity, room_id,
            orphaned=self.identity is not None and entry is None
        )
