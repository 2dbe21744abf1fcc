from typing import Any

from app.core.logging import get_logger
from app.websockets.presence import PresenceRegistry
from app.websockets.room_index import RoomMembershipIndex

logger = get_logger(__name__)


class FanOutDispatcher:
    """
    이벤트 전달 도우미.

    큐도 재시도도 없다. 대상이 오프라인이면 이벤트는 버려진다.
    """

    def __init__(self, presence: PresenceRegistry, rooms: RoomMembershipIndex):
        self.presence = presence
        self.rooms = rooms

    async def to_connection(self, connection: Any, event: str, data: Any = None) -> bool:
        try:
            await connection.send_event(event, data)
            return True
        except Exception as e:
            logger.error(f"Failed to deliver {event} to {connection}: {e}")
            return False

    async def to_identity(self, identity: str, event: str, data: Any = None) -> bool:
        """Presence에 등록된 연결로 전달. 없으면 False"""
        entry = self.presence.lookup(identity)
        if entry is None:
            logger.debug(f"Dropped {event} for offline user {identity}")
            return False
        return await self.to_connection(entry.connection, event, data)

    async def to_room(self, room_id: str, event: str, data: Any = None, exclude: Any = None) -> int:
        return await self.rooms.broadcast(room_id, event, data, exclude=exclude)
