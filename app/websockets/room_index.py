"""
Room membership 인덱스

방 ID -> 현재 접속한 연결 집합. 영속 멤버십(입장 권한)과는 별개의
휘발성 연결 추적이며, 방 브로드캐스트의 유일한 경로다.
"""

from typing import Any, Dict, List, Optional, Set

from app.core.logging import get_logger

logger = get_logger(__name__)


class RoomMembershipIndex:
    def __init__(self):
        self._rooms: Dict[str, Set[Any]] = {}
        # 연결 -> 방 (연결은 한 번에 하나의 방에만 속함)
        self._connection_rooms: Dict[Any, str] = {}

    def join(self, room_id: str, connection: Any):
        """이전 방에서 빼고 새 방에 넣는다"""
        previous = self._connection_rooms.get(connection)
        if previous is not None and previous != room_id:
            self.leave(connection, previous)

        self._rooms.setdefault(room_id, set()).add(connection)
        self._connection_rooms[connection] = room_id

    def leave(self, connection: Any, room_id: str) -> bool:
        """해당 방 집합에 있을 때만 제거. 빈 집합은 삭제"""
        members = self._rooms.get(room_id)
        if not members or connection not in members:
            return False

        members.discard(connection)
        if not members:
            del self._rooms[room_id]

        if self._connection_rooms.get(connection) == room_id:
            del self._connection_rooms[connection]
        return True

    def room_of(self, connection: Any) -> Optional[str]:
        return self._connection_rooms.get(connection)

    def connections(self, room_id: str) -> Set[Any]:
        return set(self._rooms.get(room_id, ()))

    def connection_count(self, room_id: str) -> int:
        return len(self._rooms.get(room_id, ()))

    def active_rooms(self) -> List[str]:
        return list(self._rooms.keys())

    async def broadcast(
        self,
        room_id: str,
        event: str,
        data: Any = None,
        exclude: Any = None
    ) -> int:
        """
        방에 접속한 모든 연결에 이벤트 전송.

        전송 중 집합이 바뀔 수 있으므로 스냅샷을 순회한다. 실패한 전송은
        로그만 남기고 버린다. 전달한 연결 수를 반환한다.
        """
        delivered = 0
        for connection in list(self._rooms.get(room_id, ())):
            if exclude is not None and connection is exclude:
                continue
            try:
                await connection.send_event(event, data)
                delivered += 1
            except Exception as e:
                logger.error(f"Failed to deliver {event} to {connection} in room {room_id}: {e}")
        return delivered
