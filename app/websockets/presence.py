"""
Presence 레지스트리

사용자명 -> 현재 실시간 연결. 사용자당 항목은 하나뿐이며 같은 사용자가 다시
인증하면 마지막 연결이 이긴다 (이전 연결은 고아가 된다).
"""

import enum
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from app.core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class PresenceEntry:
    identity: str
    connection: Any
    token: str
    current_room: Optional[str] = None


class BindResult(enum.Enum):
    BOUND = "bound"
    REBOUND = "rebound"


@dataclass
class BindOutcome:
    result: BindResult
    entry: PresenceEntry
    # REBOUND일 때 더 이상 권한이 없는 이전 연결
    previous: Any = None
    # 이 연결에 바인딩되어 있다가 밀려난 다른 사용자
    displaced: Optional[str] = None


class PresenceRegistry:
    def __init__(self):
        self._entries: Dict[str, PresenceEntry] = {}
        # 연결 -> 사용자 (현재 바인딩된 연결만)
        self._connection_identities: Dict[Any, str] = {}

    def bind(self, identity: str, connection: Any, token: str) -> BindOutcome:
        """사용자를 연결에 바인딩. 다른 연결이 있었다면 REBOUND"""
        displaced = None
        prior_identity = self._connection_identities.get(connection)
        if prior_identity is not None and prior_identity != identity:
            # 한 연결은 한 사용자에게만 바인딩된다
            del self._entries[prior_identity]
            displaced = prior_identity

        existing = self._entries.get(identity)
        entry = PresenceEntry(identity=identity, connection=connection, token=token)
        self._entries[identity] = entry
        self._connection_identities[connection] = identity

        if existing is not None and existing.connection is not connection:
            self._connection_identities.pop(existing.connection, None)
            logger.info(f"User {identity} rebound to a new connection", extra={
                "identity": identity,
                "previous_room": existing.current_room
            })
            return BindOutcome(BindResult.REBOUND, entry, previous=existing.connection, displaced=displaced)

        if existing is not None:
            # 같은 연결의 재인증은 현재 방을 유지
            entry.current_room = existing.current_room
        return BindOutcome(BindResult.BOUND, entry, displaced=displaced)

    def set_current_room(
        self,
        identity: str,
        room_id: Optional[str],
        connection: Any = None
    ) -> bool:
        """
        현재 방 갱신. 바인딩이 없거나, connection이 주어졌는데 바인딩된 연결이
        아니면 아무것도 하지 않는다.
        """
        entry = self._entries.get(identity)
        if entry is None:
            return False
        if connection is not None and entry.connection is not connection:
            return False

        entry.current_room = room_id
        return True

    def lookup(self, identity: str) -> Optional[PresenceEntry]:
        return self._entries.get(identity)

    def is_bound(self, identity: str, connection: Any) -> bool:
        entry = self._entries.get(identity)
        return entry is not None and entry.connection is connection

    def unbind(self, connection: Any) -> Optional[PresenceEntry]:
        """
        연결 해제 시 항목 제거.

        기록된 연결이 떠나는 연결과 같을 때만 제거한다. 고아 연결의 해제는
        새 연결의 항목에 영향을 주지 않는다.
        """
        identity = self._connection_identities.get(connection)
        entry = self._entries.get(identity) if identity is not None else None
        if entry is None or entry.connection is not connection:
            return None

        del self._entries[identity]
        del self._connection_identities[connection]
        return entry

    def online_identities(self) -> List[str]:
        return list(self._entries.keys())

    def __len__(self) -> int:
        return len(self._entries)
