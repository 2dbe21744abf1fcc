"""
WebSocket 실시간 채팅 모듈

주요 구성 요소:
- session_store: 세션 토큰 발급/검증/만료
- presence: 사용자 -> 실시간 연결 매핑
- room_index: 방 -> 접속 연결 집합
- dispatcher: 연결/사용자/방 단위 이벤트 전달
- handlers: 연결별 이벤트 상태 머신
- connection_manager: 위 상태를 소유하는 코디네이터
"""

from .connection import WebSocketConnection
from .connection_manager import ChatCoordinator
from .handlers import ConnectionGateway, ConnectionState
from .presence import PresenceRegistry, PresenceEntry, BindResult, BindOutcome
from .room_index import RoomMembershipIndex
from .session_store import SessionStore, Session

__all__ = [
    "WebSocketConnection",
    "ChatCoordinator",
    "ConnectionGateway",
    "ConnectionState",
    "PresenceRegistry",
    "PresenceEntry",
    "BindResult",
    "BindOutcome",
    "RoomMembershipIndex",
    "SessionStore",
    "Session",
]
