"""
채팅 코디네이터

프로세스 범위의 실시간 상태(세션 저장소, Presence 레지스트리, 방 인덱스)를
단독으로 소유한다. 애플리케이션 시작 시 start(), 종료 시 stop()을 호출한다.
"""

import asyncio
from typing import Any, Set

from app.core.config import settings
from app.core.logging import get_logger
from app.services.persistence import PersistenceGateway
from app.websockets.dispatcher import FanOutDispatcher
from app.websockets.handlers import ConnectionGateway
from app.websockets.presence import PresenceRegistry
from app.websockets.room_index import RoomMembershipIndex
from app.websockets.session_store import SessionStore

logger = get_logger(__name__)


class ChatCoordinator:
    def __init__(self, persistence: PersistenceGateway, sessions: SessionStore = None):
        self.persistence = persistence
        self.sessions = sessions or SessionStore(
            ttl_seconds=settings.session_ttl_seconds,
            sweep_interval_seconds=settings.session_sweep_interval_seconds
        )
        self.presence = PresenceRegistry()
        self.rooms = RoomMembershipIndex()
        self.dispatcher = FanOutDispatcher(self.presence, self.rooms)
        # 완료될 때까지 참조를 유지하는 백그라운드 작업들
        self._background_tasks: Set[asyncio.Task] = set()

    async def start(self):
        await self.sessions.start()
        logger.info("Chat coordinator started")

    async def stop(self):
        await self.sessions.stop()

        tasks = list(self._background_tasks)
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._background_tasks.clear()
        logger.info("Chat coordinator stopped")

    def open_connection(self, connection: Any) -> ConnectionGateway:
        """새 실시간 연결의 게이트웨이 생성"""
        return ConnectionGateway(connection, self)

    def persist_status_in_background(self, username: str, status: str) -> asyncio.Task:
        """
        상태(Online/Offline) 저장을 분리된 작업으로 실행합니다.

        호출자는 기다리지 않으며, 실패는 로그로만 남습니다. 메모리의 Presence가
        기준이고 저장된 상태는 참고용이다.

        Args:
            username: 사용자명
            status: 저장할 상태

        Returns:
            asyncio.Task: 예약된 작업 (테스트에서 완료를 기다릴 때 사용)
        """
        task = asyncio.create_task(self.persistence.save_user(username, status))
        self._background_tasks.add(task)
        task.add_done_callback(lambda t: self._on_status_persisted(t, username, status))
        return task

    def _on_status_persisted(self, task: asyncio.Task, username: str, status: str):
        self._background_tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.warning(f"Failed to persist status {status} for user {username}: {error}")

    async def drain_background_tasks(self):
        """대기 중인 백그라운드 작업 완료 대기"""
        while self._background_tasks:
            await asyncio.gather(*list(self._background_tasks), return_exceptions=True)

    async def notify_friend_request(self, from_user: str, to_user: str) -> bool:
        return await self.dispatcher.to_identity(to_user, "friend_request", {"from": from_user})

    async def notify_friend_request_accepted(self, by_user: str, requester: str) -> bool:
        return await self.dispatcher.to_identity(requester, "friend_request_accepted", {"by": by_user})

    def stats(self) -> dict:
        return {
            "sessions": len(self.sessions),
            "online_users": len(self.presence),
            "active_rooms": len(self.rooms.active_rooms()),
        }
