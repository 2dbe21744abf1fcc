"""
세션 저장소

불투명 세션 토큰 -> (사용자, 발급 시각) 매핑. 검증할 때마다 발급 시각을
갱신하는 슬라이딩 만료 방식이며, 주기적인 정리 작업이 버려진 세션을 제거한다.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.core.errors import SessionNotFound, SessionExpired, IdentityMismatch
from app.core.logging import get_logger
from app.utils.auth import generate_session_token

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 7 * 24 * 60 * 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 60 * 60


@dataclass
class Session:
    token: str
    identity: str
    issued_at: float


class SessionStore:
    """세션 발급/검증/폐기와 만료 세션 정리"""

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], float] = time.time
    ):
        self.ttl_seconds = ttl_seconds
        self.sweep_interval_seconds = sweep_interval_seconds
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self.running = False
        self.task: Optional[asyncio.Task] = None

    def issue(self, identity: str) -> str:
        """새 세션 토큰 발급"""
        token = generate_session_token()
        while token in self._sessions:
            token = generate_session_token()

        self._sessions[token] = Session(token=token, identity=identity, issued_at=self._clock())
        return token

    def validate(self, token: Optional[str], expected_identity: Optional[str] = None) -> str:
        """
        세션을 검증하고 사용자명을 반환합니다.

        Args:
            token: 세션 토큰
            expected_identity: 주어지면 세션 소유자와 일치해야 함

        Returns:
            str: 세션 소유자

        Raises:
            SessionNotFound: 토큰이 없거나 알 수 없음
            SessionExpired: TTL 초과 (세션은 삭제됨)
            IdentityMismatch: 다른 사용자의 세션
        """
        session = self._sessions.get(token) if token else None
        if session is None:
            raise SessionNotFound()

        now = self._clock()
        if now - session.issued_at > self.ttl_seconds:
            del self._sessions[token]
            raise SessionExpired()

        if expected_identity is not None and expected_identity != session.identity:
            raise IdentityMismatch()

        session.issued_at = now
        return session.identity

    def revoke(self, token: Optional[str]) -> Optional[str]:
        """세션 폐기. 없는 토큰이어도 에러가 아니다."""
        session = self._sessions.pop(token, None) if token else None
        return session.identity if session else None

    def sweep(self) -> int:
        """
        만료된 세션을 모두 제거하고 제거한 개수를 반환합니다.

        await 없이 한 번에 실행되므로 검증과 섞이지 않는다.
        """
        now = self._clock()
        expired = [
            token for token, session in self._sessions.items()
            if now - session.issued_at > self.ttl_seconds
        ]
        for token in expired:
            del self._sessions[token]

        if expired:
            logger.info(f"Swept {len(expired)} expired sessions", extra={
                "expired_count": len(expired),
                "active_count": len(self._sessions)
            })
        return len(expired)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, token: str) -> bool:
        return token in self._sessions

    async def start(self):
        """정리 작업 시작"""
        if self.running:
            logger.warning("Session sweeper is already running")
            return

        self.running = True
        self.task = asyncio.create_task(self._sweep_periodically())
        logger.info("Session sweeper started")

    async def stop(self):
        """정리 작업 중지"""
        self.running = False
        if self.task:
            self.task.cancel()
            try:
                await self.task
            except asyncio.CancelledError:
                pass
            self.task = None
        logger.info("Session sweeper stopped")

    async def _sweep_periodically(self):
        while self.running:
            await asyncio.sleep(self.sweep_interval_seconds)
            try:
                self.sweep()
            except Exception as e:
                logger.error(f"Error in session sweeper: {e}")
