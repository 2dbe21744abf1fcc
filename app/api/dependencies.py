from typing import Optional

from fastapi import Depends, Header, Request

from app.core.errors import IdentityMismatch, session_required_error
from app.websockets.connection_manager import ChatCoordinator


def get_coordinator(request: Request) -> ChatCoordinator:
    """lifespan에서 생성한 코디네이터"""
    return request.app.state.coordinator


class SessionContext:
    """검증된 요청 세션"""

    def __init__(self, token: str, identity: str):
        self.token = token
        self.identity = identity

    def require(self, username: Optional[str]) -> str:
        """요청 본문/경로의 사용자명이 세션 소유자와 같은지 확인"""
        if username is not None and username != self.identity:
            raise IdentityMismatch()
        return self.identity


async def get_session_context(
        x_session_id: Optional[str] = Header(None),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> SessionContext:
    """
    X-Session-Id 헤더의 세션을 검증합니다 (슬라이딩 만료 갱신 포함).

    Raises:
        AuthenticationException: 헤더 누락
        AuthError: 세션 없음/만료 (예외 핸들러가 401로 변환)
    """
    if not x_session_id:
        raise session_required_error()

    identity = coordinator.sessions.validate(x_session_id)
    return SessionContext(token=x_session_id, identity=identity)
