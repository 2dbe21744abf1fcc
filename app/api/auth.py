from fastapi import APIRouter, Depends, Header, status
from typing import Optional

from app.api.dependencies import get_coordinator
from app.core.errors import (
    user_not_found_error,
    invalid_credentials_error,
    email_already_exists_error,
    username_already_exists_error,
    session_required_error,
)
from app.core.logging import get_logger, log_authentication_event
from app.schemas.user import (
    UserCreate,
    UserLogin,
    UserPublic,
    UserResponse,
    LoginResponse,
    LogoutRequest,
    SessionVerifyResponse,
)
from app.utils.auth import verify_password, get_password_hash
from app.websockets.connection_manager import ChatCoordinator

logger = get_logger(__name__)

router = APIRouter(tags=["Authentication"])


@router.post("/register",
             response_model=UserResponse,
             status_code=status.HTTP_201_CREATED)
async def register(
        user_data: UserCreate,
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> UserResponse:
    """
    사용자 회원가입
    """
    persistence = coordinator.persistence

    # 비즈니스 로직: 이메일 중복 확인
    if await persistence.find_user_by_email(user_data.email):
        raise email_already_exists_error()

    # 비즈니스 로직: 사용자명 중복 확인
    if await persistence.find_user_by_username(user_data.username):
        raise username_already_exists_error()

    # 비밀번호 해싱 및 사용자 생성
    password_hash = get_password_hash(user_data.password)
    user = await persistence.create_user(
        email=user_data.email,
        username=user_data.username,
        password_hash=password_hash
    )

    log_authentication_event(logger, "register", username=user.username)
    return UserResponse.model_validate(user)


@router.post("/login", response_model=LoginResponse)
async def login(
        user_data: UserLogin,
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> LoginResponse:
    """
    사용자 로그인 (JSON 형식)

    - 성공 시 세션 토큰 발급, 이후 요청은 X-Session-Id 헤더로 전달
    - 상태(Online) 저장은 best-effort
    """
    user = await coordinator.persistence.find_user_by_email(user_data.email)
    if not user or not verify_password(user_data.password, user.password_hash):
        log_authentication_event(logger, "login", username=user_data.email, success=False)
        raise invalid_credentials_error()

    session_id = coordinator.sessions.issue(user.username)
    coordinator.persist_status_in_background(user.username, "Online")

    log_authentication_event(logger, "login", username=user.username)
    return LoginResponse(
        user=UserPublic.model_validate(user),
        session_id=session_id
    )


@router.get("/verify-session/{username}", response_model=SessionVerifyResponse)
async def verify_session(
        username: str,
        x_session_id: Optional[str] = Header(None),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> SessionVerifyResponse:
    """
    세션이 해당 사용자의 것인지 검증 (페이지 새로고침 시 세션 복원용)
    """
    if not x_session_id:
        raise session_required_error()

    coordinator.sessions.validate(x_session_id, expected_identity=username)

    user = await coordinator.persistence.find_user_by_username(username)
    if not user:
        raise user_not_found_error(username)

    return SessionVerifyResponse(user=UserPublic.model_validate(user))


@router.post("/logout")
async def logout(
        request_data: Optional[LogoutRequest] = None,
        x_session_id: Optional[str] = Header(None),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> dict:
    """
    사용자 로그아웃 (세션이 없거나 이미 폐기되어도 성공)
    """
    identity = coordinator.sessions.revoke(x_session_id)

    # 상태 변경은 폐기된 세션의 소유자에게만 적용
    if identity:
        coordinator.persist_status_in_background(identity, "Offline")
        log_authentication_event(logger, "logout", username=identity)
    elif request_data and request_data.username:
        logger.info(f"Logout without active session for user {request_data.username}")

    return {
        "success": True,
        "message": "Logged out successfully"
    }
