from fastapi import APIRouter, Depends

from app.api.dependencies import SessionContext, get_coordinator, get_session_context
from app.core.errors import (
    AuthenticationException,
    email_already_exists_error,
    user_not_found_error,
)
from app.core.logging import get_logger, log_authentication_event
from app.schemas.user import (
    UserProfile,
    UserStats,
    UserProfileResponse,
    UserResponse,
    ProfileUpdateRequest,
    PasswordChangeRequest,
    UserInfo,
    UserInfoResponse,
)
from app.utils.auth import get_password_hash, verify_password
from app.websockets.connection_manager import ChatCoordinator

logger = get_logger(__name__)

router = APIRouter(tags=["User Profile"])


@router.get("/user-profile/{username}", response_model=UserProfileResponse)
async def get_user_profile(
    username: str,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> UserProfileResponse:
    """
    본인 프로필과 활동 통계를 조회합니다.

    Returns:
        UserProfileResponse: 프로필 (이메일 포함) + 친구/채팅방/보낸 메시지 수
    """
    session.require(username)
    persistence = coordinator.persistence

    user = await persistence.find_user_by_username(username)
    if not user:
        raise user_not_found_error(username)

    stats = await persistence.get_user_stats(username)
    return UserProfileResponse(
        profile=UserProfile.model_validate(user),
        stats=UserStats(**stats)
    )


@router.get("/user-info/{target_username}", response_model=UserInfoResponse)
async def get_user_info(
    target_username: str,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> UserInfoResponse:
    """다른 사용자의 공개 정보 (로그인한 사용자 누구나)"""
    user = await coordinator.persistence.find_user_by_username(target_username)
    if not user:
        raise user_not_found_error(target_username)

    return UserInfoResponse(user=UserInfo.model_validate(user))


@router.post("/update-profile")
async def update_profile(
    profile_data: ProfileUpdateRequest,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> dict:
    """
    프로필 수정 (이메일)

    사용자명은 세션, 멤버십, 친구 관계의 키이므로 바꿀 수 없다.
    """
    username = session.require(profile_data.username)
    persistence = coordinator.persistence

    existing = await persistence.find_user_by_email(profile_data.email)
    if existing and existing.username != username:
        raise email_already_exists_error()

    user = await persistence.update_user_email(username, profile_data.email)
    if not user:
        raise user_not_found_error(username)

    logger.info(f"Profile updated for user {username}")
    return {
        "success": True,
        "message": "Profile updated successfully",
        "user": UserResponse.model_validate(user).model_dump(mode="json")
    }


@router.post("/change-password")
async def change_password(
    password_data: PasswordChangeRequest,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> dict:
    """현재 비밀번호를 확인한 뒤 새 비밀번호로 변경"""
    username = session.require(password_data.username)
    persistence = coordinator.persistence

    user = await persistence.find_user_by_username(username)
    if not user:
        raise user_not_found_error(username)

    if not verify_password(password_data.current_password, user.password_hash):
        log_authentication_event(logger, "change_password", username=username, success=False)
        raise AuthenticationException("Current password is incorrect")

    await persistence.update_user_password(username, get_password_hash(password_data.new_password))

    log_authentication_event(logger, "change_password", username=username)
    return {"success": True, "message": "Password changed successfully"}
