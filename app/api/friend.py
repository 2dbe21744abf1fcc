from fastapi import APIRouter, Depends

from app.api.dependencies import SessionContext, get_coordinator, get_session_context
from app.core.errors import BusinessLogicException, ResourceNotFoundException, user_not_found_error
from app.core.logging import get_logger
from app.schemas.friendship import (
    FriendRequestCreate,
    FriendRequestResponse,
    FriendRemove,
    FriendEntry,
    FriendListResponse,
    PendingRequestListResponse,
    FriendshipCheckResponse,
)
from app.websockets.connection_manager import ChatCoordinator

logger = get_logger(__name__)

router = APIRouter(tags=["Friends"])


@router.post("/send-friend-request")
async def send_friend_request(
        friend_request: FriendRequestCreate,
        session: SessionContext = Depends(get_session_context),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> dict:
    """
    친구 요청을 전송합니다.

    Args:
        friend_request: 친구 요청 데이터 (from_user, to_user)
        session: 검증된 요청 세션
        coordinator: 채팅 코디네이터

    Returns:
        dict: 성공 메시지
    """
    from_user = session.require(friend_request.from_user)
    to_user = friend_request.to_user
    persistence = coordinator.persistence

    # 자기 자신에게 친구 요청 불가
    if from_user == to_user:
        raise BusinessLogicException("Cannot add yourself as friend")

    # 대상 사용자 존재 확인
    if not await persistence.find_user_by_username(to_user):
        raise user_not_found_error(to_user)

    if await persistence.are_friends(from_user, to_user):
        raise BusinessLogicException("Already friends")

    if await persistence.has_pending_request(from_user, to_user):
        raise BusinessLogicException("Friend request already sent")

    await persistence.send_friend_request(from_user, to_user)

    # 대상이 접속 중이면 실시간 알림 (오프라인이면 버림)
    await coordinator.notify_friend_request(from_user, to_user)

    logger.info(f"Friend request sent from {from_user} to {to_user}")
    return {
        "success": True,
        "message": f"Friend request sent to {to_user}!"
    }


@router.post("/respond-friend-request")
async def respond_friend_request(
        response_data: FriendRequestResponse,
        session: SessionContext = Depends(get_session_context),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> dict:
    """
    받은 친구 요청을 수락하거나 거절합니다.

    수락 시 요청자에게 friend_request_accepted 이벤트를 보냅니다.
    """
    username = session.require(response_data.username)
    friend_username = response_data.friend_username

    updated = await coordinator.persistence.respond_to_friend_request(
        username, friend_username, response_data.accept
    )
    if not updated:
        raise ResourceNotFoundException("Friend request")

    if response_data.accept:
        await coordinator.notify_friend_request_accepted(username, friend_username)

    return {
        "success": True,
        "message": "Friend request accepted" if response_data.accept else "Friend request rejected"
    }


@router.get("/pending-requests/{username}", response_model=PendingRequestListResponse)
async def get_pending_requests(
        username: str,
        session: SessionContext = Depends(get_session_context),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> PendingRequestListResponse:
    """받은 친구 요청 목록"""
    session.require(username)

    pending = await coordinator.persistence.get_pending_requests(username)
    return PendingRequestListResponse(requests=[
        FriendEntry(friend_username=other, created_at=created_at)
        for other, created_at in pending
    ])


@router.get("/friends/{username}", response_model=FriendListResponse)
async def get_friends(
        username: str,
        session: SessionContext = Depends(get_session_context),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> FriendListResponse:
    """친구 목록"""
    session.require(username)

    friends = await coordinator.persistence.get_friends(username)
    return FriendListResponse(friends=[
        FriendEntry(friend_username=other, created_at=created_at)
        for other, created_at in friends
    ])


@router.post("/remove-friend")
async def remove_friend(
        remove_data: FriendRemove,
        session: SessionContext = Depends(get_session_context),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> dict:
    username = session.require(remove_data.username)

    removed = await coordinator.persistence.remove_friend(username, remove_data.friend_username)
    if not removed:
        raise ResourceNotFoundException("Friendship")

    return {"success": True, "message": "Friend removed"}


@router.get("/check-friendship/{username}/{friend_username}", response_model=FriendshipCheckResponse)
async def check_friendship(
        username: str,
        friend_username: str,
        session: SessionContext = Depends(get_session_context),
        coordinator: ChatCoordinator = Depends(get_coordinator)
) -> FriendshipCheckResponse:
    """친구 여부와 대기 중인 요청 여부 확인"""
    session.require(username)
    persistence = coordinator.persistence

    return FriendshipCheckResponse(
        are_friends=await persistence.are_friends(username, friend_username),
        has_pending_request=await persistence.has_pending_request(username, friend_username)
    )
