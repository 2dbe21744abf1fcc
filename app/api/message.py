from fastapi import APIRouter, Depends

from app.api.dependencies import SessionContext, get_coordinator, get_session_context
from app.core.errors import BusinessLogicException, IdentityMismatch, NotAMember, NotFriends
from app.core.logging import get_logger
from app.schemas.message import (
    ClearMessagesRequest,
    ClearMessagesResponse,
    PrivateMessageList,
    PrivateMessageResponse,
)
from app.websockets.connection_manager import ChatCoordinator

logger = get_logger(__name__)

router = APIRouter(tags=["Messages"])


@router.get("/private-messages/{user1}/{user2}", response_model=PrivateMessageList)
async def get_private_messages(
    user1: str,
    user2: str,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> PrivateMessageList:
    """
    두 사용자 간 1:1 메시지 기록 (오래된 것부터)

    - 요청자는 두 사용자 중 한 명이어야 함
    - 친구 관계(accepted)가 아니면 403
    """
    if session.identity not in (user1, user2):
        raise IdentityMismatch()
    persistence = coordinator.persistence

    if not await persistence.are_friends(user1, user2):
        raise NotFriends()

    messages = await persistence.get_private_messages(user1, user2)
    return PrivateMessageList(
        messages=[PrivateMessageResponse.model_validate(m) for m in messages]
    )


@router.post("/clear-room-messages", response_model=ClearMessagesResponse)
async def clear_messages(
    clear_data: ClearMessagesRequest,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> ClearMessagesResponse:
    """
    대화 기록 삭제

    - 채팅방: 멤버만 가능, 방에 접속 중인 연결에 messages_cleared 전송
    - 1:1: 친구만 가능, 접속 중인 두 사용자에게 messages_cleared 전송
    """
    username = session.require(clear_data.username)
    persistence = coordinator.persistence

    if clear_data.is_private:
        friend_username = clear_data.friend_username
        if not friend_username:
            raise BusinessLogicException("Friend username required for private chat")
        if not await persistence.are_friends(username, friend_username):
            raise NotFriends()

        deleted = await persistence.clear_private_messages(username, friend_username)

        event_data = {"type": "private", "user1": username, "user2": friend_username}
        for identity in (username, friend_username):
            await coordinator.dispatcher.to_identity(identity, "messages_cleared", event_data)

        logger.info(f"Cleared {deleted} private messages between {username} and {friend_username}")
        return ClearMessagesResponse(deleted_count=deleted, message="Private messages cleared successfully")

    room_id = clear_data.room_id
    if not room_id:
        raise BusinessLogicException("Room ID required")
    if not await persistence.is_user_in_room(room_id, username):
        raise NotAMember()

    deleted = await persistence.clear_room_messages(room_id)
    await coordinator.dispatcher.to_room(room_id, "messages_cleared", {"type": "group", "roomId": room_id})

    logger.info(f"Cleared {deleted} messages from room {room_id} by {username}")
    return ClearMessagesResponse(deleted_count=deleted, message="Room messages cleared successfully")
