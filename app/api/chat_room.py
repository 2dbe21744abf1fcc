from fastapi import APIRouter, Depends, status

from app.api.dependencies import SessionContext, get_coordinator, get_session_context
from app.core.errors import invalid_invite_code_error, ResourceNotFoundException
from app.core.logging import get_logger
from app.schemas.room import (
    RoomCreate,
    RoomJoin,
    RoomLeave,
    RoomResponse,
    RoomCreatedResponse,
    RoomJoinedResponse,
    RoomListResponse,
)
from app.websockets.connection_manager import ChatCoordinator
from app.websockets.handlers import serialize_members

logger = get_logger(__name__)

router = APIRouter(tags=["Chat Rooms"])


@router.post("/create-room", response_model=RoomCreatedResponse, status_code=status.HTTP_201_CREATED)
async def create_room(
    room_data: RoomCreate,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> RoomCreatedResponse:
    """
    채팅방 생성

    - **name**: 채팅방 이름
    - **username**: 생성자 (세션 소유자와 같아야 함)

    생성자는 자동으로 멤버가 됩니다.
    """
    username = session.require(room_data.username)
    persistence = coordinator.persistence

    room_id, invite_code = await persistence.create_room(room_data.name, username)
    await persistence.add_user_to_room(room_id, username)

    logger.info(f"Room {room_id} created by {username}")
    return RoomCreatedResponse(room_id=room_id, invite_code=invite_code)


@router.post("/join-room", response_model=RoomJoinedResponse)
async def join_room(
    join_data: RoomJoin,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> RoomJoinedResponse:
    """
    초대 코드로 채팅방 참여 (영속 멤버십 추가)

    실시간 입장은 WebSocket `join room` 이벤트로 따로 한다.
    """
    username = session.require(join_data.username)
    persistence = coordinator.persistence

    room = await persistence.get_room_by_invite_code(join_data.invite_code.strip().upper())
    if not room:
        raise invalid_invite_code_error()

    await persistence.add_user_to_room(room.id, username)

    logger.info(f"User {username} joined room {room.id} via invite code")
    return RoomJoinedResponse(room_id=room.id, room_name=room.name)


@router.post("/leave-room")
async def leave_room(
    leave_data: RoomLeave,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> dict:
    """채팅방 나가기 (멤버십 삭제 후 남은 멤버 목록 브로드캐스트)"""
    username = session.require(leave_data.username)
    persistence = coordinator.persistence

    removed = await persistence.remove_user_from_room(leave_data.room_id, username)
    if not removed:
        raise ResourceNotFoundException("Room membership")

    members = await persistence.get_room_members(leave_data.room_id)
    await coordinator.dispatcher.to_room(leave_data.room_id, "room members", serialize_members(members))
    await coordinator.dispatcher.to_room(
        leave_data.room_id, "user_left", {"username": username, "roomId": leave_data.room_id}
    )

    return {"success": True, "message": "Left room successfully"}


@router.get("/user-rooms/{username}", response_model=RoomListResponse)
async def get_user_rooms(
    username: str,
    session: SessionContext = Depends(get_session_context),
    coordinator: ChatCoordinator = Depends(get_coordinator)
) -> RoomListResponse:
    """사용자가 참여 중인 채팅방 목록 (최근 생성순)"""
    session.require(username)

    rooms = await coordinator.persistence.get_user_rooms(username)
    return RoomListResponse(rooms=[RoomResponse.model_validate(room) for room in rooms])
