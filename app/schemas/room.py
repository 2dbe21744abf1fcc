from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class RoomCreate(BaseModel):
    """채팅방 생성 스키마"""
    name: str = Field(..., min_length=1, max_length=100, description="채팅방 이름")
    username: str = Field(..., min_length=1, description="생성자")


class RoomJoin(BaseModel):
    """초대 코드로 채팅방 참여"""
    invite_code: str = Field(..., min_length=1, description="초대 코드")
    username: str = Field(..., min_length=1)


class RoomLeave(BaseModel):
    room_id: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)


class RoomResponse(BaseModel):
    """채팅방 메타데이터 (room info 이벤트와 동일한 형태)"""
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    created_by: str
    invite_code: str
    created_at: Optional[datetime] = None


class RoomMemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    joined_at: datetime


class RoomCreatedResponse(BaseModel):
    success: bool = True
    room_id: str
    invite_code: str
    message: str = "Room created successfully"


class RoomJoinedResponse(BaseModel):
    success: bool = True
    room_id: str
    room_name: str
    message: str = "Joined room successfully"


class RoomListResponse(BaseModel):
    success: bool = True
    rooms: List[RoomResponse]
