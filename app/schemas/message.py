from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


class RoomMessageResponse(BaseModel):
    """채팅방 메시지"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    sender: str
    room_id: str
    time: datetime


class PrivateMessageResponse(BaseModel):
    """1:1 메시지"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    text: str
    sender: str
    receiver: str
    time: datetime
    read: bool = False


class PrivateMessageList(BaseModel):
    success: bool = True
    messages: List[PrivateMessageResponse] = Field(default_factory=list)


class ClearMessagesRequest(BaseModel):
    """
    대화 기록 삭제 요청

    - is_private=False: room_id의 채팅방 메시지 삭제 (멤버만)
    - is_private=True: friend_username과의 1:1 메시지 삭제 (친구만)
    """
    username: str = Field(..., min_length=1)
    room_id: Optional[str] = None
    is_private: bool = False
    friend_username: Optional[str] = None


class ClearMessagesResponse(BaseModel):
    success: bool = True
    deleted_count: int
    message: str
