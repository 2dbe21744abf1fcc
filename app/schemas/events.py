"""
실시간 이벤트 페이로드 스키마

WebSocket 프레임은 {"event": <이름>, "data": <페이로드>} 형태이며,
클라이언트 호환을 위해 camelCase 필드명(sessionId, roomId)을 그대로 받는다.
"""

from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class EventFrame(BaseModel):
    event: str = Field(..., min_length=1)
    data: Any = None


class AuthenticatePayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1, alias="sessionId")


class JoinRoomPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(..., min_length=1, alias="roomId")
    username: str = Field(..., min_length=1)
    session_id: str = Field(..., min_length=1, alias="sessionId")


class LeaveRoomPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(..., min_length=1, alias="roomId")
    username: str = Field(..., min_length=1)


class RoomLookupPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    room_id: str = Field(..., min_length=1, alias="roomId")


class ChatMessagePayload(BaseModel):
    # 클라이언트가 덧붙인 부가 필드는 브로드캐스트에 그대로 실어 보낸다
    model_config = ConfigDict(extra="allow")

    text: str = Field(..., min_length=1)


class PrivateMessagePayload(BaseModel):
    model_config = ConfigDict(extra="allow")

    sender: str = Field(..., min_length=1)
    receiver: str = Field(..., min_length=1)
    text: str = Field(..., min_length=1)
    time: Optional[str] = None


class MarkAsReadPayload(BaseModel):
    sender: str = Field(..., min_length=1)
