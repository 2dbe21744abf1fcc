from datetime import datetime
from typing import List
from pydantic import BaseModel, Field, ConfigDict


class FriendRequestCreate(BaseModel):
    """친구 요청 생성 스키마"""
    from_user: str = Field(..., min_length=1, description="요청자")
    to_user: str = Field(..., min_length=1, description="대상자")


class FriendRequestResponse(BaseModel):
    """친구 요청 응답(수락/거절) 스키마"""
    username: str = Field(..., min_length=1, description="요청을 받은 사용자")
    friend_username: str = Field(..., min_length=1, description="요청을 보낸 사용자")
    accept: bool = Field(..., description="수락 여부")


class FriendRemove(BaseModel):
    username: str = Field(..., min_length=1)
    friend_username: str = Field(..., min_length=1)


class FriendEntry(BaseModel):
    """상대방 사용자명과 관계 생성일시"""
    model_config = ConfigDict(from_attributes=True)

    friend_username: str
    created_at: datetime


class FriendListResponse(BaseModel):
    success: bool = True
    friends: List[FriendEntry]


class PendingRequestListResponse(BaseModel):
    success: bool = True
    requests: List[FriendEntry]


class FriendshipCheckResponse(BaseModel):
    success: bool = True
    are_friends: bool
    has_pending_request: bool
