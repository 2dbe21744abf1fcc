from datetime import datetime
from typing import Optional
from pydantic import BaseModel, EmailStr, Field, ConfigDict


class UserCreate(BaseModel):
    """사용자 생성 스키마"""
    email: EmailStr = Field(..., description="사용자 이메일")
    username: str = Field(..., min_length=1, max_length=50, description="사용자명")
    password: str = Field(..., min_length=3, description="비밀번호 (3자 이상)")


class UserLogin(BaseModel):
    """사용자 로그인 스키마"""
    email: EmailStr = Field(..., description="이메일")
    password: str = Field(..., min_length=1, description="비밀번호")


class UserPublic(BaseModel):
    """외부에 노출되는 사용자 정보"""
    model_config = ConfigDict(from_attributes=True)

    email: str = Field(..., description="이메일")
    username: str = Field(..., description="사용자명")


class UserResponse(UserPublic):
    """사용자 응답 스키마"""
    status: Optional[str] = Field(None, description="온라인 상태 (참고용)")
    created_at: Optional[datetime] = Field(None, description="생성일시")


class LoginResponse(BaseModel):
    success: bool = True
    user: UserPublic
    session_id: str = Field(..., description="X-Session-Id 헤더로 전달할 세션 토큰")


class LogoutRequest(BaseModel):
    username: Optional[str] = None


class SessionVerifyResponse(BaseModel):
    success: bool = True
    user: UserPublic


class UserProfile(UserResponse):
    """본인 프로필"""
    last_seen: Optional[datetime] = Field(None, description="마지막 접속 시간")


class UserStats(BaseModel):
    friends: int = 0
    rooms: int = 0
    messages: int = Field(0, description="보낸 메시지 수 (채팅방 + 1:1)")


class UserProfileResponse(BaseModel):
    success: bool = True
    profile: UserProfile
    stats: UserStats


class ProfileUpdateRequest(BaseModel):
    """프로필 수정 요청. 사용자명은 바꿀 수 없다."""
    username: str = Field(..., min_length=1, description="세션 소유자")
    email: EmailStr = Field(..., description="새 이메일")


class PasswordChangeRequest(BaseModel):
    username: str = Field(..., min_length=1)
    current_password: str = Field(..., min_length=1, description="현재 비밀번호")
    new_password: str = Field(..., min_length=3, description="새 비밀번호 (3자 이상)")


class UserInfo(BaseModel):
    """다른 사용자에게 보이는 공개 정보 (이메일 제외)"""
    model_config = ConfigDict(from_attributes=True)

    username: str
    status: Optional[str] = "Offline"
    created_at: Optional[datetime] = None


class UserInfoResponse(BaseModel):
    success: bool = True
    user: UserInfo
