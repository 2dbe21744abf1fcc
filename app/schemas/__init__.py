from .user import (
    UserCreate,
    UserLogin,
    UserPublic,
    UserResponse,
    LoginResponse,
    LogoutRequest,
    SessionVerifyResponse,
    UserProfile,
    UserStats,
    UserProfileResponse,
    ProfileUpdateRequest,
    PasswordChangeRequest,
    UserInfo,
    UserInfoResponse,
)
from .room import (
    RoomCreate,
    RoomJoin,
    RoomLeave,
    RoomResponse,
    RoomMemberResponse,
    RoomCreatedResponse,
    RoomJoinedResponse,
    RoomListResponse,
)
from .message import (
    RoomMessageResponse,
    PrivateMessageResponse,
    PrivateMessageList,
    ClearMessagesRequest,
    ClearMessagesResponse,
)
from .friendship import (
    FriendRequestCreate,
    FriendRequestResponse,
    FriendRemove,
    FriendEntry,
    FriendListResponse,
    PendingRequestListResponse,
    FriendshipCheckResponse,
)

__all__ = [
    "UserCreate",
    "UserLogin",
    "UserPublic",
    "UserResponse",
    "LoginResponse",
    "LogoutRequest",
    "SessionVerifyResponse",
    "UserProfile",
    "UserStats",
    "UserProfileResponse",
    "ProfileUpdateRequest",
    "PasswordChangeRequest",
    "UserInfo",
    "UserInfoResponse",
    "RoomCreate",
    "RoomJoin",
    "RoomLeave",
    "RoomResponse",
    "RoomMemberResponse",
    "RoomCreatedResponse",
    "RoomJoinedResponse",
    "RoomListResponse",
    "RoomMessageResponse",
    "PrivateMessageResponse",
    "PrivateMessageList",
    "ClearMessagesRequest",
    "ClearMessagesResponse",
    "FriendRequestCreate",
    "FriendRequestResponse",
    "FriendRemove",
    "FriendEntry",
    "FriendListResponse",
    "PendingRequestListResponse",
    "FriendshipCheckResponse",
]
