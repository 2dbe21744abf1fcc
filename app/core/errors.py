from typing import Optional, Dict, Any
from fastapi import HTTPException, status
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """표준 에러 응답 모델"""
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
    status_code: int


# =============================================================================
# 도메인 예외 (실시간 코어 / 영속성 게이트웨이)
# =============================================================================

class ChatError(Exception):
    """채팅 도메인 예외의 기본 클래스"""
    message = "Chat error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.message
        super().__init__(self.message)


class AuthError(ChatError):
    """세션 누락/무효/만료/불일치. 항상 호출자에게 노출되며 재시도하지 않는다."""
    message = "Authentication failed"


class SessionNotFound(AuthError):
    message = "Invalid session"


class SessionExpired(AuthError):
    message = "Session expired"


class IdentityMismatch(AuthError):
    message = "Session mismatch"


class AuthorizationError(ChatError):
    """인증은 되었지만 해당 작업 권한이 없음"""
    message = "Access denied"


class NotAMember(AuthorizationError):
    message = "You are not a member of this room"


class NotFriends(AuthorizationError):
    message = "You can only message friends"


class RoomNotFound(ChatError):
    message = "Room not found"


class StorageError(ChatError):
    """영속성 게이트웨이 실패"""
    message = "Storage operation failed"


# =============================================================================
# HTTP 예외
# =============================================================================

class BaseCustomException(HTTPException):
    """기본 커스텀 예외 클래스"""
    def __init__(
        self,
        status_code: int,
        error: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        self.error = error
        self.message = message
        self.details = details
        self.status_code = status_code
        super().__init__(status_code=status_code, detail=self.to_dict())

    def to_dict(self) -> Dict[str, Any]:
        """예외를 딕셔너리로 변환"""
        return {
            "error": self.error,
            "message": self.message,
            "details": self.details,
            "status_code": self.status_code
        }


class AuthenticationException(BaseCustomException):
    """인증 실패 예외"""
    def __init__(
        self,
        message: str = "Authentication failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            error="authentication_error",
            message=message,
            details=details
        )


class AuthorizationException(BaseCustomException):
    """권한 부족 예외"""
    def __init__(
        self,
        message: str = "Access denied",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            error="authorization_error",
            message=message,
            details=details
        )


class ResourceNotFoundException(BaseCustomException):
    """리소스를 찾을 수 없음 예외"""
    def __init__(
        self,
        resource: str = "Resource",
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        if message is None:
            message = f"{resource} not found"

        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            error="resource_not_found",
            message=message,
            details=details or {"resource": resource}
        )


class ConflictException(BaseCustomException):
    """리소스 충돌 예외"""
    def __init__(
        self,
        message: str = "Resource conflict",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            error="resource_conflict",
            message=message,
            details=details
        )


class BusinessLogicException(BaseCustomException):
    """비즈니스 로직 예외"""
    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            error="business_logic_error",
            message=message,
            details=details
        )


class StorageException(BaseCustomException):
    """저장소 장애 예외"""
    def __init__(
        self,
        message: str = "Storage operation failed",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            error="storage_error",
            message=message,
            details=details
        )


def to_http_exception(exc: ChatError) -> BaseCustomException:
    """도메인 예외를 HTTP 예외로 변환"""
    if isinstance(exc, AuthError):
        return AuthenticationException(exc.message)
    if isinstance(exc, AuthorizationError):
        return AuthorizationException(exc.message)
    if isinstance(exc, RoomNotFound):
        return ResourceNotFoundException("Room", message=exc.message)
    if isinstance(exc, StorageError):
        return StorageException(exc.message)
    return BusinessLogicException(exc.message)


# =============================================================================
# 자주 사용되는 에러 팩토리 함수들
# =============================================================================

def user_not_found_error(username: Optional[str] = None):
    """사용자를 찾을 수 없음 에러"""
    details = {"username": username} if username else None
    return ResourceNotFoundException("User", details=details)


def invalid_credentials_error():
    """잘못된 인증 정보 에러"""
    return AuthenticationException("Invalid email or password")


def email_already_exists_error():
    return ConflictException("Email already registered")


def username_already_exists_error():
    return ConflictException("Username already taken")


def session_required_error():
    """세션 헤더 누락 에러"""
    return AuthenticationException("Session required")


def invalid_invite_code_error():
    return ResourceNotFoundException("Room", message="Invalid invite code")
