from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.core.errors import BaseCustomException, ChatError, ErrorResponse, to_http_exception
from app.core.logging import get_logger

logger = get_logger(__name__)


def create_http_exception_handler():
    """FastAPI HTTPException 핸들러 생성"""
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """HTTPException을 표준 형식으로 변환"""

        # 우리의 커스텀 예외인 경우 그대로 반환
        if isinstance(exc, BaseCustomException):
            return JSONResponse(
                status_code=exc.status_code,
                content=exc.to_dict()
            )

        # 일반 HTTPException인 경우 표준 형식으로 변환
        error_response = ErrorResponse(
            error="http_error",
            message=exc.detail if isinstance(exc.detail, str) else "HTTP error occurred",
            details={"detail": exc.detail} if not isinstance(exc.detail, str) else None,
            status_code=exc.status_code
        )

        return JSONResponse(
            status_code=exc.status_code,
            content=error_response.model_dump()
        )

    return http_exception_handler


def create_chat_error_handler():
    """도메인 예외(세션/권한/저장소) 핸들러 생성"""
    async def chat_error_handler(request: Request, exc: ChatError):
        http_exc = to_http_exception(exc)
        if http_exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        else:
            logger.info(f"{request.method} {request.url.path} rejected: {exc.message}")

        return JSONResponse(
            status_code=http_exc.status_code,
            content=http_exc.to_dict()
        )

    return chat_error_handler


def create_validation_exception_handler():
    """요청 본문 검증 실패 핸들러 생성"""
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(loc) for loc in error["loc"]),
                "message": error["msg"],
            }
            for error in exc.errors()
        ]
        error_response = ErrorResponse(
            error="validation_error",
            message="Request validation failed",
            details={"errors": errors},
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY
        )

        return JSONResponse(
            status_code=error_response.status_code,
            content=error_response.model_dump()
        )

    return validation_exception_handler


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(StarletteHTTPException, create_http_exception_handler())
    app.add_exception_handler(ChatError, create_chat_error_handler())
    app.add_exception_handler(RequestValidationError, create_validation_exception_handler())
