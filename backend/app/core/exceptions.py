"""
全局异常处理模块 (Global Exception Handling Module)

定义业务异常类和 FastAPI 全局异常处理器，提供统一的错误响应格式。
规则引擎和服务层只抛出这里定义的类型化异常，由边界层映射为 HTTP 状态码。

Defines business exception classes and FastAPI global exception handlers,
providing a unified error response format. Rule engines and services only raise
the typed exceptions below; the HTTP boundary maps them to status codes.
"""
import logging
import traceback
from typing import Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import HTTPException
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


# ============================================================
# 业务异常类 (Business Exception Classes)
# ============================================================

class BusinessError(Exception):
    """业务异常基类 (Base Business Exception)"""
    status_code: int = 400
    error: str = "business_error"

    def __init__(self, message: str, detail: Optional[str] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationError(BusinessError):
    """数据校验失败，批量校验时附带逐键错误表 (Validation failure with optional per-key error map)"""
    status_code = 400
    error = "validation_error"

    def __init__(
        self,
        message: str,
        errors: Optional[Dict[str, str]] = None,
        detail: Optional[str] = None,
    ):
        super().__init__(message, detail)
        self.errors = errors or {}


class AuthorizationError(BusinessError):
    """权限不足 (Actor lacks permission for the mutation)"""
    status_code = 403
    error = "authorization_error"

    def __init__(self, message: str = "Insufficient permissions", detail: Optional[str] = None):
        super().__init__(message, detail)


class NotFoundError(BusinessError):
    """资源不存在 (Resource Not Found)"""
    status_code = 404
    error = "not_found"

    def __init__(self, resource: str, detail: Optional[str] = None):
        self.resource = resource
        super().__init__(f"{resource} not found", detail)


class ConflictError(BusinessError):
    """资源冲突 (Resource Conflict)"""
    status_code = 409
    error = "conflict"


class RateLimitError(BusinessError):
    """请求过于频繁 (Too Many Requests)"""
    status_code = 429
    error = "rate_limit_exceeded"

    def __init__(
        self,
        message: str = "Too many requests",
        retry_after: int = 60,
        limit_headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.retry_after = retry_after
        self.limit_headers = limit_headers or {}

    @property
    def headers(self) -> Dict[str, str]:
        return {**self.limit_headers, "Retry-After": str(self.retry_after)}


class InvalidTokenError(BusinessError):
    """重置令牌不存在 (Reset token does not exist)"""
    status_code = 400
    error = "invalid_token"

    def __init__(self, message: str = "Invalid reset token"):
        super().__init__(message)


class ExpiredTokenError(BusinessError):
    """重置令牌已过期 (Reset token expired)"""
    status_code = 400
    error = "expired_token"

    def __init__(self, message: str = "Reset token has expired. Please request a new one."):
        super().__init__(message)


class TokenAlreadyUsedError(BusinessError):
    """重置令牌已被使用 (Reset token already used)"""
    status_code = 400
    error = "token_already_used"

    def __init__(self, message: str = "This reset token has already been used."):
        super().__init__(message)


# ============================================================
# 全局异常处理器注册 (Global Exception Handler Registration)
# ============================================================

def register_exception_handlers(app: FastAPI) -> None:
    """
    注册全局异常处理器到 FastAPI 应用 (Register global exception handlers to FastAPI app)

    处理优先级：
    1. BusinessError 子类 → 对应 HTTP 状态码 + 结构化响应（校验失败附带 errors）
    2. HTTPException → 保持原样，包装为统一格式
    3. Exception → 500 + 完整 traceback 日志
    """

    @app.exception_handler(BusinessError)
    async def business_error_handler(request: Request, exc: BusinessError) -> JSONResponse:
        content = {
            "error": exc.error,
            "message": exc.message,
            "detail": exc.detail,
            "status_code": exc.status_code,
        }
        if isinstance(exc, ValidationError) and exc.errors:
            content["errors"] = exc.errors
        return JSONResponse(status_code=exc.status_code, content=content, headers=exc.headers)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={
                "error": "http_error",
                "message": str(exc.detail),
                "detail": None,
                "status_code": exc.status_code,
            },
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        # 记录完整 traceback 用于调试 (Log full traceback for debugging)
        logger.error(
            "Unhandled exception on %s %s: %s\n%s",
            request.method,
            request.url.path,
            str(exc),
            traceback.format_exc(),
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": "Internal server error, please try again later",
                "detail": None,
                "status_code": 500,
            },
        )
