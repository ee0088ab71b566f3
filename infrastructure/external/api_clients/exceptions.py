"""
Exceptions raised by the REST API clients, mapped to unified BusinessException variants.

Every error carries the HTTP status (None when no response arrived) and the
rate-limit state taken from the response headers, when there was a response.
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from domain.common.exceptions import BusinessException, ConfigurationError
from domain.v2ex.entity import RateLimitState
from shared.codes import ErrorCode

if TYPE_CHECKING:
    from .base import APIResponse


class APIError(BusinessException):
    """API错误基类"""

    code_for_class: ErrorCode = ErrorCode.API_ERROR

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        response: Optional["APIResponse"] = None,
        rate_limit: Optional[RateLimitState] = None,
        details: Optional[dict] = None,
    ):
        if rate_limit is None:
            rate_limit = response.rate_limit if response is not None else RateLimitState()
        self.status_code = status_code
        self.response = response
        self.rate_limit = rate_limit
        self.request_id = response.request_id if response is not None else None
        super().__init__(
            code=self.code_for_class,
            message=message,
            error_type=type(self).__name__,
            details=details,
        )

    def __str__(self):
        parts = [self.message]
        if self.status_code:
            parts.append(f"Status: {self.status_code}")
        if self.request_id:
            parts.append(f"Request ID: {self.request_id}")
        return " | ".join(parts)


class AuthenticationError(APIError):
    """认证错误（token 无效或过期）"""
    code_for_class = ErrorCode.UNAUTHORIZED


class AuthorizationError(APIError):
    """权限不足"""
    code_for_class = ErrorCode.FORBIDDEN


class NotFoundError(APIError):
    """资源未找到错误"""
    code_for_class = ErrorCode.NOT_FOUND


class RateLimitedError(APIError):
    """速率限制错误"""
    code_for_class = ErrorCode.RATE_LIMITED

    @property
    def reset_at(self) -> Optional[int]:
        """Unix timestamp from X-Rate-Limit-Reset, if the server sent one."""
        return self.rate_limit.reset


class ServerError(APIError):
    """服务器错误"""
    code_for_class = ErrorCode.SERVER_ERROR


class TransportError(APIError):
    """网络/传输层错误（未收到响应）"""
    code_for_class = ErrorCode.TRANSPORT_ERROR


class DecodingError(APIError):
    """响应体不是预期的 JSON 结构"""
    code_for_class = ErrorCode.DECODING_ERROR


STATUS_ERROR_MAP: dict[int, type[APIError]] = {
    401: AuthenticationError,
    403: AuthorizationError,
    404: NotFoundError,
    429: RateLimitedError,
}


def error_class_for_status(status_code: int) -> type[APIError]:
    """Map a non-2xx status code onto an error class."""
    if status_code in STATUS_ERROR_MAP:
        return STATUS_ERROR_MAP[status_code]
    if status_code >= 500:
        return ServerError
    return APIError


__all__ = [
    "APIError",
    "AuthenticationError",
    "AuthorizationError",
    "ConfigurationError",
    "DecodingError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "TransportError",
    "error_class_for_status",
]
