"""
API客户端模块

提供与 V2EX REST API 集成的客户端实现
"""
from .base import BaseAPIClient, APIResponse
from .exceptions import (
    APIError,
    AuthenticationError,
    AuthorizationError,
    ConfigurationError,
    DecodingError,
    NotFoundError,
    RateLimitedError,
    ServerError,
    TransportError,
)
from .retry import call_with_backoff
from .v2ex import V2exClient

__all__ = [
    "BaseAPIClient",
    "APIResponse",
    "APIError",
    "AuthenticationError",
    "AuthorizationError",
    "ConfigurationError",
    "DecodingError",
    "NotFoundError",
    "RateLimitedError",
    "ServerError",
    "TransportError",
    "V2exClient",
    "call_with_backoff",
]
