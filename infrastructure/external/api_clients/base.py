"""
REST API客户端基类

提供通用的HTTP请求功能，包括：
- 按请求附加认证头（只在需要时发送）
- 错误分类
- 请求/响应日志
- 限流响应头解析
- 超时控制

不做自动重试；需要退避重试时由调用方使用 retry.call_with_backoff。
"""
import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

import httpx

from core.config import validate_timeout
from core.logging_config import get_logger
from domain.v2ex.endpoints import HTTPMethod
from domain.v2ex.entity import RateLimitState
from .exceptions import APIError, TransportError, error_class_for_status

logger = get_logger(__name__)


@dataclass
class APIResponse:
    """API响应封装"""
    status_code: int
    headers: Dict[str, str]
    data: Any
    raw_content: bytes
    elapsed_ms: float
    request_id: Optional[str] = None
    rate_limit: RateLimitState = field(default_factory=RateLimitState)
    json_error: Optional[str] = None

    @property
    def is_success(self) -> bool:
        """判断请求是否成功"""
        return 200 <= self.status_code < 300

    @property
    def is_error(self) -> bool:
        """判断请求是否失败"""
        return not self.is_success


class BaseAPIClient:
    """
    REST API客户端基类

    提供通用的HTTP请求功能，子类继承并实现具体的API调用
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        user_agent: str = "v2ex-client/1.0",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        debug: bool = False
    ):
        """
        初始化API客户端（不发起任何网络请求）

        Args:
            base_url: API基础URL
            timeout: 请求超时时间（秒），必须为有限正数
            user_agent: User-Agent
            transport: 自定义 httpx 传输层（测试时注入 MockTransport）
            debug: 是否开启调试日志
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = validate_timeout(timeout)
        self.debug = debug
        self._transport = transport

        self.default_headers = {
            "Accept": "application/json",
            "User-Agent": user_agent,
        }

        self._client: Optional[httpx.AsyncClient] = None

    @property
    async def client(self) -> httpx.AsyncClient:
        """获取或创建HTTP客户端"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    async def close(self):
        """关闭HTTP客户端"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        """异步上下文管理器入口"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """异步上下文管理器出口"""
        await self.close()

    def _build_url(self, endpoint: str, base_url: Optional[str] = None) -> str:
        """构建完整URL"""
        base = (base_url or self.base_url).rstrip('/')
        endpoint = endpoint.lstrip('/')
        return f"{base}/{endpoint}"

    @staticmethod
    def _auth_headers(token: Optional[str]) -> Dict[str, str]:
        """Bearer 认证头；没有 token 时返回空字典"""
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    def _log_request(self, method: str, url: str, **kwargs):
        """记录请求日志（不记录认证头）"""
        if self.debug:
            logger.debug(
                "api_request",
                method=method,
                url=url,
                params=kwargs.get("params"),
                headers={k: v for k, v in kwargs.get("headers", {}).items()
                         if k.lower() != "authorization"},
            )

    def _log_response(self, method: str, url: str, response: APIResponse):
        """记录响应日志"""
        if self.debug:
            logger.debug(
                "api_response",
                method=method,
                url=url,
                status_code=response.status_code,
                elapsed_ms=round(response.elapsed_ms, 2),
                request_id=response.request_id,
                rate_limit_remaining=response.rate_limit.remaining,
            )

    @staticmethod
    def _error_message(response: APIResponse) -> str:
        """尝试从响应中提取错误消息"""
        message = f"API request failed with status {response.status_code}"
        if isinstance(response.data, dict):
            for key in ("message", "error", "detail"):
                value = response.data.get(key)
                if isinstance(value, str) and value:
                    return value
        return message

    def _handle_error_response(self, method: str, url: str, response: APIResponse):
        """处理错误响应：分类后抛出"""
        error_class = error_class_for_status(response.status_code)
        logger.warning(
            "api_error_response",
            method=method,
            url=url,
            status_code=response.status_code,
            error_type=error_class.__name__,
            rate_limit_remaining=response.rate_limit.remaining,
            rate_limit_reset=response.rate_limit.reset,
        )
        raise error_class(
            message=self._error_message(response),
            status_code=response.status_code,
            response=response,
        )

    @staticmethod
    def _parse_body(response: httpx.Response) -> tuple[Any, Optional[str]]:
        """解析JSON响应体，返回 (data, json_error)"""
        if not response.content:
            return None, "empty response body"
        try:
            return response.json(), None
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            return None, str(exc)

    async def _request(
        self,
        method: HTTPMethod,
        endpoint: str,
        params: Optional[Mapping[str, Any]] = None,
        base_url: Optional[str] = None,
        auth_token: Optional[str] = None,
    ) -> APIResponse:
        """
        发送HTTP请求

        Args:
            method: HTTP方法
            endpoint: API端点（相对路径）
            params: 查询参数
            base_url: 覆盖默认基础URL（同一主机上的其他 API 版本）
            auth_token: 认证令牌；为空则不发送认证头

        Returns:
            APIResponse: 2xx 响应

        Raises:
            APIError: 非 2xx 响应（按状态码分类）
            TransportError: 网络错误或超时
        """
        method = HTTPMethod(method).value
        url = self._build_url(endpoint, base_url)

        request_headers = {**self.default_headers, **self._auth_headers(auth_token)}

        self._log_request(method, url, params=params, headers=request_headers)

        start_time = datetime.now()
        client = await self.client
        try:
            response = await client.request(
                method=method,
                url=url,
                params=params,
                headers=request_headers,
            )
        except httpx.TimeoutException as exc:
            logger.warning("api_transport_error", method=method, url=url, error="timeout")
            raise TransportError(f"Request timeout after {self.timeout}s") from exc
        except httpx.TransportError as exc:
            logger.warning("api_transport_error", method=method, url=url, error=str(exc))
            raise TransportError(f"Network error: {exc}") from exc

        elapsed = (datetime.now() - start_time).total_seconds() * 1000
        response_data, json_error = self._parse_body(response)

        api_response = APIResponse(
            status_code=response.status_code,
            headers=dict(response.headers),
            data=response_data,
            raw_content=response.content,
            elapsed_ms=elapsed,
            request_id=response.headers.get("x-request-id"),
            rate_limit=RateLimitState.from_headers(response.headers),
            json_error=json_error,
        )

        self._log_response(method, url, api_response)

        if api_response.is_error:
            self._handle_error_response(method, url, api_response)

        return api_response


__all__ = ["APIError", "APIResponse", "BaseAPIClient", "HTTPMethod"]
