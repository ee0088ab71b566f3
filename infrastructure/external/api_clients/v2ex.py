"""
V2EX API 客户端

v2 接口（/api/v2/）全部需要 Bearer token，返回 {success, message, result} 包装；
经典接口（/api/topics/*.json）无需认证，直接返回话题数组。
"""
from __future__ import annotations

from typing import Any, AsyncIterator, Optional

import httpx
from pydantic import ValidationError

from core.config import Settings, get_settings
from core.logging_config import get_logger
from domain.v2ex.endpoints import (
    APIGeneration,
    DELETE_NOTIFICATION,
    Endpoint,
    GET_HOT_TOPICS,
    GET_LATEST_TOPICS,
    GET_MEMBER,
    GET_NODE,
    GET_NODE_TOPICS,
    GET_TOKEN,
    GET_TOPIC,
    GET_TOPIC_REPLIES,
    HTTPMethod,
    LIST_NOTIFICATIONS,
)
from domain.v2ex.entity import Envelope, V2exResult
from .base import APIResponse, BaseAPIClient
from .exceptions import APIError, ConfigurationError, DecodingError

logger = get_logger(__name__)

PAGE_PARAM = "p"


def _validate_page(page: Any) -> int:
    if isinstance(page, bool) or not isinstance(page, int) or page < 1:
        raise ValueError(f"page must be a positive integer, got {page!r}")
    return page


class V2exClient(BaseAPIClient):
    """V2EX REST API 客户端

    构造时不发起网络请求；底层 httpx.AsyncClient 在第一次调用时创建。
    token 在构造后不可变，可安全地在多个协程间共享同一个实例。
    """

    def __init__(
        self,
        token: Optional[str] = None,
        *,
        settings: Optional[Settings] = None,
        base_url: Optional[str] = None,
        classic_base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        require_token: bool = False,
        debug: Optional[bool] = None,
    ):
        settings = settings or get_settings()
        super().__init__(
            base_url=base_url or settings.base_url,
            timeout=timeout if timeout is not None else settings.timeout,
            user_agent=settings.user_agent,
            transport=transport,
            debug=settings.debug if debug is None else debug,
        )
        self.classic_base_url = (classic_base_url or settings.classic_base_url).rstrip('/')

        resolved = (token or "").strip() or settings.token
        self._token: Optional[str] = resolved or None
        if require_token and not self._token:
            raise ConfigurationError(
                "A V2EX token is required: pass token= or set V2EX_TOKEN",
                field="token",
            )

    @property
    def token(self) -> Optional[str]:
        return self._token

    @property
    def has_token(self) -> bool:
        return self._token is not None

    async def _call(self, endpoint: Endpoint, page: Optional[int] = None, **path_params: Any) -> V2exResult:
        """按端点描述发起一次调用并解析结果"""
        if endpoint.requires_auth and not self._token:
            raise ConfigurationError(
                f"{endpoint.name} requires a V2EX token: pass token= or set V2EX_TOKEN",
                field="token",
            )

        params = None
        if endpoint.paginated:
            params = {PAGE_PARAM: _validate_page(1 if page is None else page)}

        if endpoint.generation is APIGeneration.CLASSIC:
            base_url = self.classic_base_url
        else:
            base_url = self.base_url

        response = await self._request(
            endpoint.method,
            endpoint.render_path(**path_params),
            params=params,
            base_url=base_url,
            auth_token=self._token if endpoint.requires_auth else None,
        )

        if endpoint.generation is APIGeneration.CLASSIC:
            return self._parse_topic_list(endpoint, response)
        return self._parse_envelope(endpoint, response)

    def _decoding_error(self, endpoint: Endpoint, response: APIResponse, reason: str) -> DecodingError:
        logger.warning(
            "api_decoding_error",
            endpoint=endpoint.name,
            status_code=response.status_code,
            reason=reason,
        )
        return DecodingError(
            message=f"Unexpected response for {endpoint.name}: {reason}",
            status_code=response.status_code,
            response=response,
        )

    def _parse_envelope(self, endpoint: Endpoint, response: APIResponse) -> V2exResult:
        # DELETE 成功时可能返回 204 或空响应体，删除已经生效
        if endpoint.method is HTTPMethod.DELETE and not response.raw_content:
            return V2exResult(
                data=None,
                status_code=response.status_code,
                rate_limit=response.rate_limit,
            )
        if response.json_error:
            raise self._decoding_error(endpoint, response, response.json_error)
        if not isinstance(response.data, dict):
            raise self._decoding_error(
                endpoint, response, f"expected a JSON object envelope, got {type(response.data).__name__}"
            )
        try:
            envelope = Envelope.model_validate(response.data)
        except ValidationError as exc:
            raise self._decoding_error(endpoint, response, f"invalid envelope: {exc.errors()[0]['msg']}") from exc

        if not envelope.success:
            raise APIError(
                message=envelope.message or f"{endpoint.name} was rejected by the server",
                status_code=response.status_code,
                response=response,
            )

        return V2exResult(
            data=envelope.result,
            status_code=response.status_code,
            rate_limit=response.rate_limit,
            message=envelope.message,
        )

    def _parse_topic_list(self, endpoint: Endpoint, response: APIResponse) -> V2exResult:
        if response.json_error:
            raise self._decoding_error(endpoint, response, response.json_error)
        if not isinstance(response.data, list):
            raise self._decoding_error(
                endpoint, response, f"expected a JSON array of topics, got {type(response.data).__name__}"
            )
        if not all(isinstance(item, dict) for item in response.data):
            raise self._decoding_error(endpoint, response, "topic list contains non-object items")

        return V2exResult(
            data=response.data,
            status_code=response.status_code,
            rate_limit=response.rate_limit,
        )

    # 通知
    async def list_notifications(self, page: int = 1) -> V2exResult:
        """获取最新的提醒（分页）"""
        return await self._call(LIST_NOTIFICATIONS, page=page)

    async def delete_notification(self, notification_id: int) -> V2exResult:
        """删除指定的提醒；不存在时抛出 NotFoundError"""
        return await self._call(DELETE_NOTIFICATION, id=notification_id)

    async def iter_notifications(
        self, start_page: int = 1, max_pages: Optional[int] = None
    ) -> AsyncIterator[dict]:
        """按页顺序遍历提醒，遇到空页或达到 max_pages 时停止"""
        page = _validate_page(start_page)
        fetched = 0
        while max_pages is None or fetched < max_pages:
            result = await self.list_notifications(page=page)
            items = result.data or []
            if not isinstance(items, list):
                raise DecodingError(
                    message="Unexpected response for list_notifications: result is not a list",
                    status_code=result.status_code,
                    rate_limit=result.rate_limit,
                )
            if not items:
                break
            for item in items:
                yield item
            fetched += 1
            page += 1

    # 会员与令牌
    async def get_member(self) -> V2exResult:
        """获取当前 token 对应的会员资料"""
        return await self._call(GET_MEMBER)

    async def get_token(self) -> V2exResult:
        """查看当前 token 的信息"""
        return await self._call(GET_TOKEN)

    # 节点
    async def get_node(self, name: str) -> V2exResult:
        return await self._call(GET_NODE, name=name)

    async def get_node_topics(self, name: str, page: int = 1) -> V2exResult:
        return await self._call(GET_NODE_TOPICS, page=page, name=name)

    # 主题
    async def get_topic(self, topic_id: int) -> V2exResult:
        return await self._call(GET_TOPIC, id=topic_id)

    async def get_topic_replies(self, topic_id: int, page: int = 1) -> V2exResult:
        return await self._call(GET_TOPIC_REPLIES, page=page, id=topic_id)

    # 经典接口（无需认证）
    async def get_hot_topics(self) -> V2exResult:
        """最热主题"""
        return await self._call(GET_HOT_TOPICS)

    async def get_latest_topics(self) -> V2exResult:
        """最新主题"""
        return await self._call(GET_LATEST_TOPICS)
