"""
Fixed catalog of the documented V2EX endpoints.

Each descriptor says which API generation serves it, whether the bearer
token is sent, and how the path template is filled in.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any
from urllib.parse import quote


# httpx 会折叠 "." / ".." 路径段，请求会落到别的端点上
_UNSAFE_SEGMENTS = {"", ".", ".."}


class HTTPMethod(Enum):
    """HTTP方法枚举"""
    GET = "GET"
    DELETE = "DELETE"


class APIGeneration(str, Enum):
    V2 = "v2"
    CLASSIC = "classic"


@dataclass(frozen=True)
class Endpoint:
    name: str
    method: HTTPMethod
    path: str
    requires_auth: bool
    generation: APIGeneration = APIGeneration.V2
    paginated: bool = False

    def render_path(self, **params: Any) -> str:
        """Substitute path parameters, URL-quoting each value.

        Empty, "." and ".." values are rejected with ValueError.
        """
        quoted = {}
        for key, value in params.items():
            text = str(value)
            if text.strip() in _UNSAFE_SEGMENTS:
                raise ValueError(f"invalid value {value!r} for path parameter {key!r} of {self.name}")
            quoted[key] = quote(text, safe="")
        try:
            return self.path.format(**quoted)
        except KeyError as exc:
            raise ValueError(f"missing path parameter {exc} for endpoint {self.name}") from exc


LIST_NOTIFICATIONS = Endpoint("list_notifications", HTTPMethod.GET, "notifications", True, paginated=True)
DELETE_NOTIFICATION = Endpoint("delete_notification", HTTPMethod.DELETE, "notifications/{id}", True)
GET_MEMBER = Endpoint("get_member", HTTPMethod.GET, "member", True)
GET_TOKEN = Endpoint("get_token", HTTPMethod.GET, "token", True)
GET_NODE = Endpoint("get_node", HTTPMethod.GET, "nodes/{name}", True)
GET_NODE_TOPICS = Endpoint("get_node_topics", HTTPMethod.GET, "nodes/{name}/topics", True, paginated=True)
GET_TOPIC = Endpoint("get_topic", HTTPMethod.GET, "topics/{id}", True)
GET_TOPIC_REPLIES = Endpoint("get_topic_replies", HTTPMethod.GET, "topics/{id}/replies", True, paginated=True)
GET_HOT_TOPICS = Endpoint(
    "get_hot_topics", HTTPMethod.GET, "topics/hot.json", False, generation=APIGeneration.CLASSIC
)
GET_LATEST_TOPICS = Endpoint(
    "get_latest_topics", HTTPMethod.GET, "topics/latest.json", False, generation=APIGeneration.CLASSIC
)

ENDPOINTS = {
    endpoint.name: endpoint
    for endpoint in (
        LIST_NOTIFICATIONS,
        DELETE_NOTIFICATION,
        GET_MEMBER,
        GET_TOKEN,
        GET_NODE,
        GET_NODE_TOPICS,
        GET_TOPIC,
        GET_TOPIC_REPLIES,
        GET_HOT_TOPICS,
        GET_LATEST_TOPICS,
    )
}

__all__ = [
    "APIGeneration",
    "HTTPMethod",
    "Endpoint",
    "ENDPOINTS",
    "LIST_NOTIFICATIONS",
    "DELETE_NOTIFICATION",
    "GET_MEMBER",
    "GET_TOKEN",
    "GET_NODE",
    "GET_NODE_TOPICS",
    "GET_TOPIC",
    "GET_TOPIC_REPLIES",
    "GET_HOT_TOPICS",
    "GET_LATEST_TOPICS",
]
