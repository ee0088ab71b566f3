"""
V2EX 领域值对象 - 请求/响应期间的瞬时数据，不做持久化
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, StrictBool


RATE_LIMIT_LIMIT_HEADER = "x-rate-limit-limit"
RATE_LIMIT_REMAINING_HEADER = "x-rate-limit-remaining"
RATE_LIMIT_RESET_HEADER = "x-rate-limit-reset"


def _header_int(headers: Mapping[str, str], name: str) -> Optional[int]:
    raw = headers.get(name)
    if raw is None:
        return None
    try:
        return int(str(raw).strip())
    except ValueError:
        return None


@dataclass(frozen=True)
class RateLimitState:
    """限流状态（由每次响应头派生）

    CDN 缓存命中的响应不会扣减 remaining，调用方不能假设它随调用单调递减。
    """

    limit: Optional[int] = None
    remaining: Optional[int] = None
    reset: Optional[int] = None

    @classmethod
    def from_headers(cls, headers: Optional[Mapping[str, str]]) -> "RateLimitState":
        if not headers:
            return cls()
        lowered = {str(k).lower(): v for k, v in headers.items()}
        return cls(
            limit=_header_int(lowered, RATE_LIMIT_LIMIT_HEADER),
            remaining=_header_int(lowered, RATE_LIMIT_REMAINING_HEADER),
            reset=_header_int(lowered, RATE_LIMIT_RESET_HEADER),
        )

    @property
    def is_empty(self) -> bool:
        return self.limit is None and self.remaining is None and self.reset is None


class Envelope(BaseModel):
    """v2 接口统一响应包装 {success, message, result}"""

    model_config = ConfigDict(extra="allow")

    success: StrictBool
    message: Optional[str] = None
    result: Any = None


@dataclass(frozen=True)
class V2exResult:
    """一次调用的结果：解析后的数据 + 限流状态"""

    data: Any
    status_code: int
    rate_limit: RateLimitState
    message: Optional[str] = None
