"""调用方使用的退避重试封装

客户端本身从不重试；需要时由调用方包一层：

    result = await call_with_backoff(client.get_topic, 1000)

只重试 ServerError / TransportError / RateLimitedError。限流时优先等到
X-Rate-Limit-Reset 指定的时间（不超过 max_delay）。
"""
from __future__ import annotations

import asyncio
import time
from typing import Any, Awaitable, Callable, TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from core.logging_config import get_logger
from .exceptions import RateLimitedError, ServerError, TransportError

logger = get_logger(__name__)

T = TypeVar("T")

RETRYABLE_ERRORS = (ServerError, TransportError, RateLimitedError)


def _build_wait(base_delay: float, max_delay: float) -> Callable[[RetryCallState], float]:
    backoff = wait_exponential(multiplier=base_delay, min=base_delay, max=max_delay)

    def _wait(retry_state: RetryCallState) -> float:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        if isinstance(exc, RateLimitedError) and exc.reset_at is not None:
            return min(max(exc.reset_at - time.time(), 0.0), max_delay)
        return backoff(retry_state)

    return _wait


def _log_retry(retry_state: RetryCallState) -> None:
    exc = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "api_call_retry",
        attempt=retry_state.attempt_number,
        error_type=type(exc).__name__ if exc else None,
        status_code=getattr(exc, "status_code", None),
        sleep_s=round(retry_state.next_action.sleep, 3) if retry_state.next_action else None,
    )


async def call_with_backoff(
    fn: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    **kwargs: Any,
) -> T:
    """以指数退避重试瞬时错误，最后一次失败时抛出原始异常"""
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    retrying = AsyncRetrying(
        reraise=True,
        stop=stop_after_attempt(max_attempts),
        wait=_build_wait(base_delay, max_delay),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_retry,
        sleep=sleep,
    )
    async for attempt in retrying:
        with attempt:
            return await fn(*args, **kwargs)
    raise AssertionError("unreachable")  # pragma: no cover
