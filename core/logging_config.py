"""
Structlog 日志配置模块

客户端日志统一走 structlog；标准库 logging（httpx 等）经 ProcessorFormatter
桥接到同一条处理链。日志输出到 stderr，stdout 留给 CLI 的 JSON 结果。
"""
import logging
import json
import sys
from typing import Any, List, Optional, TextIO

import structlog
from structlog.contextvars import merge_contextvars
from structlog.dev import ConsoleRenderer
from structlog.processors import JSONRenderer, TimeStamper, add_log_level
from structlog.stdlib import ProcessorFormatter

from core.config import get_settings


SENSITIVE_KEYS = {"authorization", "token", "auth_token"}
REDACTED = "***"


def redact_credentials(logger: Any, method_name: str, event_dict: dict) -> dict:
    """把事件里的 token / Authorization 值替换掉，嵌套一层的 headers 也处理。"""
    for key, value in list(event_dict.items()):
        if key.lower() in SENSITIVE_KEYS and value:
            event_dict[key] = REDACTED
        elif isinstance(value, dict):
            event_dict[key] = {
                k: (REDACTED if str(k).lower() in SENSITIVE_KEYS and v else v)
                for k, v in value.items()
            }
    return event_dict


def _json_dumps(obj, default=None, **kwargs):
    # structlog 会传入 default/sort_keys 等参数
    return json.dumps(obj, ensure_ascii=False, default=default, **kwargs)


def _processor_chain() -> List[Any]:
    return [
        merge_contextvars,
        add_log_level,
        TimeStamper(fmt="iso"),
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_credentials,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(debug: Optional[bool] = None, stream: Optional[TextIO] = None) -> None:
    """配置 structlog（debug 时用控制台渲染并输出 DEBUG，否则 JSON + WARNING）。"""
    if debug is None:
        debug = get_settings().debug
    chain = _processor_chain()

    structlog.configure(
        processors=[*chain, ProcessorFormatter.wrap_for_formatter],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    renderer = ConsoleRenderer(colors=True) if debug else JSONRenderer(serializer=_json_dumps)
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            foreign_pre_chain=chain,
            processors=[ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.DEBUG if debug else logging.WARNING)
    # httpx 自身的 INFO 请求日志与客户端日志重复
    logging.getLogger("httpx").setLevel(logging.WARNING)


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """获取 structlog logger 实例。"""
    return structlog.get_logger(name)
