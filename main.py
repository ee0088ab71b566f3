"""
V2EX 命令行入口

每个子命令对应一个 API 操作，结果以 JSON 输出到 stdout，
限流信息与错误输出到 stderr。
"""
from __future__ import annotations

import asyncio
import json
from typing import Any, Optional

import typer
from rich.console import Console

from core.logging_config import configure_logging
from domain.common.exceptions import ConfigurationError
from domain.v2ex.entity import V2exResult
from infrastructure.external.api_clients import APIError, RateLimitedError, V2exClient


app = typer.Typer(help="V2EX API 命令行客户端", no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)


@app.callback()
def main(
    ctx: typer.Context,
    token: Optional[str] = typer.Option(
        None, "--token", envvar="V2EX_TOKEN", help="Personal Access Token（默认读取 V2EX_TOKEN）"
    ),
    debug: bool = typer.Option(False, "--debug", help="输出请求/响应调试日志"),
) -> None:
    # 在入口处显式配置日志，避免模块导入时的副作用
    configure_logging(debug=True if debug else None)
    ctx.obj = {"token": token, "debug": debug}


def _run(ctx: typer.Context, operation: str, *args: Any, **kwargs: Any) -> None:
    options = ctx.obj or {}

    async def _call() -> V2exResult:
        async with V2exClient(token=options.get("token"), debug=options.get("debug") or None) as client:
            return await getattr(client, operation)(*args, **kwargs)

    try:
        result = asyncio.run(_call())
    except ConfigurationError as exc:
        err_console.print(f"[red]配置错误[/red]: {exc.message}")
        raise typer.Exit(code=2)
    except RateLimitedError as exc:
        err_console.print(f"[red]{exc.error_type}[/red]: {exc} (reset at {exc.reset_at})")
        raise typer.Exit(code=1)
    except APIError as exc:
        err_console.print(f"[red]{exc.error_type}[/red]: {exc}")
        raise typer.Exit(code=1)

    console.print_json(json.dumps(result.data, ensure_ascii=False))
    rate_limit = result.rate_limit
    if not rate_limit.is_empty:
        err_console.print(
            f"rate limit: {rate_limit.remaining}/{rate_limit.limit}, reset at {rate_limit.reset}"
        )


@app.command("notifications")
def notifications(ctx: typer.Context, page: int = typer.Option(1, "--page", "-p", min=1)) -> None:
    """列出提醒"""
    _run(ctx, "list_notifications", page=page)


@app.command("delete-notification")
def delete_notification(ctx: typer.Context, notification_id: int = typer.Argument(...)) -> None:
    """删除一条提醒"""
    _run(ctx, "delete_notification", notification_id)


@app.command("member")
def member(ctx: typer.Context) -> None:
    """当前 token 的会员资料"""
    _run(ctx, "get_member")


@app.command("token")
def token_info(ctx: typer.Context) -> None:
    """查看当前 token"""
    _run(ctx, "get_token")


@app.command("node")
def node(ctx: typer.Context, name: str = typer.Argument(...)) -> None:
    """节点信息"""
    _run(ctx, "get_node", name)


@app.command("node-topics")
def node_topics(
    ctx: typer.Context,
    name: str = typer.Argument(...),
    page: int = typer.Option(1, "--page", "-p", min=1),
) -> None:
    """节点下的主题"""
    _run(ctx, "get_node_topics", name, page=page)


@app.command("topic")
def topic(ctx: typer.Context, topic_id: int = typer.Argument(...)) -> None:
    """主题详情"""
    _run(ctx, "get_topic", topic_id)


@app.command("replies")
def replies(
    ctx: typer.Context,
    topic_id: int = typer.Argument(...),
    page: int = typer.Option(1, "--page", "-p", min=1),
) -> None:
    """主题回复"""
    _run(ctx, "get_topic_replies", topic_id, page=page)


@app.command("hot")
def hot(ctx: typer.Context) -> None:
    """最热主题（无需 token）"""
    _run(ctx, "get_hot_topics")


@app.command("latest")
def latest(ctx: typer.Context) -> None:
    """最新主题（无需 token）"""
    _run(ctx, "get_latest_topics")


if __name__ == "__main__":
    app()
