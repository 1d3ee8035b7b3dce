# -*- coding: utf-8 -*-
# core/api_logging.py
from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional, TypeVar

from core.telethon_errors import format_error_message
from unified.logger import log_error

T = TypeVar("T")

TelegramApiLogger = Callable[[str], None]
# runtime 可选暴露的状态回调：set_telegram_api_error_status(operation=..., err=...)
REPORT_STATUS_CALLBACK = "set_telegram_api_error_status"


def _fallback_logger(message: str) -> None:
    log_error(message, extra={"channel": "telegram", "phase": "api"})


def resolve_telegram_api_logger(runtime: Any = None, logger: Optional[TelegramApiLogger] = None) -> TelegramApiLogger:
    """优先级：显式 logger → runtime.error → 统一日志。"""
    if logger is not None:
        return logger
    err = getattr(runtime, "error", None)
    if callable(err):
        return err
    return _fallback_logger


def resolve_telegram_api_error_status(runtime: Any = None) -> Optional[Callable[..., Any]]:
    handler = getattr(runtime, REPORT_STATUS_CALLBACK, None)
    return handler if callable(handler) else None


async def with_telegram_api_error_logging(
    operation: str,
    fn: Callable[[], Awaitable[T]],
    *,
    runtime: Any = None,
    logger: Optional[TelegramApiLogger] = None,
    should_log: Optional[Callable[[BaseException], bool]] = None,
) -> T:
    """
    包一层 Telegram API 调用：
    - 失败时先回报 runtime 的错误状态（若有），再按 should_log 决定是否记一条
      'telegram <operation> failed: <err>'
    - 原异常照常抛出，由调用方决定如何收尾
    """
    try:
        return await fn()
    except Exception as err:
        report = resolve_telegram_api_error_status(runtime)
        if report is not None:
            report(operation=operation, err=err)
        if should_log is None or should_log(err):
            log = resolve_telegram_api_logger(runtime, logger)
            log(f"telegram {operation} failed: {format_error_message(err)}")
        raise
