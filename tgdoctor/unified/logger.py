# unified/logger.py
# -*- coding: utf-8 -*-
from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict, List, Mapping, Optional, Union

from unified.config import DATE_FORMAT, LOG_DIR, LOG_FILE, LOG_FORMAT, LOG_PATH, get_bool, get_config
from unified.trace_context import get_log_context

LOGGER_NAME = "tgdoctor"

Level = Union[int, str, None]

_state: Dict[str, Any] = {"fingerprint": None}


# ========================= 等级 =========================
def parse_level(value: Level, fallback: int = logging.INFO) -> int:
    """'debug' / 'WARN' / 10 → logging 等级；无法识别时回退 fallback。"""
    if value is None or value == "":
        return fallback
    if isinstance(value, int):
        return value
    name = str(value).strip().upper()
    if name == "WARN":
        name = "WARNING"
    resolved = logging.getLevelName(name)
    return resolved if isinstance(resolved, int) else fallback


def _default_levels(level: Level) -> Dict[str, int]:
    # 显式 level 覆盖一切；否则 LOG_LEVEL_CONSOLE / LOG_LEVEL_FILE 继承 LOG_LEVEL
    if level is not None:
        lv = parse_level(level)
        return {"console": lv, "file": lv}
    base = parse_level(get_config("LOG_LEVEL"))
    return {
        "console": parse_level(get_config("LOG_LEVEL_CONSOLE"), base),
        "file": parse_level(get_config("LOG_LEVEL_FILE"), base),
    }


# ========================= 初始化 =========================
def _open_file_handler() -> logging.Handler:
    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        return logging.FileHandler(LOG_PATH, encoding="utf-8")
    except OSError:
        # 日志目录不可写：退到当前目录
        return logging.FileHandler(os.path.join(".", LOG_FILE), encoding="utf-8")


def init_logger(to_console: bool = True, level: Level = None) -> logging.Logger:
    """
    幂等初始化 tgdoctor logger：
    - 参数组合不变则直接返回，不重复挂 handler
    - 不碰 root logger，宿主进程自己的日志配置不受影响
    - 控制台走 stderr，CLI 的 stdout 只留给诊断结果
    """
    levels = _default_levels(level)
    fingerprint = (to_console, levels["console"], levels["file"], LOG_PATH)
    logger = logging.getLogger(LOGGER_NAME)
    if _state["fingerprint"] == fingerprint:
        return logger

    _detach_handlers(logger)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    file_handler = _open_file_handler()
    file_handler.setLevel(levels["file"])
    handlers: List[logging.Handler] = [file_handler]
    if to_console:
        console = logging.StreamHandler()
        console.setLevel(levels["console"])
        handlers.append(console)

    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.setLevel(min(levels.values()))

    _state["fingerprint"] = fingerprint
    return logger


def _detach_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()


def reset_logger() -> None:
    """摘掉已挂的 handler，下次写日志时重新初始化。"""
    _detach_handlers(logging.getLogger(LOGGER_NAME))
    _state["fingerprint"] = None


def get_logger() -> logging.Logger:
    if _state["fingerprint"] is None:
        return init_logger()
    return logging.getLogger(LOGGER_NAME)


# ========================= 上下文渲染 =========================
# 键名展示（LOG_ZH=1 时使用中文键名）
_ZH_KEYS: Dict[str, str] = {
    "trace_id": "追踪",
    "channel": "渠道",
    "account_id": "账号",
    "operation": "操作",
    "phase": "阶段",
    "channels": "渠道数",
    "accounts": "账号数",
    "issues": "问题数",
    "kind": "类别",
    "status": "状态",
    "error": "错误",
    "error_type": "错误类型",
}

_EXTRA_ALIASES: Dict[str, str] = {
    "accountId": "account_id",
    "account": "account_id",
    "op": "operation",
}

_MAX_ERROR_TEXT = 500


def _collect_context(extra: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    ctx = get_log_context()
    for key, value in (extra or {}).items():
        ctx[_EXTRA_ALIASES.get(key, key)] = value
    if ctx.get("error") is not None:
        ctx["error"] = str(ctx["error"])[:_MAX_ERROR_TEXT]
    return {k: v for k, v in ctx.items() if v is not None}


def render_context(ctx: Mapping[str, Any]) -> str:
    zh = get_bool("LOG_ZH", True)
    return " ".join(f"{_ZH_KEYS.get(k, k) if zh else k}={v}" for k, v in ctx.items())


def _compose(msg: Any, ctx: Dict[str, Any]) -> str:
    # pydantic 模型 / dict 作为消息时按 JSON 展开
    if hasattr(msg, "model_dump"):
        msg = msg.model_dump(mode="json", by_alias=True)
    if get_bool("LOG_JSON"):
        payload: Dict[str, Any] = {"ctx": ctx}
        if isinstance(msg, dict):
            payload.update(message="", data=msg)
        else:
            payload["message"] = str(msg)
        return json.dumps(payload, ensure_ascii=False, default=str)
    text = json.dumps(msg, ensure_ascii=False, default=str) if isinstance(msg, dict) else str(msg)
    tail = render_context(ctx)
    return f"{text} | {tail}" if tail else text


# ========================= 输出 API =========================
def _emit(level: int, msg: Any, extra: Optional[Mapping[str, Any]] = None, exc: Optional[BaseException] = None):
    logger = get_logger()
    if not logger.isEnabledFor(level):
        return
    ctx = _collect_context(extra)
    exc_info = (type(exc), exc, exc.__traceback__) if exc is not None else None
    logger.log(level, _compose(msg, ctx), exc_info=exc_info, extra={"ctx": ctx})


def log_debug(msg: Any, extra: Optional[Mapping[str, Any]] = None):
    _emit(logging.DEBUG, msg, extra)


def log_info(msg: Any, extra: Optional[Mapping[str, Any]] = None):
    _emit(logging.INFO, msg, extra)


def log_warning(msg: Any, extra: Optional[Mapping[str, Any]] = None):
    _emit(logging.WARNING, msg, extra)


def log_error(msg: Any, extra: Optional[Mapping[str, Any]] = None):
    _emit(logging.ERROR, msg, extra)


def log_exception(msg: str, exc: Optional[BaseException] = None, extra: Optional[Mapping[str, Any]] = None):
    """ERROR 级别 + 堆栈；exc 的类型与文本同时写进上下文。"""
    ext = dict(extra or {})
    if exc is not None:
        ext.setdefault("error_type", type(exc).__name__)
        ext.setdefault("error", str(exc))
    _emit(logging.ERROR, msg, ext, exc)
