# unified/trace_context.py
# -*- coding: utf-8 -*-
"""
日志上下文（contextvars）
- 一个 ContextVar 存整份只读快照，写入即换新 dict；asyncio 任务各自继承、互不串扰
- 只接受 LOG_CONTEXT_KEYS 里的标准键；accountId / account / op 写入时归一
"""
from __future__ import annotations

import contextlib
import uuid
from contextvars import ContextVar, Token
from typing import Any, Dict, Iterator, Mapping

LOG_CONTEXT_KEYS = ("trace_id", "channel", "account_id", "operation", "phase", "error")

_KEY_ALIASES: Dict[str, str] = {
    "accountId": "account_id",
    "account": "account_id",
    "op": "operation",
    "trace": "trace_id",
}

_CURRENT: ContextVar[Mapping[str, Any]] = ContextVar("tgdoctor_log_ctx", default={})


def _canonical(pairs: Mapping[str, Any]) -> Dict[str, Any]:
    """别名转标准键；同一字段别名与标准键同时给出时以标准键为准。"""
    out: Dict[str, Any] = {}
    for key, value in pairs.items():
        std = _KEY_ALIASES.get(key, key)
        if std not in LOG_CONTEXT_KEYS:
            continue
        if std in out and key != std:
            continue
        out[std] = value
    return out


def generate_trace_id(short: int | None = 8) -> str:
    """短 trace id（4~32 位 hex）；short 为 None/0 时返回完整 32 位。"""
    h = uuid.uuid4().hex
    if not short:
        return h
    return h[: max(4, min(int(short), 32))]


def get_log_context() -> Dict[str, Any]:
    return {k: v for k, v in _CURRENT.get().items() if v is not None}


def set_log_context(ctx: Mapping[str, Any]) -> Token:
    """合并写入当前上下文，返回的 token 可交给 reset_log_context 复原。"""
    merged = dict(_CURRENT.get())
    merged.update(_canonical(ctx or {}))
    return _CURRENT.set(merged)


def reset_log_context(token: Token) -> None:
    _CURRENT.reset(token)


@contextlib.contextmanager
def use_log_context(**pairs: Any) -> Iterator[Dict[str, Any]]:
    """
    with use_log_context(channel="telegram", accountId="default"):
        ...
    值为 None 的键会遮住外层同名字段；离开 with 块后整体复原。
    """
    token = set_log_context(pairs)
    try:
        yield get_log_context()
    finally:
        reset_log_context(token)
