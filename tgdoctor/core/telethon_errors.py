# -*- coding: utf-8 -*-
# core/telethon_errors.py
"""
Telethon / socket 异常 → 探针结果 {ok: False, status, error}

error 文本刻意贴近 Bot API 网关的写法（'Unauthorized: ...'、'getaddrinfo ENOTFOUND ...'、
'ETIMEDOUT'），这样 tg/status_signals 里的模式表对两种来源一视同仁。
"""
from __future__ import annotations

import asyncio
import errno
import socket
from typing import Any, Dict, Optional, Tuple, Type

from telethon import errors as te


def _telethon_error(name: str) -> Optional[Type[BaseException]]:
    # 不同 telethon 版本的 rpcerrorlist 不完全一致，缺的类直接跳过
    cls = getattr(te, name, None)
    return cls if isinstance(cls, type) and issubclass(cls, BaseException) else None


# 会话 / token 已失效：即使没有错误码也按 401 处理
AUTH_EXPIRED_ERRORS: Tuple[Type[BaseException], ...] = tuple(
    cls for cls in map(_telethon_error, (
        "UnauthorizedError",
        "AuthKeyUnregisteredError",
        "AuthKeyDuplicatedError",
        "SessionRevokedError",
        "SessionExpiredError",
        "AccessTokenInvalidError",
        "AccessTokenExpiredError",
    )) if cls is not None
)

# Bot API 风格的 HTTP 标题：让探针错误文本与 HTTP 网关的返回保持一致
_HTTP_TITLES: Dict[int, str] = {
    303: "See Other",
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    406: "Not Acceptable",
    420: "Flood",
    500: "Internal Server Error",
}

_TIMEOUTS = (asyncio.TimeoutError, TimeoutError)


def unwrap_error(e: BaseException) -> BaseException:
    """沿 ExceptionGroup.exceptions[0] / __cause__ / __context__ 走到最里层的异常。"""
    seen = set()
    current = e
    while id(current) not in seen:
        seen.add(id(current))
        group = getattr(current, "exceptions", None)
        if isinstance(group, (list, tuple)) and group:
            nxt = group[0]
        else:
            nxt = current.__cause__ or current.__context__
        if nxt is None:
            break
        current = nxt
    return current


def format_error_message(e: BaseException) -> str:
    text = str(e).strip()
    return text or e.__class__.__name__


def _rpc_code(e: BaseException) -> Optional[int]:
    # RPCError(request, message, code=None) 会把实例 code 置 None，回退到类属性
    code = getattr(e, "code", None) or getattr(type(e), "code", None)
    if isinstance(code, int) and not isinstance(code, bool):
        return code
    return None


def _oserror_text(e: OSError) -> str:
    if isinstance(e, socket.gaierror):
        # 与 Node 的 'getaddrinfo ENOTFOUND host' 同形，DNS 分类器可直接识别
        code = "EAI_AGAIN" if e.errno == getattr(socket, "EAI_AGAIN", None) else "ENOTFOUND"
        return f"getaddrinfo {code}: {format_error_message(e)}"
    name = errno.errorcode.get(e.errno) if isinstance(e.errno, int) else None
    if name:
        return f"{name}: {format_error_message(e)}"
    return f"{e.__class__.__name__}: {format_error_message(e)}"


def _probe_leaf(e: BaseException) -> BaseException:
    # 外层已可直接分类时不解包：wait_for 超时会把 CancelledError 挂在 __cause__ 上
    if isinstance(e, (te.RPCError, OSError) + _TIMEOUTS):
        return e
    leaf = unwrap_error(e)
    return leaf if isinstance(leaf, Exception) else e


def probe_from_exception(e: BaseException) -> Dict[str, Any]:
    """
    把探针过程中的异常转换为探针结果 {ok: False, status, error}：
    - Telethon RPCError → status=错误码，error='<HTTP 标题>: <RPC 错误描述>'
    - 鉴权类错误但缺错误码 → 401
    - 超时 → ETIMEDOUT（无状态码，交给网络分类器）
    - DNS / socket 错误 → getaddrinfo / errno 符号前缀
    """
    e0 = _probe_leaf(e)

    if isinstance(e0, te.RPCError):
        code = _rpc_code(e0)
        if code is None and isinstance(e0, AUTH_EXPIRED_ERRORS):
            code = 401
        # 生成的 rpcerrorlist 子类不会写实例 message（类属性只剩 BAD_REQUEST 之类），用 str(e) 保留描述
        rpc_message = format_error_message(e0)
        title = _HTTP_TITLES.get(code) if code is not None else None
        return {
            "ok": False,
            "status": code,
            "error": f"{title}: {rpc_message}" if title else str(rpc_message),
        }

    if isinstance(e0, _TIMEOUTS):
        detail = format_error_message(e0)
        return {
            "ok": False,
            "status": None,
            "error": "ETIMEDOUT" if detail == e0.__class__.__name__ else f"ETIMEDOUT: {detail}",
        }

    if isinstance(e0, OSError):
        return {"ok": False, "status": None, "error": _oserror_text(e0)}

    return {
        "ok": False,
        "status": None,
        "error": f"{e0.__class__.__name__}: {format_error_message(e0)}",
    }
