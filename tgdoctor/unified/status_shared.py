# -*- coding: utf-8 -*-
# unified/status_shared.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional

__all__ = [
    "is_record",
    "as_string",
    "resolve_enabled_configured_account_id",
    "format_match_metadata",
    "append_match_metadata",
]


def is_record(value: Any) -> bool:
    """结构化记录：映射类型即可；None / list / str 都不算。"""
    return isinstance(value, Mapping)


def as_string(value: Any) -> Optional[str]:
    """已是 str 则原样返回，否则 None（不把数字/布尔转成字符串）。"""
    return value if isinstance(value, str) else None


def resolve_enabled_configured_account_id(status: Any) -> Optional[str]:
    """
    诊断闸门：enabled 与 configured 都严格为 True，且 accountId 为非空字符串时返回 accountId。
    "true" / 1 之类的近似值一律不通过。
    """
    if not is_record(status):
        return None
    if status.get("enabled") is not True or status.get("configured") is not True:
        return None
    account_id = as_string(status.get("accountId"))
    return account_id or None


def format_match_metadata(
    match_key: Optional[str] = None,
    match_source: Optional[str] = None,
) -> Optional[str]:
    """命中的群组配置规则描述：'matchKey=<k> matchSource=<s>'（只拼存在的部分）。"""
    parts = []
    if match_key:
        parts.append(f"matchKey={match_key}")
    if match_source:
        parts.append(f"matchSource={match_source}")
    return " ".join(parts) if parts else None


def append_match_metadata(
    message: str,
    *,
    match_key: Optional[str] = None,
    match_source: Optional[str] = None,
) -> str:
    meta = format_match_metadata(match_key, match_source)
    return f"{message} ({meta})" if meta else message
