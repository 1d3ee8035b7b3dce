# -*- coding: utf-8 -*-
# tg/status_readers.py
from __future__ import annotations

import math
from typing import Any, List, Optional, Union

from typess.status_types import (
    GroupAuditEntry,
    GroupMembershipAuditSummary,
    ProbeSummary,
    TelegramAccountStatus,
)
from unified.status_shared import as_string, is_record

__all__ = [
    "read_telegram_account_status",
    "read_group_audit_entry",
    "read_group_membership_audit",
    "read_probe_summary",
]


# ---------- 小工具 ----------
def _finite_number(value: Any) -> Optional[Union[int, float]]:
    # bool 是 int 的子类，需要显式排除
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    return value


def _strict_bool(value: Any) -> Optional[bool]:
    return value if isinstance(value, bool) else None


def read_telegram_account_status(value: Any) -> Optional[TelegramAccountStatus]:
    """快照整体不是映射 → None；其余字段逐个独立读取，坏字段只影响自己。"""
    if not is_record(value):
        return None
    return TelegramAccountStatus(
        account_id=as_string(value.get("accountId")),
        allow_unmentioned_groups=value.get("allowUnmentionedGroups") is True,
        audit=value.get("audit"),
        probe=value.get("probe"),
        running=value.get("running") is True,
        connected=value.get("connected") is True,
        last_error=as_string(value.get("lastError")),
    )


def read_group_audit_entry(entry: Any) -> Optional[GroupAuditEntry]:
    """没有非空 chatId 的条目直接丢弃；其余字段尽力读取。"""
    if not is_record(entry):
        return None
    chat_id = as_string(entry.get("chatId"))
    if not chat_id:
        return None
    return GroupAuditEntry(
        chat_id=chat_id,
        ok=_strict_bool(entry.get("ok")),
        status=as_string(entry.get("status")),
        error=as_string(entry.get("error")),
        match_key=as_string(entry.get("matchKey")),
        match_source=as_string(entry.get("matchSource")),
    )


def read_group_membership_audit(value: Any) -> GroupMembershipAuditSummary:
    if not is_record(value):
        return GroupMembershipAuditSummary()
    groups_raw = value.get("groups")
    groups = None
    if isinstance(groups_raw, (list, tuple)):
        parsed: List[GroupAuditEntry] = []
        for raw in groups_raw:
            entry = read_group_audit_entry(raw)
            if entry is not None:
                parsed.append(entry)
        groups = tuple(parsed)
    return GroupMembershipAuditSummary(
        unresolved_groups=_finite_number(value.get("unresolvedGroups")),
        has_wildcard_unmentioned_groups=_strict_bool(value.get("hasWildcardUnmentionedGroups")),
        groups=groups,
    )


def read_probe_summary(value: Any) -> Optional[ProbeSummary]:
    if not is_record(value):
        return None
    return ProbeSummary(
        ok=_strict_bool(value.get("ok")),
        status=_finite_number(value.get("status")),
        error=as_string(value.get("error")),
    )
