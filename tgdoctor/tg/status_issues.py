# -*- coding: utf-8 -*-
# tg/status_issues.py
"""
Telegram 渠道的 doctor 诊断：把每个账号的原始状态快照（配置开关、群成员审计、
运行时连接状态、Bot API 探针结果）归纳为有序的 ChannelStatusIssue 列表。

纯函数：不做 I/O、不持有状态、不修改入参；坏字段只会让对应检查不触发，从不抛错。
"""
from __future__ import annotations

from typing import Any, Iterable, List, Optional

from tg.status_readers import (
    read_group_membership_audit,
    read_probe_summary,
    read_telegram_account_status,
)
from tg.status_signals import (
    SignalPatterns,
    classify_probe_failure,
    format_probe_issue_label,
    format_status,
    is_dns_resolution_failure,
)
from typess.status_types import (
    ChannelStatusIssue,
    GroupMembershipAuditSummary,
    IssueKind,
    ProbeFailureKind,
    ProbeSummary,
    TelegramAccountStatus,
)
from unified.status_shared import append_match_metadata, resolve_enabled_configured_account_id

__all__ = ["TELEGRAM_CHANNEL", "collect_telegram_status_issues"]

TELEGRAM_CHANNEL = "telegram"

_API_HOST = "api.telegram.org"
_PROXY_HINT = "channels.telegram.proxy / OPENCLAW_TELEGRAM_PROXY"

# ---- 修复建议文案 ----
FIX_PRIVACY_MODE = "In BotFather run /setprivacy → Disable for this bot (then restart the gateway)."
FIX_WILDCARD_GROUPS = (
    "Add explicit numeric group ids under channels.telegram.groups (or per-account groups) to enable probing."
)
FIX_UNRESOLVED_GROUPS = (
    "Use numeric chat IDs (e.g. -100...) as keys in channels.telegram.groups for requireMention=false groups."
)
FIX_GROUP_UNREACHABLE = "Invite the bot to the group, then DM the bot once (/start) and restart the gateway."
FIX_RUNTIME_DNS = (
    f"Restore DNS/network access from this host to {_API_HOST} (or set {_PROXY_HINT}) and restart the gateway."
)
FIX_RUNTIME_GENERIC = "Check Telegram API connectivity and token validity, then restart the gateway."
FIX_PROBE_AUTH = "Update channels.telegram.* token from BotFather for this bot and restart the gateway."
FIX_PROBE_DNS = f"Restore DNS/network access from this host to {_API_HOST} (or set {_PROXY_HINT})."
FIX_PROBE_NETWORK = f"Check gateway network/DNS egress to {_API_HOST} and retry after connectivity is restored."
FIX_PROBE_GENERIC = (
    "Verify the bot token and Telegram API access from the gateway host; restart gateway after any changes."
)


def _issue(account_id: str, kind: IssueKind, message: str, fix: str) -> ChannelStatusIssue:
    return ChannelStatusIssue(
        channel=TELEGRAM_CHANNEL,
        account_id=account_id,
        kind=kind,
        message=message,
        fix=fix,
    )


# ---------- 单项检查（相互独立，按顺序追加） ----------
def _check_unmentioned_groups(account_id: str, account: TelegramAccountStatus) -> List[ChannelStatusIssue]:
    if not account.allow_unmentioned_groups:
        return []
    return [_issue(
        account_id,
        IssueKind.CONFIG,
        "Config allows unmentioned group messages (requireMention=false). "
        "Telegram Bot API privacy mode will block most group messages unless disabled.",
        FIX_PRIVACY_MODE,
    )]


def _check_audit_config(account_id: str, audit: GroupMembershipAuditSummary) -> List[ChannelStatusIssue]:
    issues: List[ChannelStatusIssue] = []
    if audit.has_wildcard_unmentioned_groups is True:
        issues.append(_issue(
            account_id,
            IssueKind.CONFIG,
            'Telegram groups config uses "*" with requireMention=false; '
            "membership probing is not possible without explicit group IDs.",
            FIX_WILDCARD_GROUPS,
        ))
    unresolved = audit.unresolved_groups
    if unresolved is not None and unresolved > 0:
        issues.append(_issue(
            account_id,
            IssueKind.CONFIG,
            f"Some configured Telegram groups are not numeric IDs (unresolvedGroups={format_status(unresolved)}). "
            "Membership probe can only check numeric group IDs.",
            FIX_UNRESOLVED_GROUPS,
        ))
    return issues


def _check_group_reachability(account_id: str, audit: GroupMembershipAuditSummary) -> List[ChannelStatusIssue]:
    """每个 ok 不严格为 True 的群组条目各出一条 runtime 问题，保持条目顺序，不去重。"""
    issues: List[ChannelStatusIssue] = []
    for group in audit.groups or ():
        if group.ok is True:
            continue
        status = f" status={group.status}" if group.status else ""
        err = f": {group.error}" if group.error else ""
        message = append_match_metadata(
            f"Group {group.chat_id} not reachable by bot.{status}{err}",
            match_key=group.match_key,
            match_source=group.match_source,
        )
        issues.append(_issue(account_id, IssueKind.RUNTIME, message, FIX_GROUP_UNREACHABLE))
    return issues


def _check_runtime_connection(
    account_id: str,
    account: TelegramAccountStatus,
    patterns: Optional[SignalPatterns],
) -> List[ChannelStatusIssue]:
    if not account.running or account.connected:
        return []
    last_error = account.last_error
    fix = FIX_RUNTIME_DNS if is_dns_resolution_failure(last_error, patterns=patterns) else FIX_RUNTIME_GENERIC
    message = f"Telegram runtime disconnected: {last_error}" if last_error else "Telegram runtime disconnected."
    return [_issue(account_id, IssueKind.RUNTIME, message, fix)]


def _check_probe(
    account_id: str,
    probe: Optional[ProbeSummary],
    patterns: Optional[SignalPatterns],
) -> List[ChannelStatusIssue]:
    """探针失败三分支互斥：AUTH → NETWORK → GENERIC，至多一条。"""
    failure = classify_probe_failure(probe, patterns=patterns)
    if failure is None:
        return []

    if failure is ProbeFailureKind.AUTH:
        return [_issue(account_id, IssueKind.AUTH, format_probe_issue_label(probe, "auth"), FIX_PROBE_AUTH)]

    label = format_probe_issue_label(probe, "runtime")
    if failure is ProbeFailureKind.NETWORK:
        fix = FIX_PROBE_DNS if is_dns_resolution_failure(probe.error, patterns=patterns) else FIX_PROBE_NETWORK
        return [_issue(account_id, IssueKind.RUNTIME, f"Telegram bot API probe is not reachable: {label}", fix)]

    return [_issue(account_id, IssueKind.RUNTIME, f"Telegram bot probe failed: {label}", FIX_PROBE_GENERIC)]


def _collect_account_issues(entry: Any, patterns: Optional[SignalPatterns]) -> List[ChannelStatusIssue]:
    account = read_telegram_account_status(entry)
    if account is None:
        return []
    account_id = resolve_enabled_configured_account_id(entry)
    if not account_id:
        return []

    audit = read_group_membership_audit(account.audit)
    issues: List[ChannelStatusIssue] = []
    issues.extend(_check_unmentioned_groups(account_id, account))
    issues.extend(_check_audit_config(account_id, audit))
    issues.extend(_check_group_reachability(account_id, audit))
    issues.extend(_check_runtime_connection(account_id, account, patterns))
    issues.extend(_check_probe(account_id, read_probe_summary(account.probe), patterns))
    return issues


def collect_telegram_status_issues(
    accounts: Iterable[Any],
    *,
    patterns: Optional[SignalPatterns] = None,
) -> List[ChannelStatusIssue]:
    """
    对每个账号快照按固定顺序跑检查并汇总：
    账号顺序 = 输入顺序；账号内顺序 = 检查顺序。
    patterns 可覆盖默认的错误特征表（按部署调优）。
    """
    issues: List[ChannelStatusIssue] = []
    for entry in accounts or ():
        issues.extend(_collect_account_issues(entry, patterns))
    return issues
