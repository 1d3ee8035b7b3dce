# -*- coding: utf-8 -*-
# handlers/registry.py
from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Tuple, Union

from tg.status_issues import TELEGRAM_CHANNEL, collect_telegram_status_issues
from typess.status_types import ChannelStatusIssue
from unified.logger import log_debug, log_exception, log_warning
from unified.trace_context import generate_trace_id, use_log_context

StatusIssueCollector = Callable[[Sequence[Any]], List[ChannelStatusIssue]]
SnapshotsByChannel = Union[Mapping, Iterable[Tuple[str, Sequence[Any]]]]

_collectors: Dict[str, StatusIssueCollector] = {}


def register_status_issue_collector(channel: str, collector: StatusIssueCollector) -> None:
    """登记渠道诊断器；同名重复登记以最后一次为准。"""
    key = str(channel or "").strip().lower()
    if not key:
        raise ValueError("channel id must be a non-empty string")
    if key in _collectors and _collectors[key] is not collector:
        log_warning("handlers/registry: 渠道诊断器被覆盖", extra={"channel": key})
    _collectors[key] = collector


def unregister_status_issue_collector(channel: str) -> None:
    _collectors.pop(str(channel or "").strip().lower(), None)


def get_status_issue_collector(channel: str) -> Optional[StatusIssueCollector]:
    return _collectors.get(str(channel or "").strip().lower())


def registered_channels() -> List[str]:
    return list(_collectors.keys())


def collect_status_issues(snapshots_by_channel: SnapshotsByChannel) -> List[ChannelStatusIssue]:
    """
    doctor 聚合入口：按输入顺序逐渠道调用各自的诊断器并拼接结果。
    - 未登记的渠道：记一条 warning 后跳过
    - 单个诊断器异常：记录后该渠道不出结果，不影响其它渠道
    """
    items = snapshots_by_channel.items() if isinstance(snapshots_by_channel, Mapping) else snapshots_by_channel
    issues: List[ChannelStatusIssue] = []
    with use_log_context(trace_id=generate_trace_id(), phase="doctor"):
        for channel, snapshots in items:
            collector = get_status_issue_collector(channel)
            if collector is None:
                log_warning("handlers/registry: 未登记的渠道，跳过", extra={"channel": channel})
                continue
            if not isinstance(snapshots, (list, tuple)):
                log_warning("handlers/registry: 渠道快照不是列表，跳过", extra={"channel": channel})
                continue
            accounts = list(snapshots)
            try:
                found = collector(accounts)
            except Exception as e:
                log_exception("handlers/registry: 渠道诊断失败", exc=e, extra={"channel": channel})
                continue
            log_debug(
                "✅ 渠道诊断完成",
                extra={"channel": channel, "accounts": len(accounts), "issues": len(found)},
            )
            issues.extend(found)
    return issues


register_status_issue_collector(TELEGRAM_CHANNEL, collect_telegram_status_issues)
