# -*- coding: utf-8 -*-
# tg/status_signals.py
from __future__ import annotations

import math
from typing import Iterable, Optional, Sequence, Tuple, Union

from typess.status_types import ErrorSignal, ProbeFailureKind, ProbeSummary

__all__ = [
    "ERROR_SIGNAL_PATTERNS",
    "AUTH_STATUS_CODES",
    "patterns_for",
    "is_auth_error",
    "is_network_error",
    "is_dns_resolution_failure",
    "format_status",
    "format_probe_issue_label",
    "classify_probe_failure",
]

Number = Union[int, float]
SignalPatterns = Sequence[Tuple[str, ErrorSignal]]

AUTH_STATUS_CODES: Tuple[int, ...] = (401, 403)

# 错误文本特征表：(小写子串, 类别)，按顺序匹配。
# 同一子串可同时属于 NETWORK 与 DNS（DNS 只用于挑选更具体的修复建议）。
# 注意：NETWORK 末尾的 "dns" / "network" / "timeout" 过宽，可能误判无关文本；
# 这是已知的启发式局限，保持原样，不在这里收窄。
ERROR_SIGNAL_PATTERNS: Tuple[Tuple[str, ErrorSignal], ...] = (
    # ── 鉴权
    ("unauthorized", ErrorSignal.AUTH),
    ("invalid token", ErrorSignal.AUTH),
    ("not authorized", ErrorSignal.AUTH),
    ("bad request", ErrorSignal.AUTH),
    # ── 连通性
    ("econnrefused", ErrorSignal.NETWORK),
    ("econnreset", ErrorSignal.NETWORK),
    ("enotfound", ErrorSignal.NETWORK),
    ("eai_again", ErrorSignal.NETWORK),
    ("etimedout", ErrorSignal.NETWORK),
    ("net::err", ErrorSignal.NETWORK),
    ("getaddrinfo", ErrorSignal.NETWORK),
    ("network is down", ErrorSignal.NETWORK),
    ("socket hang up", ErrorSignal.NETWORK),
    ("fetch failed", ErrorSignal.NETWORK),
    ("dns", ErrorSignal.NETWORK),
    ("network", ErrorSignal.NETWORK),
    ("timeout", ErrorSignal.NETWORK),
    # ── 域名解析
    ("could not resolve host", ErrorSignal.DNS),
    ("enotfound", ErrorSignal.DNS),
    ("eai_again", ErrorSignal.DNS),
    ("getaddrinfo", ErrorSignal.DNS),
    ("dns", ErrorSignal.DNS),
    ("name or service not known", ErrorSignal.DNS),
    ("temporarily unresolvable", ErrorSignal.DNS),
)


def patterns_for(signal: ErrorSignal, patterns: Optional[SignalPatterns] = None) -> Tuple[str, ...]:
    """取某一类别的子串（保持表内顺序）。"""
    table = ERROR_SIGNAL_PATTERNS if patterns is None else patterns
    return tuple(p for p, s in table if s == signal)


def _matches_any(normalized: str, needles: Iterable[str]) -> bool:
    return any(n in normalized for n in needles)


def is_auth_error(
    error_text: Optional[str],
    status: Optional[Number],
    *,
    patterns: Optional[SignalPatterns] = None,
) -> bool:
    """401/403 直接判定为鉴权失败（与文本无关）；否则看错误文本是否含鉴权特征。"""
    if status in AUTH_STATUS_CODES:
        return True
    if not error_text:
        return False
    return _matches_any(error_text.lower(), patterns_for(ErrorSignal.AUTH, patterns))


def is_network_error(
    error_text: Optional[str],
    status: Optional[Number],
    *,
    patterns: Optional[SignalPatterns] = None,
) -> bool:
    """
    连通性失败判定：
    - 有状态码 → 说明拿到了应用层响应，一律 False
    - 状态码与错误文本都缺失 → 视为连接层失败，True
    - 否则按 NETWORK 特征子串匹配
    """
    if status is not None:
        return False
    if not error_text:
        return True
    return _matches_any(error_text.lower(), patterns_for(ErrorSignal.NETWORK, patterns))


def is_dns_resolution_failure(
    error_text: Optional[str],
    *,
    patterns: Optional[SignalPatterns] = None,
) -> bool:
    if not error_text:
        return False
    return _matches_any(error_text.lower(), patterns_for(ErrorSignal.DNS, patterns))


def format_status(status: Number) -> str:
    """401.0 → '401'；非整数原样。"""
    if isinstance(status, float) and math.isfinite(status) and status.is_integer():
        return str(int(status))
    return str(status)


def format_probe_issue_label(summary: ProbeSummary, kind_label: str) -> str:
    """
    探针失败文案：
    - kind_label == "auth" → 'Token validation failed (HTTP 401): <error>'
    - 其它               → '<error> (HTTP 502)' / 'Probe failed (HTTP 502)'
    """
    suffix = f" (HTTP {format_status(summary.status)})" if summary.status is not None else ""
    is_auth = kind_label == "auth"
    if summary.error:
        return f"Token validation failed{suffix}: {summary.error}" if is_auth else f"{summary.error}{suffix}"
    return f"Token validation failed{suffix}" if is_auth else f"Probe failed{suffix}"


def classify_probe_failure(
    probe: Optional[ProbeSummary],
    *,
    patterns: Optional[SignalPatterns] = None,
) -> Optional[ProbeFailureKind]:
    """
    探针失败分支（互斥）：只在 probe.ok 严格为 False 时判定，返回第一个命中的分支。
    未失败/无探针 → None。
    """
    if probe is None or probe.ok is not False:
        return None
    chain = (
        (ProbeFailureKind.AUTH, is_auth_error),
        (ProbeFailureKind.NETWORK, is_network_error),
    )
    for kind, predicate in chain:
        if predicate(probe.error, probe.status, patterns=patterns):
            return kind
    return ProbeFailureKind.GENERIC
