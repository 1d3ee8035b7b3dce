# typess/status_types.py
# -*- coding: utf-8 -*-
"""
渠道状态诊断相关的枚举与数据结构
- IssueKind：问题类别（config / runtime / auth），只影响下游分组与展示
- ChannelStatusIssue：诊断输出（pydantic 模型，序列化为 camelCase 的 accountId）
- TelegramAccountStatus / GroupMembershipAuditSummary / GroupAuditEntry / ProbeSummary：
  读取器从不可信快照收窄出来的只读视图
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

__all__ = [
    "IssueKind",
    "ErrorSignal",
    "ProbeFailureKind",
    "ChannelStatusIssue",
    "GroupAuditEntry",
    "GroupMembershipAuditSummary",
    "ProbeSummary",
    "TelegramAccountStatus",
]

Number = Union[int, float]


class IssueKind(str, Enum):
    CONFIG = "config"
    RUNTIME = "runtime"
    AUTH = "auth"


class ErrorSignal(str, Enum):
    """错误文本特征类别（classifier 的模式表按此分组）"""
    AUTH = "auth"
    NETWORK = "network"
    DNS = "dns"


class ProbeFailureKind(str, Enum):
    """探针失败分支：按 AUTH → NETWORK → GENERIC 顺序取第一个命中"""
    AUTH = "auth"
    NETWORK = "network"
    GENERIC = "generic"


class ChannelStatusIssue(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, use_enum_values=False)

    channel: str = Field(min_length=1)
    account_id: str = Field(min_length=1, alias="accountId")
    kind: IssueKind
    message: str = Field(min_length=1)
    fix: str = Field(min_length=1)

    def __repr__(self) -> str:
        return f"<ChannelStatusIssue {self.channel}/{self.account_id} {self.kind.value}: {self.message[:60]}>"

    def to_dict(self) -> Dict[str, Any]:
        """下游 doctor 聚合器使用的外部形状：{channel, accountId, kind, message, fix}"""
        return self.model_dump(mode="json", by_alias=True)

    def display(self) -> str:
        return f"[{self.kind.value}] {self.channel}/{self.account_id}: {self.message}"


@dataclass(frozen=True)
class GroupAuditEntry:
    chat_id: str
    ok: Optional[bool] = None
    status: Optional[str] = None
    error: Optional[str] = None
    match_key: Optional[str] = None
    match_source: Optional[str] = None


@dataclass(frozen=True)
class GroupMembershipAuditSummary:
    unresolved_groups: Optional[Number] = None
    has_wildcard_unmentioned_groups: Optional[bool] = None
    groups: Optional[Tuple[GroupAuditEntry, ...]] = None


@dataclass(frozen=True)
class ProbeSummary:
    ok: Optional[bool] = None
    status: Optional[Number] = None     # None = 无状态码（区别于 0）
    error: Optional[str] = None


@dataclass(frozen=True)
class TelegramAccountStatus:
    """
    单账号快照的收窄视图（enabled/configured 闸门由 resolve_enabled_configured_account_id 直接读原始快照）。
    布尔类字段仅当原值严格为 True 时为 True；其余字段缺失/类型不符即为 None。
    audit/probe 保留原值，由各自的读取器再行收窄。
    """
    account_id: Optional[str] = None
    allow_unmentioned_groups: bool = False
    audit: Any = None
    probe: Any = None
    running: bool = False
    connected: bool = False
    last_error: Optional[str] = None
