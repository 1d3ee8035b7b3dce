# -*- coding: utf-8 -*-
from __future__ import annotations

import argparse
import json
import sys
from typing import Any, List, Optional, Sequence

from handlers.registry import collect_status_issues, get_status_issue_collector, registered_channels
from typess.status_types import ChannelStatusIssue
from unified.config import ensure_all_dirs
from unified.logger import init_logger, log_error, log_info

EXIT_OK = 0
EXIT_ISSUES = 1
EXIT_BAD_INPUT = 2


def _load_document(path: str) -> Any:
    if path == "-":
        return json.load(sys.stdin)
    with open(path, "r", encoding="utf-8") as fh:
        return json.load(fh)


def _as_channel_map(document: Any, channel: str) -> dict:
    """
    列表 → {channel: 列表}；映射 → 每个键都必须是已登记渠道、值必须是快照列表。
    无法路由的输入一律 ValueError（main 据此返回 EXIT_BAD_INPUT）。
    """
    if isinstance(document, list):
        channel_map = {channel: document}
    elif isinstance(document, dict):
        channel_map = document
    else:
        raise ValueError("expected a JSON array of account snapshots or an object keyed by channel")

    for key, snapshots in channel_map.items():
        if get_status_issue_collector(key) is None:
            raise ValueError(f"unknown channel {key!r} (registered: {', '.join(registered_channels())})")
        if not isinstance(snapshots, list):
            raise ValueError(f"channel {key!r} must map to a JSON array of account snapshots")
    return channel_map


def render_plain(issues: Sequence[ChannelStatusIssue]) -> str:
    lines: List[str] = []
    for issue in issues:
        lines.append(issue.display())
        lines.append(f"  fix: {issue.fix}")
    return "\n".join(lines)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tgdoctor",
        description="Diagnose channel account status snapshots and print actionable issues.",
    )
    parser.add_argument("path", help="JSON file with account snapshots, or '-' for stdin")
    parser.add_argument(
        "--channel",
        default="telegram",
        help=f"channel id when the input is a bare array (registered: {', '.join(registered_channels())})",
    )
    parser.add_argument("--json", action="store_true", help="print issues as a JSON array")
    parser.add_argument("--log-level", default=None, help="override LOG_LEVEL for this run")
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    # 0) 兜底：确保日志目录存在，再初始化 logger（控制台走 stderr）
    ensure_all_dirs()
    init_logger(to_console=True, level=args.log_level)

    # 1) 读取快照
    try:
        channel_map = _as_channel_map(_load_document(args.path), args.channel)
    except (OSError, ValueError) as e:
        log_error(f"❌ 无法读取快照：{e}", extra={"operation": "load"})
        return EXIT_BAD_INPUT

    # 2) 诊断
    issues = collect_status_issues(channel_map)
    log_info("🩺 诊断完成", extra={"channels": len(channel_map), "issues": len(issues)})

    # 3) 输出（stdout 只放结果）
    if args.json:
        print(json.dumps([i.to_dict() for i in issues], ensure_ascii=False, indent=2))
    elif issues:
        print(render_plain(issues))
    return EXIT_ISSUES if issues else EXIT_OK


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
