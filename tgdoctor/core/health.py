# -*- coding: utf-8 -*-
# core/health.py
from __future__ import annotations

import asyncio
from typing import Any, Dict, Optional

from core.api_logging import with_telegram_api_error_logging
from core.telethon_errors import probe_from_exception
from unified.config import PROBE_TIMEOUT
from unified.logger import log_debug
from unified.trace_context import use_log_context


async def probe_telegram_bot(
    client,
    *,
    timeout: Optional[float] = None,
    runtime: Any = None,
    account_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Bot API 探针（产出快照里的 probe 字段，供 collect_telegram_status_issues 使用）：
    1) 若未连接则尝试连接；
    2) 基础 RPC：get_me（带超时，失败经 with_telegram_api_error_logging 记录并回报 runtime）；
    3) get_me 返回 None 说明会话未授权 → 401。
    任何异常都折算为 {ok: False, status, error}，不向上抛。
    """
    limit = PROBE_TIMEOUT if timeout is None else float(timeout)
    with use_log_context(channel="telegram", account_id=account_id, operation="getMe"):
        try:
            if not client.is_connected():
                await client.connect()
            me = await with_telegram_api_error_logging(
                "getMe",
                lambda: asyncio.wait_for(client.get_me(), timeout=limit),
                runtime=runtime,
            )
        except Exception as e:
            probe = probe_from_exception(e)
            log_debug("探针失败", extra={"status": probe["status"], "error": probe["error"]})
            return probe

        if me is None:
            return {"ok": False, "status": 401, "error": "Unauthorized: bot session is not authorized"}

        log_debug("探针成功")
        return {
            "ok": True,
            "status": None,
            "error": None,
            "bot": {"id": getattr(me, "id", None), "username": getattr(me, "username", None)},
        }
