# unified/config.py
# -*- coding: utf-8 -*-
"""
统一配置入口
- .env + 系统环境（系统环境优先，override=False），常量在导入时定型
- 诊断引擎是纯函数，不读配置；这里只服务日志、探针与 CLI
- 运行中的进程：get_config 至多每 RELOAD_INTERVAL 秒重读一次 .env，kill -HUP 立即重读
"""
from __future__ import annotations

import os
import signal
import time
from pathlib import Path

from dotenv import dotenv_values, find_dotenv

RELOAD_INTERVAL = 10.0

# 进程启动时就存在的键：系统环境优先，.env 永远不覆盖它们
_SYSTEM_KEYS = frozenset(os.environ)

_TRUTHY = frozenset({"1", "true", "yes", "on", "y", "t"})
_loaded_at = 0.0


def reload_env(force: bool = True) -> bool:
    """重读 .env；force=False 时受 RELOAD_INTERVAL 节流。返回是否真的读了。"""
    global _loaded_at
    now = time.monotonic()
    if not force and now - _loaded_at < RELOAD_INTERVAL:
        return False
    for key, value in dotenv_values(find_dotenv(usecwd=True)).items():
        if value is not None and key not in _SYSTEM_KEYS:
            os.environ[key] = value
    _loaded_at = now
    return True


def _install_sighup() -> None:
    hup = getattr(signal, "SIGHUP", None)
    if hup is None:
        return
    try:
        signal.signal(hup, lambda *_: reload_env())
    except ValueError:
        # 只能在主线程注册信号处理器
        pass


def get_config(key: str, default: str = "") -> str:
    reload_env(force=False)
    return os.getenv(key, default)


def get_bool(key: str, default: bool = False) -> bool:
    raw = get_config(key).strip().lower()
    if not raw:
        return default
    return raw in _TRUTHY


def get_float(key: str, default: float) -> float:
    raw = get_config(key).strip()
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


reload_env()
_install_sighup()

# ── 日志
LOG_DIR = os.path.abspath(get_config("LOG_DIR", "./logs"))
LOG_FILE = get_config("LOG_FILE", "doctor.log")
LOG_PATH = os.path.join(LOG_DIR, LOG_FILE)
LOG_FORMAT = "[%(asctime)s][%(levelname)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# ── Telegram 探针：get_me 超时（秒）
PROBE_TIMEOUT = get_float("PROBE_TIMEOUT", 8.0)


def ensure_all_dirs() -> None:
    """CLI 启动时确保日志目录与文件存在；只读环境交给 init_logger 回退。"""
    try:
        os.makedirs(LOG_DIR, exist_ok=True)
        Path(LOG_PATH).touch(exist_ok=True)
    except OSError:
        pass
