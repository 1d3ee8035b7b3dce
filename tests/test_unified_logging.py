import json
import logging
import os

import pytest

from unified.config import get_bool, get_float, reload_env
from unified.logger import log_exception, log_warning, parse_level
from unified.trace_context import generate_trace_id, get_log_context, use_log_context


# ---------- trace_context ----------
def test_use_log_context_normalizes_aliases_and_restores():
    assert get_log_context() == {}
    with use_log_context(accountId="main", op="getMe", channel="telegram", unknown="x") as ctx:
        assert ctx == {"account_id": "main", "operation": "getMe", "channel": "telegram"}
        with use_log_context(account_id=None, phase="doctor"):
            assert get_log_context() == {"operation": "getMe", "channel": "telegram", "phase": "doctor"}
        assert get_log_context()["account_id"] == "main"
    assert get_log_context() == {}


def test_standard_key_wins_over_alias():
    with use_log_context(account_id="std", accountId="alias"):
        assert get_log_context()["account_id"] == "std"


def test_generate_trace_id_length():
    assert len(generate_trace_id()) == 8
    assert len(generate_trace_id(2)) == 4
    assert len(generate_trace_id(None)) == 32


# ---------- logger ----------
def test_parse_level():
    assert parse_level("debug") == logging.DEBUG
    assert parse_level("WARN") == logging.WARNING
    assert parse_level(logging.ERROR) == logging.ERROR
    assert parse_level("loud", logging.INFO) == logging.INFO
    assert parse_level(None, logging.WARNING) == logging.WARNING


def test_context_is_appended_to_message(caplog, monkeypatch):
    monkeypatch.setenv("LOG_ZH", "0")
    with caplog.at_level(logging.WARNING, logger="tgdoctor"):
        with use_log_context(channel="telegram"):
            log_warning("probe degraded", extra={"accountId": "ops", "status": None})
    assert caplog.records[-1].getMessage() == "probe degraded | channel=telegram account_id=ops"


def test_chinese_keys_by_default(caplog, monkeypatch):
    monkeypatch.delenv("LOG_ZH", raising=False)
    with caplog.at_level(logging.WARNING, logger="tgdoctor"):
        log_warning("跳过", extra={"channel": "telegram"})
    assert caplog.records[-1].getMessage() == "跳过 | 渠道=telegram"


def test_json_mode(caplog, monkeypatch):
    monkeypatch.setenv("LOG_JSON", "1")
    with caplog.at_level(logging.WARNING, logger="tgdoctor"):
        log_warning("json line", extra={"channel": "telegram"})
    payload = json.loads(caplog.records[-1].getMessage())
    assert payload == {"ctx": {"channel": "telegram"}, "message": "json line"}


def test_log_exception_records_type_and_traceback(caplog, monkeypatch):
    monkeypatch.setenv("LOG_ZH", "0")
    try:
        raise RuntimeError("kaboom")
    except RuntimeError as e:
        with caplog.at_level(logging.ERROR, logger="tgdoctor"):
            log_exception("collector failed", exc=e)
    record = caplog.records[-1]
    assert "error_type=RuntimeError" in record.getMessage()
    assert record.exc_info is not None
    assert "kaboom" in caplog.text


# ---------- config ----------
def test_get_bool_and_get_float(monkeypatch):
    monkeypatch.setenv("TGDOCTOR_FLAG", "Yes")
    monkeypatch.setenv("TGDOCTOR_NUM", "2.5")
    monkeypatch.setenv("TGDOCTOR_BAD", "soon")
    assert get_bool("TGDOCTOR_FLAG") is True
    assert get_bool("TGDOCTOR_MISSING", True) is True
    assert get_float("TGDOCTOR_NUM", 1.0) == 2.5
    assert get_float("TGDOCTOR_BAD", 1.0) == 1.0


# ---------- .env 重读 ----------
@pytest.fixture
def dotenv_dir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    preexisting = set(os.environ)
    written = []

    def _write(**pairs):
        lines = [f"{k}={v}" for k, v in pairs.items()]
        (tmp_path / ".env").write_text("\n".join(lines) + "\n", encoding="utf-8")
        written.extend(pairs)

    yield _write
    for key in set(written) - preexisting:
        os.environ.pop(key, None)


def test_reload_env_picks_up_edited_values(dotenv_dir):
    dotenv_dir(TGDOCTOR_RELOAD_X="1")
    assert reload_env() is True
    assert os.environ["TGDOCTOR_RELOAD_X"] == "1"

    dotenv_dir(TGDOCTOR_RELOAD_X="2")
    reload_env()
    assert os.environ["TGDOCTOR_RELOAD_X"] == "2"


def test_reload_env_never_overrides_startup_environment(dotenv_dir):
    # LOG_DIR 在 conftest 里先于 unified.config 导入写进了进程环境
    before = os.environ["LOG_DIR"]
    dotenv_dir(LOG_DIR="/nowhere/from/dotenv")
    reload_env()
    assert os.environ["LOG_DIR"] == before


def test_throttled_reload_skips_within_interval(dotenv_dir):
    dotenv_dir(TGDOCTOR_RELOAD_Y="a")
    reload_env()
    dotenv_dir(TGDOCTOR_RELOAD_Y="b")
    assert reload_env(force=False) is False
    assert os.environ["TGDOCTOR_RELOAD_Y"] == "a"
