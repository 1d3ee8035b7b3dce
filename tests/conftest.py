"""
Pytest configuration and fixtures.

- Puts the flat source root (tgdoctor/) on sys.path so `from tg...` imports resolve.
- Points LOG_DIR at a throwaway directory before unified.config is imported.
"""

import os
import sys
import tempfile
from pathlib import Path

import pytest

BASE_DIR = Path(__file__).parent.parent
sys.path.insert(0, str(BASE_DIR / "tgdoctor"))

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="tgdoctor-logs-"))


@pytest.fixture
def enabled_account():
    """Factory for a gated-in Telegram account snapshot."""
    def _make(account_id="default", **fields):
        snapshot = {"accountId": account_id, "enabled": True, "configured": True}
        snapshot.update(fields)
        return snapshot
    return _make
