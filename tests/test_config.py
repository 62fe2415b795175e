# test_config.py
import json
import pathlib
import sys
from pathlib import Path

import pytest

sys.path.append(str(pathlib.Path(__file__).resolve().parents[1]))

from config import get_settings  # noqa: E402

CONFIG_JSON = Path(__file__).resolve().parents[1] / "config.json"


@pytest.fixture(autouse=True)
def _fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def test_defaults_from_config(monkeypatch):
    monkeypatch.delenv("MAX_CONN_PER_IP", raising=False)
    settings = get_settings()
    assert (
        settings.max_conn_per_ip
        == json.loads(CONFIG_JSON.read_text())["max_conn_per_ip"]
    )


def test_env_overrides(monkeypatch):
    monkeypatch.setenv("MAX_CONN_PER_IP", "3")
    monkeypatch.setenv("LIVE_QUEUE_MAX", "7")
    settings = get_settings()
    assert settings.max_conn_per_ip == 3
    assert settings.live_queue_max == 7


def test_missing_key_uses_default(monkeypatch):
    original = CONFIG_JSON.read_text()
    monkeypatch.delenv("HEARTBEAT_INTERVAL_SECS", raising=False)
    monkeypatch.setattr(
        Path,
        "read_text",
        lambda self, *a, **k: json.dumps(
            {
                k2: v
                for k2, v in json.loads(original).items()
                if k2 != "heartbeat_interval_secs"
            }
        ),
    )
    settings = get_settings()
    assert settings.heartbeat_interval_secs == 15


def test_settings_are_cached():
    assert get_settings() is get_settings()
