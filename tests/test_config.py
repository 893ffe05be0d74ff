from __future__ import annotations

import importlib

import config


def test_upload_limit_defaults_to_15_mb(monkeypatch) -> None:
    monkeypatch.delenv("MAX_FILE_SIZE_MB", raising=False)
    reloaded = importlib.reload(config)

    assert reloaded.MAX_FILE_SIZE_MB == 15
    assert reloaded.MAX_FILE_SIZE_BYTES == 15 * 1024 * 1024


def test_clean_env_value_strips_quotes() -> None:
    assert config.clean_env_value(' "abc" ') == "abc"
    assert config.clean_env_value("'abc") == "abc"
    assert config.clean_env_value(None) == ""
