from __future__ import annotations

import json
import os

import pytest

from linkscope import settings
from linkscope.core.config import DEFAULT_USER_AGENT


def test_defaults_from_empty_config() -> None:
    loaded = settings.build_settings({})
    assert loaded.fetch.timeout_s == 10.0
    assert loaded.fetch.max_redirects == 5
    assert loaded.fetch.user_agent == DEFAULT_USER_AGENT
    assert loaded.extract.title_max_chars == 200
    assert loaded.reply.max_bytes == 510
    assert loaded.reply.prefix == ""
    assert loaded.db_path is None
    assert loaded.silent_replies is False


def test_full_config(tmp_path) -> None:
    raw = {
        "resolver": {
            "timeout_s": 3,
            "max_body_bytes": 1000,
            "max_redirects": 0,
            "user_agent": "bot/1",
            "title_max_chars": 80,
            "report_mime": True,
            "url_limit": 3,
            "max_concurrent_fetches": 2,
        },
        "history": {"enabled": True, "db_path": str(tmp_path / "h.db")},
        "replies": {"prefix": "⤷ ", "max_bytes": 300, "mask_highlights": True, "silent": True},
        "ignore_nicks": ["spambot"],
        "channels": ["@news"],
    }
    path = tmp_path / "config.json"
    path.write_text(json.dumps(raw), encoding="utf-8")

    loaded = settings.load_settings(str(path))

    assert loaded.fetch.timeout_s == 3.0
    assert loaded.fetch.max_redirects == 0
    assert loaded.fetch.user_agent == "bot/1"
    assert loaded.extract.report_mime is True
    assert loaded.reply.prefix == "⤷ "
    assert loaded.reply.mask_highlights is True
    assert loaded.pipeline.url_limit == 3
    assert loaded.pipeline.ignore_nicks == frozenset({"spambot"})
    assert loaded.pipeline.channels == frozenset({"@news"})
    assert loaded.db_path == str(tmp_path / "h.db")
    assert loaded.silent_replies is True


def test_relative_db_path_is_under_project_root() -> None:
    loaded = settings.build_settings({"history": {"enabled": True, "db_path": "data/links.db"}})
    assert loaded.db_path == os.path.join(settings.PROJECT_ROOT, "data/links.db")


def test_invalid_values_fail_fast() -> None:
    with pytest.raises(ValueError):
        settings.build_settings({"resolver": {"timeout_s": 0}})
    with pytest.raises(ValueError):
        settings.build_settings({"replies": {"max_bytes": -1}})


def test_missing_config_file(tmp_path) -> None:
    with pytest.raises(FileNotFoundError):
        settings.load_json_config(str(tmp_path / "absent.json"))


def test_config_path_from_environment(monkeypatch, tmp_path) -> None:
    monkeypatch.setenv("LINKSCOPE_CONFIG", str(tmp_path / "custom.json"))
    assert settings.config_path() == str(tmp_path / "custom.json")
