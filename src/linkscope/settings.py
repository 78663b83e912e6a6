"""Configuration loading for linkscope.

All user-editable settings (resolver limits, history, replies, ignore lists,
logging) live in a single JSON file for quick edits without touching Python.
Secrets stay in the environment (see session.py).
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any, Optional

from linkscope.core.config import (
    DEFAULT_USER_AGENT,
    ExtractConfig,
    FetchConfig,
    PipelineConfig,
    ReplyConfig,
)

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", ".."))

# config.json sits at the project root unless LINKSCOPE_CONFIG points elsewhere.
DEFAULT_CONFIG_PATH = os.path.join(PROJECT_ROOT, "config.json")

# Default SQLite location, used when history is enabled without a db_path.
DEFAULT_DB_PATH = os.path.join(PROJECT_ROOT, "linkscope.db")


@dataclass(frozen=True)
class Settings:
    """Everything the app needs, already validated and typed."""

    fetch: FetchConfig
    extract: ExtractConfig
    reply: ReplyConfig
    pipeline: PipelineConfig
    db_path: Optional[str]
    silent_replies: bool
    logging: dict


def config_path() -> str:
    return os.getenv("LINKSCOPE_CONFIG") or DEFAULT_CONFIG_PATH


def load_json_config(path: Optional[str] = None) -> dict:
    """Load config.json with a flat, user-friendly schema."""

    path = path or config_path()
    if not os.path.exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def _positive_int(section: dict, key: str, default: int) -> int:
    value = int(section.get(key, default))
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def _positive_float(section: dict, key: str, default: float) -> float:
    value = float(section.get(key, default))
    if value <= 0:
        raise ValueError(f"{key} must be positive, got {value}")
    return value


def build_fetch_config(raw: dict[str, Any]) -> FetchConfig:
    resolver = raw.get("resolver", {})
    return FetchConfig(
        timeout_s=_positive_float(resolver, "timeout_s", 10.0),
        max_body_bytes=_positive_int(resolver, "max_body_bytes", 2 * 1024 * 1024),
        # Zero disables redirect following; negatives clamp to zero.
        max_redirects=max(0, int(resolver.get("max_redirects", 5))),
        user_agent=resolver.get("user_agent") or DEFAULT_USER_AGENT,
        accept_lang=resolver.get("accept_lang", "en"),
    )


def build_extract_config(raw: dict[str, Any]) -> ExtractConfig:
    resolver = raw.get("resolver", {})
    return ExtractConfig(
        title_max_chars=_positive_int(resolver, "title_max_chars", 200),
        report_metadata=bool(resolver.get("report_metadata", True)),
        report_mime=bool(resolver.get("report_mime", False)),
    )


def build_reply_config(raw: dict[str, Any]) -> ReplyConfig:
    replies = raw.get("replies", {})
    return ReplyConfig(
        prefix=replies.get("prefix", ""),
        max_bytes=_positive_int(replies, "max_bytes", 510),
        mask_highlights=bool(replies.get("mask_highlights", False)),
    )


def _history_db_path(raw: dict[str, Any]) -> Optional[str]:
    history = raw.get("history", {})
    if not history.get("enabled", False):
        return None
    path = history.get("db_path") or DEFAULT_DB_PATH
    if not os.path.isabs(path):
        path = os.path.join(PROJECT_ROOT, path)
    return path


def build_pipeline_config(raw: dict[str, Any]) -> PipelineConfig:
    resolver = raw.get("resolver", {})
    return PipelineConfig(
        url_limit=_positive_int(resolver, "url_limit", 10),
        max_concurrent_fetches=_positive_int(resolver, "max_concurrent_fetches", 4),
        ignore_nicks=frozenset(raw.get("ignore_nicks", [])),
        channels=frozenset(raw.get("channels", [])),
    )


def build_settings(raw: dict[str, Any]) -> Settings:
    """Turn the raw JSON dict into typed settings, failing fast on bad values."""

    return Settings(
        fetch=build_fetch_config(raw),
        extract=build_extract_config(raw),
        reply=build_reply_config(raw),
        pipeline=build_pipeline_config(raw),
        db_path=_history_db_path(raw),
        # Silent messages are the Telegram analogue of an IRC NOTICE.
        silent_replies=bool(raw.get("replies", {}).get("silent", False)),
        logging=raw.get("logging", {}),
    )


def load_settings(path: Optional[str] = None) -> Settings:
    return build_settings(load_json_config(path))

