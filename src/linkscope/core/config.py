"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so adapters and app layers can build safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from linkscope import __version__

DEFAULT_USER_AGENT = f"Mozilla/5.0 linkscope/{__version__}"


@dataclass(frozen=True)
class FetchConfig:
    """Network limits and request headers used by the fetcher."""

    timeout_s: float = 10.0
    max_body_bytes: int = 2 * 1024 * 1024
    max_redirects: int = 5
    user_agent: str = DEFAULT_USER_AGENT
    accept_lang: str = "en"


@dataclass(frozen=True)
class ExtractConfig:
    """Settings for turning fetched content into a summary."""

    title_max_chars: int = 200
    report_metadata: bool = True
    report_mime: bool = False


@dataclass(frozen=True)
class ReplyConfig:
    """Reply formatting settings consumed by the formatter."""

    prefix: str = ""
    max_bytes: int = 510
    mask_highlights: bool = False


@dataclass(frozen=True)
class PipelineConfig:
    """Per-message orchestration settings."""

    url_limit: int = 10
    max_concurrent_fetches: int = 4
    ignore_nicks: frozenset[str] = field(default_factory=frozenset)
    channels: frozenset[str] = field(default_factory=frozenset)
