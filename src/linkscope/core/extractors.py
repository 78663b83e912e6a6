"""Title and metadata extraction, one handler per content kind."""

from __future__ import annotations

import logging
import re
from io import BytesIO
from typing import Optional

from bs4 import BeautifulSoup
from PIL import Image, UnidentifiedImageError

from linkscope.core.config import ExtractConfig
from linkscope.core.models import (
    ContentKind,
    FailureKind,
    FailureSummary,
    FetchOk,
    HtmlContent,
    ImageContent,
    MediaSummary,
    Summary,
    TitleSummary,
    UnsupportedContent,
)

LOGGER = logging.getLogger(__name__)

ELLIPSIS = "…"
_UNITS = ("KB", "MB", "GB", "TB")


def _collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def truncate_chars(text: str, limit: int) -> str:
    """Clip ``text`` to ``limit`` characters, marking the cut with an ellipsis."""

    if len(text) <= limit:
        return text
    if limit <= len(ELLIPSIS):
        return ELLIPSIS[:limit]
    return text[: limit - len(ELLIPSIS)].rstrip() + ELLIPSIS


def human_size(size: Optional[int]) -> str:
    """Format a byte count the conventional (1024-based) way: 16B, 1.31KB."""

    if size is None:
        return "?"
    if size < 1024:
        return f"{size}B"
    value = float(size)
    for unit in _UNITS:
        value /= 1024
        if value < 1024:
            break
    return f"{value:.2f}".rstrip("0").rstrip(".") + unit


def extract_title(result: FetchOk, config: ExtractConfig) -> Summary:
    """Return the first <title> of an HTML document as a display string."""

    try:
        soup = BeautifulSoup(result.body, "html.parser", from_encoding=result.charset)
        tag = soup.find("title")
        raw = tag.get_text() if tag is not None else ""
    except Exception:
        # html.parser is lenient, but mis-declared encodings can still trip it.
        LOGGER.debug("HTML parse failed for %s", result.final_url, exc_info=True)
        return FailureSummary(FailureKind.NO_TITLE)

    title = _collapse_whitespace(raw)
    if not title:
        return FailureSummary(FailureKind.NO_TITLE)
    return TitleSummary(text=truncate_chars(title, config.title_max_chars))


def extract_image(result: FetchOk, config: ExtractConfig) -> Summary:
    """Read image headers (not pixels) to recover format and dimensions."""

    try:
        with Image.open(BytesIO(result.body)) as image:
            image_format = image.format or "image"
            dimensions = image.size
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, SyntaxError, ValueError):
        LOGGER.debug("Image decode failed for %s", result.final_url, exc_info=True)
        return FailureSummary(FailureKind.UNDECODABLE)

    return MediaSummary(
        kind="image",
        format=image_format,
        dimensions=dimensions,
        size_bytes=len(result.body),
    )


def describe_unsupported(mime: str, size_bytes: Optional[int], config: ExtractConfig) -> Summary:
    if not config.report_mime:
        return FailureSummary(FailureKind.UNSUPPORTED)
    return MediaSummary(kind=mime, size_bytes=size_bytes)


def summarize(result: FetchOk, kind: ContentKind, config: ExtractConfig) -> Summary:
    """Dispatch a classified response to its extractor."""

    if isinstance(kind, HtmlContent):
        return extract_title(result, config)
    if isinstance(kind, ImageContent):
        if not config.report_metadata:
            mime = result.content_type or f"image/{kind.format.lower()}"
            return describe_unsupported(mime, len(result.body), config)
        return extract_image(result, config)
    if isinstance(kind, UnsupportedContent):
        return describe_unsupported(kind.mime, len(result.body), config)
    raise TypeError(f"Unknown content kind: {kind!r}")
