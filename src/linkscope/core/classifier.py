"""Content classification for fetched resources (core domain)."""

from __future__ import annotations

import logging
import re
import struct
from typing import Optional

from linkscope.core.models import (
    ContentKind,
    FetchOk,
    HtmlContent,
    ImageContent,
    UnsupportedContent,
)

LOGGER = logging.getLogger(__name__)

HTML_TYPES = frozenset({"text/html", "application/xhtml+xml"})

# Declared types that say nothing useful about the payload; sniffing decides.
GENERIC_TYPES = frozenset({"application/octet-stream", "binary/octet-stream", "text/plain"})

# image/* types that have no raster header to read.
VECTOR_IMAGE_TYPES = frozenset({"image/svg+xml"})

# (prefix, offset, format name) checked against the start of the body.
_MAGIC = (
    (b"\x89PNG\r\n\x1a\n", 0, "PNG"),
    (b"\xff\xd8\xff", 0, "JPEG"),
    (b"GIF87a", 0, "GIF"),
    (b"GIF89a", 0, "GIF"),
    (b"WEBP", 8, "WEBP"),
    (b"\x00\x00\x01\x00", 0, "ICO"),
)

# BITMAPFILEHEADER is followed by one of these DIB header sizes.
_BMP_DIB_SIZES = frozenset({12, 40, 52, 56, 64, 108, 124})

_HTML_MARKER = re.compile(
    rb"^\s*(?:<!--.*?-->\s*)*<(?:!doctype\s+html|html|head|title|body)\b",
    re.IGNORECASE | re.DOTALL,
)


def is_handled_type(mime: Optional[str]) -> bool:
    """Return True when a declared MIME type may lead to a summary."""

    if not mime:
        return True
    if mime in VECTOR_IMAGE_TYPES:
        return False
    return mime in HTML_TYPES or mime in GENERIC_TYPES or mime.startswith("image/")


def _is_bmp(body: bytes) -> bool:
    """Match the BM signature with zeroed reserved bytes and a known DIB header size."""

    if len(body) < 18 or not body.startswith(b"BM"):
        return False
    if body[6:10] != b"\x00\x00\x00\x00":
        return False
    (dib_size,) = struct.unpack_from("<I", body, 14)
    return dib_size in _BMP_DIB_SIZES


def sniff(body: bytes) -> Optional[ContentKind]:
    """Guess the content kind from magic bytes, or None when unknown."""

    for prefix, offset, name in _MAGIC:
        if body[offset:offset + len(prefix)] == prefix:
            # RIFF container check keeps random "WEBP" at offset 8 from matching.
            if name == "WEBP" and not body.startswith(b"RIFF"):
                continue
            return ImageContent(format=name)
    if _is_bmp(body):
        return ImageContent(format="BMP")
    head = body[:1024]
    if head.startswith(b"\xef\xbb\xbf"):
        head = head[3:]
    if _HTML_MARKER.match(head):
        return HtmlContent()
    return None


def _declared_kind(mime: Optional[str]) -> Optional[ContentKind]:
    if not mime or mime in GENERIC_TYPES:
        return None
    if mime in HTML_TYPES:
        return HtmlContent()
    if mime.startswith("image/") and mime not in VECTOR_IMAGE_TYPES:
        return ImageContent(format=mime.split("/", 1)[1].upper())
    return UnsupportedContent(mime=mime)


def classify(result: FetchOk) -> ContentKind:
    """Decide how a successful response should be summarized.

    The declared Content-Type is consulted first; generic or missing types
    fall back to sniffing. When both are available and disagree, the sniffed
    kind wins.
    """

    declared = _declared_kind(result.content_type)
    sniffed = sniff(result.body)

    if declared is None:
        if sniffed is not None:
            return sniffed
        mime = result.content_type or "application/octet-stream"
        return UnsupportedContent(mime=mime)

    if sniffed is not None and type(sniffed) is not type(declared):
        LOGGER.debug(
            "Declared %s but sniffed %s for %s",
            result.content_type,
            sniffed,
            result.final_url,
        )
        return sniffed

    if isinstance(declared, ImageContent) and isinstance(sniffed, ImageContent):
        return sniffed
    return declared
