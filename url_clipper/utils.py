"""Utility helpers for file naming."""

from __future__ import annotations

import datetime as dt
from pathlib import PurePosixPath
from typing import Optional
from urllib.parse import urlsplit

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "webp", "gif", "svg"}
DEFAULT_IMAGE_EXTENSION = "png"


def timestamp_now(now: Optional[dt.datetime] = None) -> str:
    """Return a ``yyyyMMdd-HHmmss-SSS`` timestamp in local time."""
    now = now or dt.datetime.now()
    return now.strftime("%Y%m%d-%H%M%S-") + f"{now.microsecond // 1000:03d}"


def guess_image_extension(url: str) -> str:
    """Pick a file extension from the URL path, defaulting to png."""
    suffix = PurePosixPath(urlsplit(url).path).suffix.lower().lstrip(".")
    if suffix not in ALLOWED_IMAGE_EXTENSIONS:
        return DEFAULT_IMAGE_EXTENSION
    if suffix == "jpeg":
        return "jpg"
    return suffix


def image_filename(prefix: str, extension: str, now: Optional[dt.datetime] = None) -> str:
    prefix = (prefix or "").strip()
    stem = timestamp_now(now)
    if prefix:
        stem = f"{prefix}-{stem}"
    return f"{stem}.{extension}"
