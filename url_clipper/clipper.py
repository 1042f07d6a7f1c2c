"""High-level orchestration for clipping a page into a note."""

from __future__ import annotations

import copy
import logging
import time
from pathlib import Path
from typing import List, Optional

from bs4 import Tag

from .config import ClipperSettings, ExtractMode
from .content import ParsedDocument, extract, parse_document
from .destination import ConsoleNotifier, Destination, MarkdownNote, Notifier
from .errors import (
    ClipError,
    InsertFailure,
    NoContentFound,
    TransportError,
    TransportFailure,
    UnsavedDestination,
)
from .images import localize_images
from .markdown import compose_clip, html_to_markdown
from .models import ClipOutcome, ClipResult, LocalizedImage
from .transport import RequestsTransport, Transport

logger = logging.getLogger("url_clipper")

SUCCESS_MESSAGE = "Clip complete: inserted at the cursor position."


async def fetch_page(url: str, transport: Transport) -> ParsedDocument:
    """Download *url* and parse it; raises ``TransportFailure`` on any failure."""
    try:
        resp = await transport.fetch(url, "GET")
    except TransportError as exc:
        logger.error("Failed to fetch %s: %s", url, exc)
        raise TransportFailure(f"Request failed: {exc}") from exc
    if not resp.ok:
        logger.error("Failed to fetch %s: HTTP %d", url, resp.status)
        raise TransportFailure(f"Request failed: HTTP {resp.status}")
    return parse_document(resp.text, url)


async def _run_clip(
    url: str,
    mode: ExtractMode,
    content_path: str,
    destination: Destination,
    settings: ClipperSettings,
    transport: Transport,
) -> ClipResult:
    if not destination.is_persisted():
        raise UnsavedDestination()

    logger.debug("Clipping %s (mode=%s, path=%r)", url, mode.value, content_path)
    document = await fetch_page(url, transport)

    root: Optional[Tag] = extract(document, mode, content_path)
    if root is None:
        raise NoContentFound()

    images: List[LocalizedImage] = []
    if settings.download_images:
        root = copy.copy(root)
        images = await localize_images(
            root,
            url,
            destination,
            transport,
            prefix=settings.image_prefix,
        )
        logger.debug("Localized %d image reference(s)", len(images))

    title = document.title
    markdown = compose_clip(title, url, html_to_markdown(str(root)))
    try:
        destination.insert_text_at_cursor(markdown)
    except (OSError, UnicodeError) as exc:
        logger.error("Failed to insert clip: %s", exc)
        raise InsertFailure(f"Could not insert the clip into the note: {exc}") from exc
    return ClipResult(title=title, source_url=url, markdown=markdown, images=images)


async def clip(
    url: str,
    mode: "ExtractMode | str",
    content_path: str,
    destination: Destination,
    *,
    settings: ClipperSettings,
    transport: Transport,
    notifier: Notifier,
) -> ClipOutcome:
    """Fetch, extract, localize, convert and insert one page.

    Every ``ClipError`` ends up as a single notification and a failed
    outcome; nothing is raised to the caller for those conditions.
    """
    start = time.perf_counter()
    try:
        result = await _run_clip(
            url.strip(),
            ExtractMode.parse(mode),
            (content_path or "").strip(),
            destination,
            settings,
            transport,
        )
    except ClipError as exc:
        logger.debug("Clip of %s aborted: %s", url, exc.message)
        notifier.notify(exc.message)
        return ClipOutcome(ok=False, message=exc.message)

    logger.debug("Clip of %s finished in %.2fs", url, time.perf_counter() - start)
    notifier.notify(SUCCESS_MESSAGE)
    return ClipOutcome(ok=True, message=SUCCESS_MESSAGE, result=result)


async def clip_to_note(
    url: str,
    note_path: Path,
    settings: ClipperSettings,
    mode: "ExtractMode | str | None" = None,
    content_path: Optional[str] = None,
    cursor_line: Optional[int] = None,
) -> ClipOutcome:
    """Clip *url* into a Markdown file using the default collaborators."""
    destination = MarkdownNote(
        note_path,
        attachment_folder=settings.attachment_folder,
        cursor_line=cursor_line,
    )
    transport = RequestsTransport(timeout=settings.request_timeout)
    try:
        return await clip(
            url,
            mode if mode is not None else settings.default_mode,
            content_path if content_path is not None else settings.content_path,
            destination,
            settings=settings,
            transport=transport,
            notifier=ConsoleNotifier(),
        )
    finally:
        transport.close()
