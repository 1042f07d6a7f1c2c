"""Image downloading and reference rewriting."""

from __future__ import annotations

import logging
import posixpath
from typing import Dict, List, Optional, Tuple
from urllib.parse import urldefrag, urljoin, urlsplit

from bs4 import Tag
from filetype import guess

from .destination import Destination
from .errors import ImageFetchFailure, TransportError
from .models import ImageReference, LocalizedImage
from .transport import IMAGE_REQUEST_HEADERS, Transport
from .utils import guess_image_extension, image_filename

logger = logging.getLogger("url_clipper")

_SKIPPED_SCHEMES = ("data:", "blob:")
_FETCHABLE_SCHEMES = {"http", "https"}


def resolve_image_url(raw_src: str, page_url: str) -> Optional[str]:
    """Make *raw_src* absolute against the page; ``None`` when it cannot be fetched."""
    src = raw_src.strip()
    if not src or src.lower().startswith(_SKIPPED_SCHEMES):
        return None
    try:
        absolute, _fragment = urldefrag(urljoin(page_url, src))
        parts = urlsplit(absolute)
    except ValueError:
        return None
    if parts.scheme.lower() not in _FETCHABLE_SCHEMES or not parts.netloc:
        return None
    return absolute


def collect_image_references(root: Tag, page_url: str) -> List[Tuple[Tag, ImageReference]]:
    """Return ``(img_tag, ImageReference)`` pairs in document order."""
    found = []
    for img in root.find_all("img"):
        raw_src = (img.get("src") or "").strip()
        if not raw_src:
            continue
        absolute_url = resolve_image_url(raw_src, page_url)
        if absolute_url is None:
            logger.debug("Skipping image reference %s", raw_src[:80])
            continue
        found.append((img, ImageReference(raw_src=raw_src, absolute_url=absolute_url)))
    return found


def _check_payload(url: str, data: bytes) -> None:
    kind = guess(data)
    if kind is not None and not kind.mime.startswith("image/"):
        raise ImageFetchFailure(f"{url} returned {kind.mime} instead of an image")


async def download_image(
    reference: ImageReference,
    destination: Destination,
    transport: Transport,
    prefix: str = "",
) -> str:
    """Fetch one image and store it; returns the storage path."""
    extension = guess_image_extension(reference.absolute_url)
    filename = image_filename(prefix, extension)
    storage_path = destination.available_attachment_path(filename)
    parent = posixpath.dirname(storage_path)
    if parent:
        destination.ensure_container(parent)

    try:
        resp = await transport.fetch(
            reference.absolute_url, "GET", headers=IMAGE_REQUEST_HEADERS
        )
    except TransportError as exc:
        raise ImageFetchFailure(str(exc)) from exc
    if not resp.ok:
        raise ImageFetchFailure(f"{reference.absolute_url} returned HTTP {resp.status}")
    _check_payload(reference.absolute_url, resp.content)

    destination.create_binary(storage_path, resp.content)
    return storage_path


async def localize_images(
    root: Tag,
    page_url: str,
    destination: Destination,
    transport: Transport,
    prefix: str = "",
) -> List[LocalizedImage]:
    """Download images under *root* and point their ``src`` at the stored copies.

    Images are handled one at a time in document order. A failed image keeps
    its original reference and does not stop the others.
    """
    references = collect_image_references(root, page_url)
    if not references:
        return []

    stored: Dict[str, str] = {}
    localized: List[LocalizedImage] = []
    for img, reference in references:
        local_path = stored.get(reference.absolute_url)
        if local_path is None:
            try:
                local_path = await download_image(reference, destination, transport, prefix)
            except ImageFetchFailure as exc:
                logger.warning("Failed to localize image %s: %s", reference.absolute_url, exc)
                continue
            except OSError as exc:
                logger.warning("Failed to write image %s: %s", reference.absolute_url, exc)
                continue
            stored[reference.absolute_url] = local_path
            logger.debug("Saved image %s to %s", reference.absolute_url, local_path)

        img["src"] = local_path
        localized.append(
            LocalizedImage(
                raw_src=reference.raw_src,
                absolute_url=reference.absolute_url,
                local_path=local_path,
            )
        )
    return localized
