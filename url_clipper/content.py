"""HTML parsing and content-root extraction."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from bs4 import BeautifulSoup, Tag

from .config import ExtractMode
from .locators import resolve_by_css, resolve_by_xpath

logger = logging.getLogger("url_clipper")

_CHROME_CLASS_TOKENS = ("nav", "menu", "sidebar", "footer", "header")
_FALLBACK_CANDIDATES = ["div", "section", "body"]


@dataclass
class ParsedDocument:
    """Parsed page plus the URL used to resolve relative references."""

    soup: BeautifulSoup
    base_url: str

    @property
    def title(self) -> str:
        title_tag = self.soup.find("title")
        if title_tag is None:
            return ""
        return title_tag.get_text().strip()


def parse_document(html: str, base_url: str) -> ParsedDocument:
    return ParsedDocument(soup=BeautifulSoup(html, "lxml"), base_url=base_url)


def _class_string(element: Tag) -> str:
    value = element.get("class") or ""
    if isinstance(value, list):
        value = " ".join(value)
    return value.lower()


def _is_page_chrome(element: Tag) -> bool:
    classes = _class_string(element)
    return any(token in classes for token in _CHROME_CLASS_TOKENS)


def extract_auto(soup: BeautifulSoup) -> Optional[Tag]:
    """Prefer semantic containers, then fall back to the largest text block."""
    article = soup.find("article")
    if article is not None:
        logger.debug("Auto extraction matched <article>")
        return article

    main = soup.find("main")
    if main is not None:
        logger.debug("Auto extraction matched <main>")
        return main

    best: Optional[Tag] = None
    best_len = 0
    for candidate in soup.find_all(_FALLBACK_CANDIDATES):
        if _is_page_chrome(candidate):
            continue
        length = len(candidate.get_text().strip())
        if length > best_len:
            best, best_len = candidate, length

    if best is not None:
        logger.debug(
            "Auto extraction picked <%s> with %d characters of text", best.name, best_len
        )
    return best


def extract(
    document: ParsedDocument,
    mode: ExtractMode,
    content_path: str = "",
) -> Optional[Tag]:
    """Return the content root for *mode*, or ``None`` when nothing matches."""
    mode = ExtractMode.parse(mode)
    if mode is ExtractMode.CSS:
        return resolve_by_css(document.soup, content_path)
    if mode is ExtractMode.XPATH:
        return resolve_by_xpath(document.soup, content_path)
    return extract_auto(document.soup)
