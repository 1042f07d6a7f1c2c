"""Markdown generation helpers for clipped content."""

from __future__ import annotations

import logging

from markdownify import ASTERISK, ATX, MarkdownConverter

logger = logging.getLogger("url_clipper")

CODE_FENCE = "```"


def _strip_one_trailing_newline(text: str) -> str:
    if text.endswith("\n"):
        return text[:-1]
    return text


class ClipMarkdownConverter(MarkdownConverter):
    """markdownify converter whose ``<pre>`` handling bypasses inline markup."""

    def __init__(self, **options) -> None:
        options.setdefault("heading_style", ATX)
        options.setdefault("bullets", "-")
        options.setdefault("strong_em_symbol", ASTERISK)
        super().__init__(**options)

    def convert_pre(self, el, text, parent_tags):
        code = el.find("code")
        source = code if code is not None else el
        body = _strip_one_trailing_newline(source.get_text())
        return f"\n\n{CODE_FENCE}\n{body}\n{CODE_FENCE}\n\n"


def html_to_markdown(html: str) -> str:
    """Convert an HTML fragment to Markdown."""
    return ClipMarkdownConverter().convert(html)


def build_source_header(title: str, url: str) -> str:
    title = (title or "").strip()
    label = f"{title} - " if title else ""
    return f"\n> Source: {label}{url}\n\n"


def compose_clip(title: str, url: str, body_markdown: str) -> str:
    """Prefix the provenance header and end the body with one blank line."""
    return build_source_header(title, url) + body_markdown.lstrip("\n").rstrip() + "\n\n"
