"""Data models used throughout the clipping pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .config import ExtractMode


@dataclass(frozen=True)
class Locator:
    """CSS path and XPath expression that identify one element."""

    css: str = ""
    xpath: str = ""

    def for_mode(self, mode: ExtractMode) -> str:
        if mode is ExtractMode.CSS:
            return self.css
        if mode is ExtractMode.XPATH:
            return self.xpath
        return ""


@dataclass(frozen=True)
class PickState:
    """Latest value published by the injected picker on one channel."""

    css: str
    xpath: str
    ts: float
    reason: str

    @property
    def locator(self) -> Locator:
        return Locator(css=self.css, xpath=self.xpath)

    @property
    def confirmed(self) -> bool:
        return self.reason == "confirm"

    @classmethod
    def from_payload(
        cls, payload: Optional[Mapping[str, Any]], default_reason: str
    ) -> Optional["PickState"]:
        if not payload:
            return None
        try:
            ts = float(payload.get("ts") or 0)
        except (TypeError, ValueError):
            return None
        return cls(
            css=str(payload.get("css") or ""),
            xpath=str(payload.get("xpath") or ""),
            ts=ts,
            reason=str(payload.get("reason") or default_reason),
        )


@dataclass
class FetchResponse:
    """Status and body returned by a transport."""

    url: str
    status: int
    content: bytes
    headers: Dict[str, str] = field(default_factory=dict)
    encoding: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status < 400

    @property
    def text(self) -> str:
        return self.content.decode(self.encoding or "utf-8", errors="replace")


@dataclass
class ImageReference:
    """Image source discovered inside the content root."""

    raw_src: str
    absolute_url: str


@dataclass
class LocalizedImage:
    """Image stored next to the destination document."""

    raw_src: str
    absolute_url: str
    local_path: str


@dataclass
class ClipResult:
    """Markdown produced for a clipped page, with its provenance."""

    title: str
    source_url: str
    markdown: str
    images: List[LocalizedImage] = field(default_factory=list)


@dataclass
class ClipOutcome:
    """User-facing outcome of one clip invocation."""

    ok: bool
    message: str
    result: Optional[ClipResult] = None
