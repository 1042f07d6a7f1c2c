"""Destination documents and user notification."""

from __future__ import annotations

import logging
import posixpath
import sys
from pathlib import Path
from typing import Optional, Protocol, TextIO

logger = logging.getLogger("url_clipper")


class Destination(Protocol):
    """Document that receives the clipped Markdown and its attachments."""

    def is_persisted(self) -> bool: ...

    def available_attachment_path(self, filename: str) -> str: ...

    def ensure_container(self, path: str) -> None: ...

    def create_binary(self, path: str, data: bytes) -> None: ...

    def insert_text_at_cursor(self, text: str) -> None: ...


class Notifier(Protocol):
    def notify(self, message: str) -> None: ...


class ConsoleNotifier:
    """Writes user-facing messages to a stream (stderr by default)."""

    def __init__(self, stream: Optional[TextIO] = None) -> None:
        self._stream = stream

    def notify(self, message: str) -> None:
        stream = self._stream or sys.stderr
        stream.write(message + "\n")
        stream.flush()


class MarkdownNote:
    """A Markdown file on disk with attachments stored beside it.

    Storage paths are POSIX paths relative to the note's directory, so they
    can be used directly as Markdown image links.
    """

    def __init__(
        self,
        path: Path,
        attachment_folder: str = "attachments",
        cursor_line: Optional[int] = None,
    ) -> None:
        self.path = Path(path)
        self.attachment_folder = attachment_folder.strip().strip("/")
        self.cursor_line = cursor_line

    @property
    def base_dir(self) -> Path:
        return self.path.parent

    def is_persisted(self) -> bool:
        return self.path.is_file()

    def available_attachment_path(self, filename: str) -> str:
        stem, dot, extension = filename.rpartition(".")
        if not dot:
            stem, extension = filename, ""
        candidate = posixpath.join(self.attachment_folder, filename)
        counter = 1
        while (self.base_dir / candidate).exists():
            name = f"{stem} {counter}" + (f".{extension}" if extension else "")
            candidate = posixpath.join(self.attachment_folder, name)
            counter += 1
        return candidate

    def ensure_container(self, path: str) -> None:
        (self.base_dir / path).mkdir(parents=True, exist_ok=True)

    def create_binary(self, path: str, data: bytes) -> None:
        target = self.base_dir / path
        with target.open("xb") as handle:
            handle.write(data)
        logger.debug("Wrote %d bytes to %s", len(data), target)

    def insert_text_at_cursor(self, text: str) -> None:
        """Insert *text* before line ``cursor_line`` (1-based), or append it."""
        existing = self.path.read_text(encoding="utf-8")
        lines = existing.splitlines(keepends=True)
        index = len(lines) if self.cursor_line is None else max(self.cursor_line - 1, 0)
        offset = sum(len(line) for line in lines[:index])
        if index >= len(lines) and existing and not existing.endswith("\n"):
            text = "\n" + text
        self.path.write_text(existing[:offset] + text + existing[offset:], encoding="utf-8")
        logger.debug("Inserted %d characters into %s at offset %d", len(text), self.path, offset)
