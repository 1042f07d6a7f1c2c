"""Exceptions raised while clipping a page."""

from __future__ import annotations


class ClipError(Exception):
    """A condition that aborts the current clip with a user-facing message."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnsavedDestination(ClipError):
    def __init__(self) -> None:
        super().__init__(
            "The current note is not saved to a file, so image attachments "
            "cannot be written. Save the note first."
        )


class TransportFailure(ClipError):
    """The page itself could not be fetched."""


class NoContentFound(ClipError):
    def __init__(self) -> None:
        super().__init__(
            "No content region found. Use CSS or XPath mode to select the "
            "content explicitly."
        )


class TransportError(Exception):
    """Network-level failure reported by a transport (no HTTP status)."""


class ImageFetchFailure(Exception):
    """A single image could not be localized; the clip carries on."""


class InsertFailure(ClipError):
    """The clipped Markdown could not be written into the note."""
