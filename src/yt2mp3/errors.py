"""Error hierarchy shared by every pipeline stage."""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class PipelineError(Exception):
    """Base error for the yt2mp3 pipeline."""

    def __init__(self, message: str, *, link: str = "") -> None:
        super().__init__(message)
        self.link = link
        self.message = message

    def __str__(self) -> str:
        return self.message


class ConfigurationError(PipelineError):
    """Raised before any stage runs when the batch cannot be started."""


class InvalidLink(PipelineError):
    """Raised when a link fails syntactic or domain validation."""

    def __init__(self, link: str, reason: str) -> None:
        super().__init__(f'link "{link}" has an issue: {reason}', link=link)
        self.reason = reason


class StreamNotFound(PipelineError):
    """Resolution finished but produced no usable stream."""

    def __init__(self, link: str) -> None:
        super().__init__(f'No playable stream found for link "{link}"', link=link)


class ResolveError(PipelineError):
    """Network or parsing failure while resolving a stream."""

    def __init__(self, link: str, reason: str) -> None:
        super().__init__(
            f'Failed to get a stream URL for link "{link}": {reason}', link=link
        )
        self.reason = reason


class MetadataError(PipelineError):
    def __init__(self, link: str, reason: str) -> None:
        super().__init__(f'Failed to fetch metadata for link "{link}": {reason}', link=link)
        self.reason = reason


class TransferError(PipelineError):
    """The payload could not be opened or copied completely.

    ``path`` points at the (possibly partial) temp file, if one was allocated.
    """

    def __init__(self, link: str, reason: str, *, path: Optional[Path] = None) -> None:
        super().__init__(f'Failed to download stream for link "{link}": {reason}', link=link)
        self.reason = reason
        self.path = path


class EncodeError(PipelineError):
    def __init__(self, link: str, reason: str) -> None:
        super().__init__(f'Failed to convert audio for link "{link}": {reason}', link=link)
        self.reason = reason


class CleanupError(PipelineError):
    """A temp file could not be removed at teardown."""

    def __init__(self, path: Path, reason: str, *, link: str = "") -> None:
        super().__init__(f'Failed to remove temporary file "{path}": {reason}', link=link)
        self.path = path
        self.reason = reason


class PipelineCancelled(PipelineError):
    """The batch-wide cancellation signal fired while the item was in flight."""

    def __init__(self, link: str, stage: str, *, path: Optional[Path] = None) -> None:
        super().__init__(f'Cancelled during {stage} for link "{link}"', link=link)
        self.stage = stage
        self.path = path
