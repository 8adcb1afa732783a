"""Copy a remote stream into a local temporary file."""

from __future__ import annotations

import logging
import mimetypes
import os
import tempfile
import threading
from pathlib import Path
from typing import Callable, Optional

from .errors import PipelineCancelled, TransferError
from .http import HttpClient
from .models import MediaItem, StreamReference

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024
TEMP_PREFIX = "yt2mp3-"

BytesCallback = Callable[[int, Optional[int]], None]

_MEDIA_SUFFIXES = {
    "video/mp4": ".mp4",
    "video/webm": ".webm",
    "audio/mp4": ".m4a",
    "audio/webm": ".webm",
    "audio/mpeg": ".mp3",
}


def suffix_for(content_type: str) -> str:
    base = content_type.split(";", 1)[0].strip().lower()
    if not base:
        return ".bin"
    if base in _MEDIA_SUFFIXES:
        return _MEDIA_SUFFIXES[base]
    guessed = mimetypes.guess_extension(base)
    if guessed:
        return guessed
    _, _, subtype = base.partition("/")
    return f".{subtype}" if subtype.isalnum() else ".bin"


class PayloadFetcher:
    """Stream ``item.stream`` into a fresh temp file under ``temp_dir``.

    ``open_stream`` is the transfer boundary: given a ``StreamReference`` it
    returns a readable, closable byte stream. It defaults to ``HttpClient.open``.
    """

    def __init__(
        self,
        http: Optional[HttpClient] = None,
        *,
        open_stream: Optional[Callable[[StreamReference], object]] = None,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        if open_stream is None:
            client = http or HttpClient()

            def open_stream(reference: StreamReference):
                return client.open(reference.url)

        self._open_stream = open_stream
        self.chunk_size = chunk_size

    def fetch(
        self,
        item: MediaItem,
        temp_dir: Path,
        *,
        on_bytes_transferred: Optional[BytesCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Path:
        """Download the payload and return the temp file path.

        Raises ``TransferError`` (or ``PipelineCancelled``) with ``path`` set
        once a file has been allocated, so the caller can still remove it.
        """
        if not item.has_stream():
            raise TransferError(item.source_link, "item has no resolved stream")
        reference = item.stream
        fd, name = tempfile.mkstemp(
            prefix=TEMP_PREFIX, suffix=suffix_for(reference.content_type), dir=temp_dir
        )
        path = Path(name)
        os.close(fd)
        try:
            self._copy(item, reference, path, on_bytes_transferred, cancel_event)
        except (TransferError, PipelineCancelled) as exc:
            if exc.path is None:
                exc.path = path
            raise
        except Exception as exc:
            raise TransferError(item.source_link, str(exc) or exc.__class__.__name__, path=path) from exc
        return path

    def _copy(
        self,
        item: MediaItem,
        reference: StreamReference,
        path: Path,
        on_bytes_transferred: Optional[BytesCallback],
        cancel_event: Optional[threading.Event],
    ) -> None:
        stream = self._open_stream(reference)
        try:
            total = _content_length(stream)
            transferred = 0
            with open(path, "wb") as out:
                while True:
                    if cancel_event is not None and cancel_event.is_set():
                        raise PipelineCancelled(item.source_link, "download", path=path)
                    chunk = stream.read(self.chunk_size)
                    if not chunk:
                        break
                    out.write(chunk)
                    transferred += len(chunk)
                    if on_bytes_transferred:
                        on_bytes_transferred(transferred, total)
            if total is not None and transferred < total:
                raise TransferError(
                    item.source_link,
                    f"stream ended after {transferred} of {total} bytes",
                    path=path,
                )
            logger.debug("Downloaded %d bytes for %s into %s", transferred, item.source_link, path)
        finally:
            close = getattr(stream, "close", None)
            if close:
                close()


def _content_length(stream) -> Optional[int]:
    getheader = getattr(stream, "getheader", None)
    if getheader is None:
        return None
    value = getheader("Content-Length")
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None
