"""Audio conversion through an external encoder process."""

from __future__ import annotations

import logging
import re
import subprocess
import threading
import unicodedata
from pathlib import Path
from typing import Callable, List, Optional

from .errors import EncodeError, PipelineCancelled
from .links import video_id
from .models import MediaItem

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")
_UNSAFE_ID = re.compile(r"[^A-Za-z0-9_\-]")
_POLL_INTERVAL = 0.2
_STDERR_TAIL = 400


def slugify_name(value: str, fallback: str = "audio") -> str:
    normalized = unicodedata.normalize("NFKD", value).encode("ascii", "ignore").decode("ascii")
    cleaned = _NON_SLUG.sub("-", normalized.lower()).strip("-")
    return cleaned or fallback


def link_stem(link: str) -> str:
    """Filename-safe video id of ``link``, used when a title has no ASCII slug."""
    return _UNSAFE_ID.sub("", video_id(link)) or "audio"


def item_stem(item: MediaItem) -> str:
    return slugify_name(item.display_name, fallback=link_stem(item.source_link))


def build_output_path(
    output_dir: Path,
    display_name: str,
    extension: str = "mp3",
    disambiguator: Optional[str] = None,
    *,
    fallback: str = "audio",
) -> Path:
    stem = slugify_name(display_name, fallback)
    if disambiguator:
        stem = f"{stem}-{disambiguator}"
    suffix = extension if extension.startswith(".") else f".{extension}"
    return Path(output_dir) / f"{stem}{suffix}"


class FFmpegEncoder:
    """Run ``ffmpeg -y -i <input> <output>`` and wait for it."""

    def __init__(self, binary: str = "ffmpeg", *, extra_args: Optional[List[str]] = None) -> None:
        self.binary = binary
        self.extra_args = list(extra_args or [])

    def command(self, input_path: Path, output_path: Path) -> List[str]:
        return [self.binary, "-y", "-i", str(input_path), *self.extra_args, str(output_path)]

    def __call__(
        self,
        input_path: Path,
        output_path: Path,
        *,
        link: str = "",
        cancel_event: Optional[threading.Event] = None,
    ) -> None:
        args = self.command(input_path, output_path)
        try:
            process = subprocess.Popen(
                args,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
                text=True,
                errors="replace",
            )
        except OSError as exc:
            raise EncodeError(link, f"could not start {self.binary}: {exc}") from exc

        stderr = ""
        while True:
            try:
                _, stderr = process.communicate(timeout=_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel_event is not None and cancel_event.is_set():
                    process.kill()
                    process.communicate()
                    _discard_partial(output_path)
                    raise PipelineCancelled(link, "convert")

        if process.returncode != 0:
            tail = (stderr or "").strip()[-_STDERR_TAIL:]
            _discard_partial(output_path)
            reason = f"{self.binary} exited with status {process.returncode}"
            raise EncodeError(link, f"{reason}: {tail}" if tail else reason)


def _discard_partial(output_path: Path) -> None:
    try:
        Path(output_path).unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove partial output %s: %s", output_path, exc)


Encoder = Callable[..., None]


class Transcoder:
    """Produce the final audio artifact from an item's temp payload.

    The temp input is left in place; removing it is the orchestrator's job.
    """

    def __init__(self, encoder: Optional[Encoder] = None, *, extension: str = "mp3") -> None:
        self.encoder = encoder or FFmpegEncoder()
        self.extension = extension.lstrip(".").lower()

    def output_path_for(
        self, item: MediaItem, output_dir: Path, disambiguator: Optional[str] = None
    ) -> Path:
        return build_output_path(
            output_dir,
            item.display_name,
            self.extension,
            disambiguator,
            fallback=link_stem(item.source_link),
        )

    def transcode(
        self,
        item: MediaItem,
        output_dir: Path,
        *,
        disambiguator: Optional[str] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> Path:
        if item.payload_path is None:
            raise EncodeError(item.source_link, "item has no downloaded payload")
        output_path = self.output_path_for(item, output_dir, disambiguator)
        logger.debug("Encoding %s -> %s", item.payload_path, output_path)
        self.encoder(
            item.payload_path,
            output_path,
            link=item.source_link,
            cancel_event=cancel_event,
        )
        return output_path
