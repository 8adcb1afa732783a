"""Display-name lookup for resolved items."""

from __future__ import annotations

from typing import List, Optional

import yt_dlp
from yt_dlp.utils import DownloadError

from .errors import MetadataError
from .links import normalize_link
from .models import MediaItem
from .ytdl import build_ydl_options


class MetadataFetcher:
    """Ask ``yt_dlp`` for the video title without processing formats."""

    def __init__(
        self,
        *,
        js_runtime: Optional[str] = None,
        remote_components: Optional[List[str]] = None,
    ) -> None:
        self.js_runtime = js_runtime
        self.remote_components = list(remote_components or [])

    def fetch_name(self, item: MediaItem) -> str:
        opts = build_ydl_options(
            js_runtime=self.js_runtime, remote_components=self.remote_components
        )
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(
                    normalize_link(item.source_link), download=False, process=False
                )
        except DownloadError as exc:
            raise MetadataError(item.source_link, str(exc)) from exc
        title = (info or {}).get("title")
        if not isinstance(title, str) or not title.strip():
            raise MetadataError(item.source_link, "no title in video metadata")
        return title.strip()
