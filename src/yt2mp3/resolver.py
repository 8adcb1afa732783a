"""Resolve a watch link into a directly fetchable stream.

The watch page embeds the player configuration as a JavaScript assignment
(``ytInitialPlayerResponse = {...};``). Unprotected videos list progressive
formats with a plain ``url`` there. Protected videos only carry signature
ciphers, so for those we fall back to ``yt_dlp``.
"""

from __future__ import annotations

import json
import logging
import re
from typing import List, Optional

import yt_dlp
from yt_dlp.utils import DownloadError

from .errors import ResolveError
from .formats import (
    DEFAULT_PROFILE_NAME,
    StreamProfile,
    get_stream_profile,
    select_player_format,
    select_ydl_format,
    ydl_content_type,
)
from .http import HttpClient, HttpStatusError
from .links import normalize_link
from .models import StreamReference
from .ytdl import build_ydl_options

logger = logging.getLogger(__name__)

_PLAYER_RESPONSE = re.compile(r"ytInitialPlayerResponse\s*=\s*(?=\{)")


def extract_player_response(page: str) -> Optional[dict]:
    """Return the decoded player response embedded in ``page``, if any.

    Raises ``ValueError`` when the assignment exists but is not valid JSON.
    """
    match = _PLAYER_RESPONSE.search(page)
    if not match:
        return None
    data, _ = json.JSONDecoder().raw_decode(page, match.end())
    if not isinstance(data, dict):
        raise ValueError("player response is not a JSON object")
    return data


def player_formats(player_response: dict) -> List[object]:
    streaming = player_response.get("streamingData")
    if not isinstance(streaming, dict):
        return []
    formats = streaming.get("formats")
    return formats if isinstance(formats, list) else []


class StreamResolver:
    """Turn a watch link into a ``StreamReference``.

    ``resolve`` returns ``None`` when neither strategy found a stream and
    raises ``ResolveError`` on network or parsing failures.
    """

    def __init__(
        self,
        http: HttpClient,
        *,
        profile: Optional[StreamProfile] = None,
        use_fallback: bool = True,
        js_runtime: Optional[str] = None,
        remote_components: Optional[List[str]] = None,
    ) -> None:
        self.http = http
        self.profile = profile or get_stream_profile(DEFAULT_PROFILE_NAME)
        self.use_fallback = use_fallback
        self.js_runtime = js_runtime
        self.remote_components = list(remote_components or [])

    def resolve(self, link: str) -> Optional[StreamReference]:
        page_url = normalize_link(link)
        reference = self._from_page(link, page_url)
        if reference is not None:
            return reference
        if not self.use_fallback:
            return None
        logger.debug("No direct stream in page for %s, trying yt_dlp", link)
        return self._from_ytdl(link, page_url)

    def _from_page(self, link: str, page_url: str) -> Optional[StreamReference]:
        try:
            page = self.http.get_text(page_url)
        except (HttpStatusError, OSError) as exc:
            raise ResolveError(link, str(exc)) from exc

        try:
            player_response = extract_player_response(page)
        except ValueError as exc:
            raise ResolveError(link, f"malformed player response: {exc}") from exc
        if player_response is None:
            return None

        selected = select_player_format(player_formats(player_response), self.profile)
        if selected is None:
            return None
        return StreamReference(url=selected["url"], content_type=selected["mimeType"])

    def _from_ytdl(self, link: str, page_url: str) -> Optional[StreamReference]:
        opts = build_ydl_options(
            js_runtime=self.js_runtime, remote_components=self.remote_components
        )
        try:
            with yt_dlp.YoutubeDL(opts) as ydl:
                info = ydl.extract_info(page_url, download=False)
        except DownloadError as exc:
            raise ResolveError(link, str(exc)) from exc
        if not info:
            return None
        selected = select_ydl_format(info.get("formats") or [], self.profile)
        if selected is None:
            return None
        return StreamReference(url=selected["url"], content_type=ydl_content_type(selected))
