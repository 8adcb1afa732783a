"""Link validation and normalization for YouTube video URLs."""

from __future__ import annotations

import urllib.parse
from typing import Iterable, List, Optional, Tuple

from .errors import InvalidLink

PREFIX_LONG = "https://www.youtube.com/"
PREFIX_SHORT = "https://youtu.be/"


def check_link(link: str) -> Optional[InvalidLink]:
    """Return an ``InvalidLink`` describing the problem, or ``None`` when usable."""
    try:
        parsed = urllib.parse.urlsplit(link)
    except ValueError as exc:
        return InvalidLink(link, str(exc))
    if not parsed.scheme or not parsed.netloc:
        return InvalidLink(link, "not an absolute URL")
    if not link.startswith(PREFIX_LONG) and not link.startswith(PREFIX_SHORT):
        return InvalidLink(
            link,
            "not a YouTube video link. Expected formats: "
            f'"{PREFIX_LONG}watch?v=<video_id>" or "{PREFIX_SHORT}<video_id>"',
        )
    return None


def is_valid_link(link: str) -> bool:
    return check_link(link) is None


def validate_links(links: Iterable[str]) -> Tuple[List[str], List[InvalidLink]]:
    """Split ``links`` into the accepted ones and one error per rejected link."""
    accepted: List[str] = []
    rejected: List[InvalidLink] = []
    for raw in links:
        link = raw.strip()
        problem = check_link(link)
        if problem is None:
            accepted.append(link)
        else:
            rejected.append(problem)
    return accepted, rejected


def normalize_link(link: str) -> str:
    """Drop every query parameter except ``v``."""
    parsed = urllib.parse.urlsplit(link)
    query = [
        (key, value)
        for key, value in urllib.parse.parse_qsl(parsed.query, keep_blank_values=True)
        if key == "v"
    ]
    return urllib.parse.urlunsplit(
        (parsed.scheme, parsed.netloc, parsed.path, urllib.parse.urlencode(query), "")
    )


def video_id(link: str) -> str:
    parsed = urllib.parse.urlsplit(link)
    if parsed.netloc == "youtu.be":
        segments = [segment for segment in parsed.path.split("/") if segment]
        return segments[0] if segments else ""
    values = urllib.parse.parse_qs(parsed.query).get("v")
    if values:
        return values[0]
    segments = [segment for segment in parsed.path.split("/") if segment]
    # /shorts/<id>, /embed/<id>, /live/<id>
    if len(segments) >= 2:
        return segments[-1]
    return ""
