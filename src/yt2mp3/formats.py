"""Stream format profiles used to pick a downloadable format."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Sequence, Tuple


@dataclass(frozen=True)
class StreamProfile:
    """Which progressive formats are acceptable, best first."""

    name: str
    quality_labels: Tuple[str, ...]
    container: str = "mp4"

    @property
    def mime_prefix(self) -> str:
        return f"video/{self.container}"

    def label_rank(self, label: Optional[str]) -> Optional[int]:
        if not label:
            return None
        try:
            return self.quality_labels.index(label)
        except ValueError:
            return None


DEFAULT_PROFILE_NAME = "standard"


STREAM_PROFILE_MAP: Mapping[str, StreamProfile] = {
    "standard": StreamProfile(name="standard", quality_labels=("360p", "240p")),
    "high": StreamProfile(name="high", quality_labels=("720p", "480p", "360p")),
    "data_saving": StreamProfile(name="data_saving", quality_labels=("240p", "144p")),
}


STREAM_PROFILES = tuple(STREAM_PROFILE_MAP.keys())


def get_stream_profile(name: Optional[str]) -> StreamProfile:
    if not name:
        name = DEFAULT_PROFILE_NAME
    return STREAM_PROFILE_MAP.get(name.lower(), STREAM_PROFILE_MAP[DEFAULT_PROFILE_NAME])


def profile_from_labels(labels: Sequence[str], *, container: str = "mp4") -> StreamProfile:
    cleaned = tuple(label.strip() for label in labels if label.strip())
    if not cleaned:
        return STREAM_PROFILE_MAP[DEFAULT_PROFILE_NAME]
    return StreamProfile(name="custom", quality_labels=cleaned, container=container)


def select_player_format(
    formats: Iterable[object], profile: StreamProfile
) -> Optional[dict]:
    """Pick the embedded player format whose label ranks best in ``profile``.

    Among equally ranked formats the first one on the page wins.

    Entries missing ``url``, ``mimeType`` or ``qualityLabel`` (or holding
    non-string values there) are skipped. Signature-protected formats carry no
    ``url`` and therefore never match.
    """
    best: Optional[Tuple[int, dict]] = None
    for candidate in formats:
        if not isinstance(candidate, dict):
            continue
        url = candidate.get("url")
        mime_type = candidate.get("mimeType")
        label = candidate.get("qualityLabel")
        if not isinstance(url, str) or not isinstance(mime_type, str) or not isinstance(label, str):
            continue
        rank = profile.label_rank(label)
        if rank is None or not mime_type.startswith(profile.mime_prefix):
            continue
        if best is None or rank < best[0]:
            best = (rank, candidate)
    return best[1] if best else None


def select_ydl_format(formats: Iterable[dict], profile: StreamProfile) -> Optional[dict]:
    """Pick a ``yt_dlp`` format carrying audio, favouring the profile's labels."""
    candidates = [
        candidate
        for candidate in formats
        if candidate.get("url") and candidate.get("acodec") not in (None, "none")
    ]
    if not candidates:
        return None

    progressive: List[Tuple[int, dict]] = []
    for candidate in candidates:
        if (candidate.get("ext") or "").lower() != profile.container:
            continue
        rank = profile.label_rank(_ydl_label(candidate))
        if rank is not None:
            progressive.append((rank, candidate))
    if progressive:
        progressive.sort(key=lambda pair: pair[0])
        return progressive[0][1]

    candidates.sort(key=_audio_score, reverse=True)
    return candidates[0]


def ydl_content_type(candidate: dict) -> str:
    ext = (candidate.get("ext") or "").lower()
    if not ext:
        return ""
    if candidate.get("vcodec") in (None, "none"):
        return f"audio/{ext}"
    return f"video/{ext}"


def _ydl_label(candidate: dict) -> Optional[str]:
    note = candidate.get("format_note")
    if isinstance(note, str) and note.endswith("p"):
        return note
    height = candidate.get("height")
    if isinstance(height, int) and height > 0:
        return f"{height}p"
    return None


def _audio_score(candidate: dict) -> Tuple[float, float]:
    abr = candidate.get("abr") or 0.0
    tbr = candidate.get("tbr") or 0.0
    return float(abr), float(tbr)
