"""Configuration helpers that read runtime defaults from the environment."""

from __future__ import annotations

import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .formats import DEFAULT_PROFILE_NAME, get_stream_profile

USER_ROOT = Path.cwd().resolve()

if os.getenv("YT2MP3_SKIP_DOTENV") != "1":
    load_dotenv(dotenv_path=USER_ROOT / ".env")


def _env_path(env_var: str, fallback: Optional[Path]) -> Optional[Path]:
    value = os.getenv(env_var)
    if not value:
        return fallback
    candidate = Path(value).expanduser()
    if candidate.is_absolute():
        return candidate
    return (USER_ROOT / candidate).resolve()


def _env_list(env_var: str) -> List[str]:
    value = os.getenv(env_var)
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _env_int(env_var: str, default: int) -> int:
    value = os.getenv(env_var)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        return default


def _env_float(env_var: str, default: float) -> float:
    value = os.getenv(env_var)
    if not value:
        return default
    try:
        return float(value)
    except ValueError:
        return default


def _detect_js_runtime() -> Optional[str]:
    for candidate in ("node", "deno"):
        if shutil.which(candidate):
            return candidate
    return None


@dataclass(frozen=True)
class PipelineDefaults:
    output_dir: Path
    audio_format: str
    encoder: str
    max_workers: int
    chunk_size: int
    request_timeout: float
    temp_dir: Optional[Path]
    profile: str
    quality_labels: List[str]
    js_runtime: Optional[str]
    remote_components: List[str]
    log_level: str


def load_defaults() -> PipelineDefaults:
    profile = get_stream_profile(os.getenv("YT2MP3_PROFILE", DEFAULT_PROFILE_NAME))
    # explicit labels win over the named profile
    quality_labels = _env_list("YT2MP3_QUALITY_LABELS") or list(profile.quality_labels)
    return PipelineDefaults(
        output_dir=_env_path("YT2MP3_OUTPUT_DIR", Path.cwd()),
        audio_format=os.getenv("YT2MP3_AUDIO_FORMAT", "mp3").lstrip(".").lower(),
        encoder=os.getenv("YT2MP3_ENCODER", "ffmpeg"),
        max_workers=_env_int("YT2MP3_MAX_WORKERS", 8),
        chunk_size=_env_int("YT2MP3_CHUNK_SIZE", 64 * 1024),
        request_timeout=_env_float("YT2MP3_REQUEST_TIMEOUT", 30.0),
        temp_dir=_env_path("YT2MP3_TEMP_DIR", None),
        profile=profile.name,
        quality_labels=quality_labels,
        js_runtime=os.getenv("YT2MP3_JS_RUNTIME") or _detect_js_runtime(),
        remote_components=_env_list("YT2MP3_REMOTE_COMPONENTS"),
        log_level=os.getenv("YT2MP3_LOG_LEVEL", "INFO").upper(),
    )
