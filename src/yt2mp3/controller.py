"""Turns a user request into a configured pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from .errors import InvalidLink, PipelineError
from .formats import DEFAULT_PROFILE_NAME, STREAM_PROFILE_MAP, profile_from_labels
from .http import HttpClient
from .links import validate_links
from .metadata import MetadataFetcher
from .models import PipelineResult
from .orchestrator import DEFAULT_MAX_WORKERS, PipelineOrchestrator
from .progress import ProgressSink
from .resolver import StreamResolver
from .transcoder import FFmpegEncoder, Transcoder
from .transfer import DEFAULT_CHUNK_SIZE, PayloadFetcher


@dataclass(frozen=True)
class ConversionRequest:
    """Describes which links to convert and where the audio should land."""

    links: List[str]
    output_dir: Optional[Path] = None
    audio_format: str = "mp3"
    encoder: str = "ffmpeg"
    max_workers: int = DEFAULT_MAX_WORKERS
    chunk_size: int = DEFAULT_CHUNK_SIZE
    request_timeout: float = 30.0
    temp_dir: Optional[Path] = None
    quality_labels: List[str] = field(
        default_factory=lambda: list(STREAM_PROFILE_MAP[DEFAULT_PROFILE_NAME].quality_labels)
    )
    js_runtime: Optional[str] = None
    remote_components: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ConversionReport:
    """Summary produced for a request: rejected links plus the pipeline result."""

    rejected: List[InvalidLink]
    result: PipelineResult

    @property
    def artifacts(self) -> List[Path]:
        return self.result.artifacts

    @property
    def errors(self) -> List[PipelineError]:
        return [*self.rejected, *self.result.errors]

    @property
    def ok(self) -> bool:
        return not self.errors


def build_orchestrator(
    request: ConversionRequest, *, progress: Optional[ProgressSink] = None
) -> PipelineOrchestrator:
    """Wire the default collaborators around a single shared ``HttpClient``."""
    http = HttpClient(timeout=request.request_timeout)
    return PipelineOrchestrator(
        StreamResolver(
            http,
            profile=profile_from_labels(request.quality_labels),
            js_runtime=request.js_runtime,
            remote_components=request.remote_components,
        ),
        MetadataFetcher(
            js_runtime=request.js_runtime,
            remote_components=request.remote_components,
        ),
        PayloadFetcher(http, chunk_size=request.chunk_size),
        Transcoder(FFmpegEncoder(request.encoder), extension=request.audio_format),
        output_dir=Path(request.output_dir or Path.cwd()),
        max_workers=request.max_workers,
        temp_dir=request.temp_dir,
        progress=progress,
    )


def convert_links(
    request: ConversionRequest,
    *,
    orchestrator: Optional[PipelineOrchestrator] = None,
    progress: Optional[ProgressSink] = None,
) -> ConversionReport:
    """Validate the links, run the pipeline on the accepted ones and report."""
    accepted, rejected = validate_links(request.links)
    runner = orchestrator or build_orchestrator(request, progress=progress)
    result = runner.run(accepted)
    return ConversionReport(rejected=rejected, result=result)
