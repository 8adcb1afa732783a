"""Data carried through the pipeline stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Generic, List, Optional, Tuple, TypeVar, Union

from .errors import CleanupError, PipelineError

T = TypeVar("T")


@dataclass(frozen=True)
class StreamReference:
    """Fetchable locator for the remote media payload."""

    url: str
    content_type: str = ""


class ItemState(Enum):
    PENDING = "pending"
    RESOLVED = "resolved"
    METADATA_LOADED = "metadata_loaded"
    DOWNLOADED = "downloaded"
    CONVERTED = "converted"
    RESOLVE_FAILED = "resolve_failed"
    METADATA_FAILED = "metadata_failed"
    DOWNLOAD_FAILED = "download_failed"
    CONVERT_FAILED = "convert_failed"

    @property
    def is_failure(self) -> bool:
        return self.value.endswith("_failed")


@dataclass
class MediaItem:
    """One link's in-flight state.

    Only the task running the current stage for this item writes to it; the
    orchestrator takes ownership back at each join.
    """

    source_link: str
    display_name: str = ""
    stream: Optional[StreamReference] = None
    payload_path: Optional[Path] = None
    output_path: Optional[Path] = None
    state: ItemState = ItemState.PENDING

    def has_stream(self) -> bool:
        return self.stream is not None and bool(self.stream.url)

    @property
    def label(self) -> str:
        return self.display_name or self.source_link


@dataclass(frozen=True)
class StageSuccess(Generic[T]):
    value: T


@dataclass(frozen=True)
class StageFailure:
    error: PipelineError
    link: str


StageMessage = Union[StageSuccess[T], StageFailure]


@dataclass(frozen=True)
class ItemOutcome:
    """Terminal result of one item: an artifact path or a typed error."""

    link: str
    artifact: Optional[Path] = None
    error: Optional[PipelineError] = None

    @property
    def succeeded(self) -> bool:
        return self.error is None


@dataclass
class PipelineResult:
    """Everything a batch produced, in completion order."""

    outcomes: List[ItemOutcome] = field(default_factory=list)
    cleanup_errors: List[CleanupError] = field(default_factory=list)
    temp_files: List[Path] = field(default_factory=list)
    stage_counts: Dict[str, Tuple[int, int]] = field(default_factory=dict)

    @property
    def artifacts(self) -> List[Path]:
        return [outcome.artifact for outcome in self.outcomes if outcome.artifact is not None]

    @property
    def item_errors(self) -> List[PipelineError]:
        return [outcome.error for outcome in self.outcomes if outcome.error is not None]

    @property
    def errors(self) -> List[PipelineError]:
        return [*self.item_errors, *self.cleanup_errors]

    @property
    def ok(self) -> bool:
        return not self.errors
