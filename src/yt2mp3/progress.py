"""Progress sinks that observe the pipeline without slowing it down."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional

logger = logging.getLogger(__name__)

STAGE_RESOLVE = "resolve"
STAGE_METADATA = "metadata"
STAGE_DOWNLOAD = "download"
STAGE_CONVERT = "convert"

STAGES = (STAGE_RESOLVE, STAGE_METADATA, STAGE_DOWNLOAD, STAGE_CONVERT)


@dataclass(frozen=True)
class ProgressEvent:
    stage: str
    label: str
    current: int
    total: Optional[int] = None


ProgressSink = Callable[[ProgressEvent], None]


def null_sink(event: ProgressEvent) -> None:
    return None


def logging_sink(event: ProgressEvent) -> None:
    total = event.total if event.total is not None else "?"
    logger.debug("[%s] %s %s/%s", event.stage, event.label, event.current, total)


class RecordingSink:
    """Keeps every event; handy for tests and summaries."""

    def __init__(self) -> None:
        self.events: List[ProgressEvent] = []

    def __call__(self, event: ProgressEvent) -> None:
        self.events.append(event)

    def for_stage(self, stage: str) -> List[ProgressEvent]:
        return [event for event in self.events if event.stage == stage]
