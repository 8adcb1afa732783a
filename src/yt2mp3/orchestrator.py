"""Drive a batch of links through resolve, metadata, download and convert.

Each stage fans out one task per eligible item on a bounded thread pool and
joins on exactly the futures it dispatched before the next stage starts.
Tasks never raise: every one of them produces a single ``StageMessage``.
Temp files are registered at the download join and removed when the batch
ends, whatever happened to the item afterwards.
"""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .cleanup import TempFileRegistry
from .errors import (
    ConfigurationError,
    EncodeError,
    MetadataError,
    PipelineCancelled,
    PipelineError,
    ResolveError,
    StreamNotFound,
    TransferError,
)
from .metadata import MetadataFetcher
from .models import (
    ItemOutcome,
    ItemState,
    MediaItem,
    PipelineResult,
    StageFailure,
    StageMessage,
    StageSuccess,
)
from .progress import (
    STAGE_CONVERT,
    STAGE_DOWNLOAD,
    STAGE_METADATA,
    STAGE_RESOLVE,
    ProgressEvent,
    ProgressSink,
    logging_sink,
)
from .resolver import StreamResolver
from .transcoder import Transcoder, item_stem, link_stem
from .transfer import PayloadFetcher

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8

_FAILED_STATES = {
    STAGE_RESOLVE: ItemState.RESOLVE_FAILED,
    STAGE_METADATA: ItemState.METADATA_FAILED,
    STAGE_DOWNLOAD: ItemState.DOWNLOAD_FAILED,
    STAGE_CONVERT: ItemState.CONVERT_FAILED,
}

_STAGE_ERRORS: Dict[str, Callable[[str, str], PipelineError]] = {
    STAGE_RESOLVE: ResolveError,
    STAGE_METADATA: MetadataError,
    STAGE_DOWNLOAD: TransferError,
    STAGE_CONVERT: EncodeError,
}


def plan_disambiguators(items: Sequence[MediaItem]) -> List[Optional[str]]:
    """Return one filename suffix per item so that output names never collide.

    Titles without an ASCII slug are named after their video id instead.
    Items with a unique slug get ``None``. Items sharing a slug are suffixed
    with their video id, and with a counter when the id repeats too.
    """
    stems: List[str] = [item_stem(item) for item in items]
    counts: Dict[str, int] = {}
    for stem in stems:
        counts[stem] = counts.get(stem, 0) + 1

    plan: List[Optional[str]] = [None] * len(items)
    taken = {stem for stem in stems if counts[stem] == 1}
    for index, item in enumerate(items):
        stem = stems[index]
        if counts[stem] == 1:
            continue
        base = link_stem(item.source_link)
        suffix = base
        counter = 1
        while f"{stem}-{suffix}" in taken:
            counter += 1
            suffix = f"{base}-{counter}"
        taken.add(f"{stem}-{suffix}")
        plan[index] = suffix
    return plan


class PipelineOrchestrator:
    """Runs one batch. Create a new instance per invocation."""

    def __init__(
        self,
        resolver: StreamResolver,
        metadata: MetadataFetcher,
        fetcher: PayloadFetcher,
        transcoder: Transcoder,
        *,
        output_dir: Path,
        max_workers: int = DEFAULT_MAX_WORKERS,
        temp_dir: Optional[Path] = None,
        progress: Optional[ProgressSink] = None,
    ) -> None:
        self.resolver = resolver
        self.metadata = metadata
        self.fetcher = fetcher
        self.transcoder = transcoder
        self.output_dir = Path(output_dir).expanduser()
        self.max_workers = max_workers
        self.temp_dir = Path(temp_dir).expanduser() if temp_dir else None
        self.progress = progress or logging_sink
        self._cancel_event = threading.Event()
        self._started = False
        self._scratch_dir: Optional[Path] = None
        self._plan: Dict[int, Optional[str]] = {}

    def cancel(self) -> None:
        """Ask in-flight tasks to stop; they report ``PipelineCancelled``."""
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def run(self, links: Iterable[str]) -> PipelineResult:
        if self._started:
            raise RuntimeError("PipelineOrchestrator instances run a single batch")
        self._started = True
        self._check_configuration()

        result = PipelineResult()
        registry = TempFileRegistry()
        self._scratch_dir = self._make_scratch_dir()
        try:
            items = [MediaItem(source_link=link) for link in links]
            logger.info("Starting batch of %d link(s)", len(items))

            resolved = self._run_stage(STAGE_RESOLVE, items, self._resolve, result)
            named = self._run_stage(STAGE_METADATA, resolved, self._load_metadata, result)
            downloaded = self._run_stage(
                STAGE_DOWNLOAD, named, self._download, result, registry=registry
            )
            self._plan = {
                id(item): suffix
                for item, suffix in zip(downloaded, plan_disambiguators(downloaded))
            }
            converted = self._run_stage(STAGE_CONVERT, downloaded, self._convert, result)
            for item in converted:
                result.outcomes.append(ItemOutcome(link=item.source_link, artifact=item.output_path))
        finally:
            result.temp_files = registry.paths
            result.cleanup_errors.extend(registry.release_all(scratch_dir=self._scratch_dir))

        logger.info(
            "Batch finished: %d artifact(s), %d error(s)",
            len(result.artifacts),
            len(result.errors),
        )
        return result

    def _check_configuration(self) -> None:
        if self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be at least 1, got {self.max_workers}")
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise ConfigurationError(
                f'output directory "{self.output_dir}" cannot be created: {exc}'
            ) from exc
        if not self.output_dir.is_dir():
            raise ConfigurationError(f'output path "{self.output_dir}" is not a directory')
        if not os.access(self.output_dir, os.W_OK):
            raise ConfigurationError(f'output directory "{self.output_dir}" is not writable')

    def _make_scratch_dir(self) -> Path:
        try:
            return Path(tempfile.mkdtemp(prefix="yt2mp3-", dir=self.temp_dir))
        except OSError as exc:
            raise ConfigurationError(
                f'temporary directory "{self.temp_dir}" is unusable: {exc}'
            ) from exc

    def _run_stage(
        self,
        stage: str,
        items: List[MediaItem],
        task: Callable[[MediaItem], MediaItem],
        result: PipelineResult,
        *,
        registry: Optional[TempFileRegistry] = None,
    ) -> List[MediaItem]:
        """Fan out ``task`` over ``items`` and join on every dispatched future."""
        survivors: List[MediaItem] = []
        if not items:
            result.stage_counts[stage] = (0, 0)
            return survivors

        logger.info("Stage %s: dispatching %d task(s)", stage, len(items))
        received = 0
        workers = min(self.max_workers, len(items))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"yt2mp3-{stage}") as executor:
            futures = {executor.submit(self._guarded, stage, task, item): item for item in items}
            for future in as_completed(futures):
                item = futures[future]
                message = future.result()
                received += 1
                accepted = self._accept(stage, item, message, result, registry)
                if accepted is not None:
                    survivors.append(accepted)

        result.stage_counts[stage] = (len(futures), received)
        logger.info(
            "Stage %s finished: %d passed, %d failed",
            stage,
            len(survivors),
            received - len(survivors),
        )
        return survivors

    def _guarded(
        self, stage: str, task: Callable[[MediaItem], MediaItem], item: MediaItem
    ) -> StageMessage[MediaItem]:
        link = item.source_link
        if self._cancel_event.is_set():
            return StageFailure(error=PipelineCancelled(link, stage), link=link)
        self._emit(stage, item, 0, 1)
        try:
            value = task(item)
        except PipelineError as exc:
            return StageFailure(error=exc, link=link)
        except Exception as exc:
            logger.exception("Unexpected failure during %s for %s", stage, link)
            error = _STAGE_ERRORS[stage](link, str(exc) or exc.__class__.__name__)
            error.__cause__ = exc
            return StageFailure(error=error, link=link)
        if self._cancel_event.is_set() and stage != STAGE_CONVERT:
            path = item.payload_path if stage == STAGE_DOWNLOAD else None
            return StageFailure(error=PipelineCancelled(link, stage, path=path), link=link)
        self._emit(stage, value, 1, 1)
        return StageSuccess(value=value)

    def _accept(
        self,
        stage: str,
        item: MediaItem,
        message: StageMessage[MediaItem],
        result: PipelineResult,
        registry: Optional[TempFileRegistry],
    ) -> Optional[MediaItem]:
        if isinstance(message, StageFailure):
            error = message.error
            path = getattr(error, "path", None)
            if registry is not None and path is not None:
                registry.register(path, link=item.source_link)
            return self._fail(stage, item, error, result)

        value = message.value
        if stage == STAGE_RESOLVE and not value.has_stream():
            return self._fail(stage, item, StreamNotFound(item.source_link), result)
        if registry is not None and value.payload_path is not None:
            registry.register(value.payload_path, link=value.source_link)
        return value

    def _fail(
        self, stage: str, item: MediaItem, error: PipelineError, result: PipelineResult
    ) -> None:
        item.state = _FAILED_STATES[stage]
        logger.warning("%s", error)
        result.outcomes.append(ItemOutcome(link=item.source_link, error=error))
        return None

    def _resolve(self, item: MediaItem) -> MediaItem:
        item.stream = self.resolver.resolve(item.source_link)
        if item.has_stream():
            item.state = ItemState.RESOLVED
        return item

    def _load_metadata(self, item: MediaItem) -> MediaItem:
        name = self.metadata.fetch_name(item)
        if not name or not name.strip():
            raise MetadataError(item.source_link, "empty display name")
        item.display_name = name.strip()
        item.state = ItemState.METADATA_LOADED
        return item

    def _download(self, item: MediaItem) -> MediaItem:
        def on_bytes(transferred: int, total: Optional[int] = None) -> None:
            self._emit(STAGE_DOWNLOAD, item, transferred, total)

        item.payload_path = self.fetcher.fetch(
            item,
            self._scratch_dir,
            on_bytes_transferred=on_bytes,
            cancel_event=self._cancel_event,
        )
        item.state = ItemState.DOWNLOADED
        return item

    def _convert(self, item: MediaItem) -> MediaItem:
        item.output_path = self.transcoder.transcode(
            item,
            self.output_dir,
            disambiguator=self._plan.get(id(item)),
            cancel_event=self._cancel_event,
        )
        item.state = ItemState.CONVERTED
        return item

    def _emit(self, stage: str, item: MediaItem, current: int, total: Optional[int]) -> None:
        try:
            self.progress(ProgressEvent(stage=stage, label=item.label, current=current, total=total))
        except Exception:
            logger.exception("Progress sink failed for %s", item.source_link)
