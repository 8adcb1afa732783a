"""Batch-scoped release list for temporary payload files."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, Optional

from .errors import CleanupError

logger = logging.getLogger(__name__)


class TempFileRegistry:
    """Tracks every temp file allocated during a batch and removes them once.

    Only the orchestrator thread touches the registry; stage tasks hand their
    paths back through stage messages.
    """

    def __init__(self) -> None:
        self._entries: Dict[Path, str] = {}
        self._released = False

    def register(self, path: Path, *, link: str = "") -> None:
        if self._released:
            raise RuntimeError("registry already released")
        self._entries.setdefault(Path(path), link)

    @property
    def paths(self) -> List[Path]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: object) -> bool:
        return Path(path) in self._entries if isinstance(path, (str, Path)) else False

    def release_all(self, *, scratch_dir: Optional[Path] = None) -> List[CleanupError]:
        """Delete every registered file and collect failures.

        A file that is already gone is reported, not ignored. ``scratch_dir``
        is removed afterwards when it is empty.
        """
        errors: List[CleanupError] = []
        if self._released:
            return errors
        self._released = True
        for path, link in self._entries.items():
            try:
                os.remove(path)
            except FileNotFoundError:
                errors.append(CleanupError(path, "file no longer exists", link=link))
            except OSError as exc:
                errors.append(CleanupError(path, str(exc), link=link))
        if scratch_dir is not None:
            try:
                os.rmdir(scratch_dir)
            except OSError as exc:
                errors.append(CleanupError(Path(scratch_dir), str(exc)))
        for error in errors:
            logger.error("%s", error)
        return errors
