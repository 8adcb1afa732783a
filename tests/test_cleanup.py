from pathlib import Path

import pytest

from yt2mp3 import CleanupError, TempFileRegistry


def test_release_all_removes_each_file(tmp_path: Path) -> None:
    first = tmp_path / "a.tmp"
    second = tmp_path / "b.tmp"
    first.write_bytes(b"1")
    second.write_bytes(b"2")
    registry = TempFileRegistry()
    registry.register(first, link="https://youtu.be/a")
    registry.register(second)
    registry.register(first)

    assert len(registry) == 2
    assert first in registry
    assert registry.release_all() == []
    assert not first.exists()
    assert not second.exists()


def test_release_all_reports_missing_file(tmp_path: Path) -> None:
    registry = TempFileRegistry()
    registry.register(tmp_path / "gone.tmp", link="https://youtu.be/a")
    errors = registry.release_all()
    assert len(errors) == 1
    assert isinstance(errors[0], CleanupError)
    assert errors[0].link == "https://youtu.be/a"
    assert errors[0].path == tmp_path / "gone.tmp"


def test_release_all_runs_once(tmp_path: Path) -> None:
    path = tmp_path / "a.tmp"
    path.write_bytes(b"1")
    registry = TempFileRegistry()
    registry.register(path)
    registry.release_all()
    assert registry.release_all() == []
    with pytest.raises(RuntimeError):
        registry.register(path)


def test_release_all_removes_empty_scratch_dir(tmp_path: Path) -> None:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    path = scratch / "a.tmp"
    path.write_bytes(b"1")
    registry = TempFileRegistry()
    registry.register(path)
    assert registry.release_all(scratch_dir=scratch) == []
    assert not scratch.exists()


def test_release_all_reports_leftover_in_scratch_dir(tmp_path: Path) -> None:
    scratch = tmp_path / "scratch"
    scratch.mkdir()
    (scratch / "unregistered.tmp").write_bytes(b"1")
    errors = TempFileRegistry().release_all(scratch_dir=scratch)
    assert len(errors) == 1
    assert errors[0].path == scratch
