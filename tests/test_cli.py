import asyncio
import threading
from pathlib import Path

import pytest

import yt2mp3.cli as cli
from yt2mp3 import ConfigurationError, ConversionReport, InvalidLink, ItemOutcome, PipelineResult


def test_parse_args_splits_comma_separated_links() -> None:
    args = cli.parse_args(["-l", "https://youtu.be/a,https://youtu.be/b", "--links", "https://youtu.be/c"])
    assert args.links == ["https://youtu.be/a", "https://youtu.be/b", "https://youtu.be/c"]


def test_parse_args_options(tmp_path: Path) -> None:
    args = cli.parse_args(
        [
            "-l",
            "https://youtu.be/a",
            "--output-dir",
            str(tmp_path),
            "--max-workers",
            "2",
            "--quality",
            "480p",
            "360p",
            "--remote-components",
            "ejs:github",
        ]
    )
    assert args.output_dir == tmp_path
    assert args.max_workers == 2
    assert args.quality == ["480p", "360p"]
    assert "ejs:github" in args.remote_components


def test_parse_args_default_quality() -> None:
    args = cli.parse_args(["-l", "https://youtu.be/a"])
    assert args.quality


def test_parse_args_profile_sets_quality() -> None:
    args = cli.parse_args(["-l", "https://youtu.be/a", "--profile", "data_saving"])
    assert args.quality == ["240p", "144p"]

    args = cli.parse_args(["-l", "https://youtu.be/a", "--profile", "high", "--quality", "1080p"])
    assert args.quality == ["1080p"]


def test_parse_args_rejects_unknown_profile() -> None:
    with pytest.raises(SystemExit):
        cli.parse_args(["-l", "https://youtu.be/a", "--profile", "lossless"])


def test_main_without_links_prints_help(capsys) -> None:
    assert asyncio.run(cli.main([])) == 0
    assert "usage: yt2mp3" in capsys.readouterr().out


def _report(tmp_path: Path, errors=False) -> ConversionReport:
    outcomes = [ItemOutcome(link="https://youtu.be/a", artifact=tmp_path / "a.mp3")]
    rejected = [InvalidLink("https://example.com/x", "not a YouTube video link")] if errors else []
    return ConversionReport(rejected=rejected, result=PipelineResult(outcomes=outcomes))


def test_main_success(monkeypatch, capsys, tmp_path: Path) -> None:
    captured = {}

    def fake_convert(request, **kwargs):
        captured["request"] = request
        return _report(tmp_path)

    monkeypatch.setattr("yt2mp3.cli.convert_links", fake_convert)
    monkeypatch.setattr("yt2mp3.cli.setup_logging", lambda level: None)
    code = asyncio.run(cli.main(["-l", "https://youtu.be/a", "--output-dir", str(tmp_path)]))

    out = capsys.readouterr().out
    assert code == 0
    assert str(tmp_path / "a.mp3") in out
    assert captured["request"].links == ["https://youtu.be/a"]
    assert captured["request"].output_dir == tmp_path


def test_main_reports_errors(monkeypatch, capsys, tmp_path: Path) -> None:
    monkeypatch.setattr("yt2mp3.cli.convert_links", lambda request, **kwargs: _report(tmp_path, errors=True))
    monkeypatch.setattr("yt2mp3.cli.setup_logging", lambda level: None)
    code = asyncio.run(cli.main(["-l", "https://youtu.be/a"]))

    out = capsys.readouterr().out
    assert code == 1
    assert "The following issues occurred during execution:" in out
    assert "https://example.com/x" in out


def test_main_configuration_error(monkeypatch, capsys) -> None:
    def fail(request, **kwargs):
        raise ConfigurationError("output directory is not writable")

    monkeypatch.setattr("yt2mp3.cli.convert_links", fail)
    monkeypatch.setattr("yt2mp3.cli.setup_logging", lambda level: None)
    assert asyncio.run(cli.main(["-l", "https://youtu.be/a"])) == 2
    assert "not writable" in capsys.readouterr().out


def test_main_cancels_pipeline_when_interrupted(monkeypatch, tmp_path: Path) -> None:
    started = threading.Event()

    class FakeOrchestrator:
        def __init__(self):
            self.stopped = threading.Event()

        def cancel(self):
            self.stopped.set()

    orchestrator = FakeOrchestrator()
    seen = {}

    def slow_convert(request, *, orchestrator=None, progress=None):
        seen["orchestrator"] = orchestrator
        started.set()
        orchestrator.stopped.wait(timeout=5)
        return _report(tmp_path)

    monkeypatch.setattr("yt2mp3.cli.build_orchestrator", lambda request: orchestrator)
    monkeypatch.setattr("yt2mp3.cli.convert_links", slow_convert)
    monkeypatch.setattr("yt2mp3.cli.setup_logging", lambda level: None)

    async def interrupt():
        task = asyncio.ensure_future(cli.main(["-l", "https://youtu.be/a", "--output-dir", str(tmp_path)]))
        await asyncio.to_thread(started.wait, 5)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(interrupt())
    assert seen["orchestrator"] is orchestrator
    assert orchestrator.stopped.is_set()


def test_cli_main_reports_keyboard_interrupt(monkeypatch, capsys) -> None:
    async def interrupted(argv=None):
        raise KeyboardInterrupt

    monkeypatch.setattr("yt2mp3.cli.main", interrupted)
    with pytest.raises(SystemExit) as excinfo:
        cli.cli_main()
    assert excinfo.value.code == 130
    assert "Interrupted." in capsys.readouterr().out


def test_cli_main_exits_with_code(monkeypatch) -> None:
    async def fake_main(argv=None):
        return 1

    monkeypatch.setattr("yt2mp3.cli.main", fake_main)
    with pytest.raises(SystemExit) as excinfo:
        cli.cli_main()
    assert excinfo.value.code == 1
