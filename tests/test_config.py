import importlib
from pathlib import Path

import yt2mp3.config as config_module


def _reload_config():
    importlib.reload(config_module)
    return config_module


def test_load_defaults_respects_env(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("YT2MP3_SKIP_DOTENV", "1")
    monkeypatch.setenv("YT2MP3_OUTPUT_DIR", str(tmp_path / "music"))
    monkeypatch.setenv("YT2MP3_AUDIO_FORMAT", ".M4A")
    monkeypatch.setenv("YT2MP3_ENCODER", "/opt/ffmpeg/bin/ffmpeg")
    monkeypatch.setenv("YT2MP3_MAX_WORKERS", "3")
    monkeypatch.setenv("YT2MP3_CHUNK_SIZE", "4096")
    monkeypatch.setenv("YT2MP3_REQUEST_TIMEOUT", "7.5")
    monkeypatch.setenv("YT2MP3_TEMP_DIR", str(tmp_path / "scratch"))
    monkeypatch.setenv("YT2MP3_QUALITY_LABELS", "480p, 360p")
    monkeypatch.setenv("YT2MP3_JS_RUNTIME", "deno")
    monkeypatch.setenv("YT2MP3_REMOTE_COMPONENTS", "ejs:github, ejs:npm")
    monkeypatch.setenv("YT2MP3_LOG_LEVEL", "debug")

    defaults = _reload_config().load_defaults()
    assert defaults.output_dir == tmp_path / "music"
    assert defaults.audio_format == "m4a"
    assert defaults.encoder == "/opt/ffmpeg/bin/ffmpeg"
    assert defaults.max_workers == 3
    assert defaults.chunk_size == 4096
    assert defaults.request_timeout == 7.5
    assert defaults.temp_dir == tmp_path / "scratch"
    assert defaults.quality_labels == ["480p", "360p"]
    assert defaults.js_runtime == "deno"
    assert defaults.remote_components == ["ejs:github", "ejs:npm"]
    assert defaults.log_level == "DEBUG"


def test_load_defaults_falls_back_to_defaults(monkeypatch) -> None:
    monkeypatch.setenv("YT2MP3_SKIP_DOTENV", "1")
    for var in (
        "YT2MP3_OUTPUT_DIR",
        "YT2MP3_AUDIO_FORMAT",
        "YT2MP3_ENCODER",
        "YT2MP3_MAX_WORKERS",
        "YT2MP3_CHUNK_SIZE",
        "YT2MP3_REQUEST_TIMEOUT",
        "YT2MP3_TEMP_DIR",
        "YT2MP3_PROFILE",
        "YT2MP3_QUALITY_LABELS",
        "YT2MP3_REMOTE_COMPONENTS",
        "YT2MP3_LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)

    defaults = _reload_config().load_defaults()
    assert defaults.output_dir == Path.cwd()
    assert defaults.audio_format == "mp3"
    assert defaults.encoder == "ffmpeg"
    assert defaults.max_workers == 8
    assert defaults.chunk_size == 65536
    assert defaults.temp_dir is None
    assert defaults.profile == "standard"
    assert defaults.quality_labels == ["360p", "240p"]
    assert defaults.remote_components == []
    assert defaults.log_level == "INFO"


def test_named_profile_supplies_quality_labels(monkeypatch) -> None:
    monkeypatch.setenv("YT2MP3_SKIP_DOTENV", "1")
    monkeypatch.setenv("YT2MP3_PROFILE", "HIGH")
    monkeypatch.delenv("YT2MP3_QUALITY_LABELS", raising=False)

    defaults = _reload_config().load_defaults()
    assert defaults.profile == "high"
    assert defaults.quality_labels == ["720p", "480p", "360p"]


def test_quality_labels_override_profile(monkeypatch) -> None:
    monkeypatch.setenv("YT2MP3_SKIP_DOTENV", "1")
    monkeypatch.setenv("YT2MP3_PROFILE", "data_saving")
    monkeypatch.setenv("YT2MP3_QUALITY_LABELS", "480p")

    defaults = _reload_config().load_defaults()
    assert defaults.profile == "data_saving"
    assert defaults.quality_labels == ["480p"]


def test_invalid_numbers_fall_back(monkeypatch) -> None:
    monkeypatch.setenv("YT2MP3_SKIP_DOTENV", "1")
    monkeypatch.setenv("YT2MP3_MAX_WORKERS", "many")
    monkeypatch.setenv("YT2MP3_REQUEST_TIMEOUT", "soon")

    defaults = _reload_config().load_defaults()
    assert defaults.max_workers == 8
    assert defaults.request_timeout == 30.0


def test_relative_output_dir_is_resolved_against_user_root(monkeypatch) -> None:
    monkeypatch.setenv("YT2MP3_SKIP_DOTENV", "1")
    monkeypatch.setenv("YT2MP3_OUTPUT_DIR", "audio")

    reloaded = _reload_config()
    defaults = reloaded.load_defaults()
    assert defaults.output_dir == reloaded.USER_ROOT / "audio"


def test_dotenv_file_is_loaded(monkeypatch, tmp_path: Path) -> None:
    (tmp_path / ".env").write_text("YT2MP3_ENCODER=/from/dotenv/ffmpeg\n")
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("YT2MP3_SKIP_DOTENV", raising=False)
    # registered first so teardown removes what load_dotenv writes
    monkeypatch.setenv("YT2MP3_ENCODER", "placeholder")
    monkeypatch.delenv("YT2MP3_ENCODER")

    defaults = _reload_config().load_defaults()
    assert defaults.encoder == "/from/dotenv/ffmpeg"
