"""
Unit tests for settings loading.
"""
from pathlib import Path

from slidepipe.config import EngineConfig, LimitsConfig, RenderConfig, Settings


def test_defaults(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)

    settings = Settings()

    assert settings.engine == EngineConfig()
    assert settings.render.transition_length == 1.0
    assert settings.render.audio_codec == "aac"
    assert settings.limits.max_audio_bytes == 500 * 1024 * 1024
    assert settings.limits.max_image_bytes == 20 * 1024 * 1024
    assert settings.limits.max_gain == 50


def test_yaml_file(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text(
        "engine:\n"
        "  ffmpeg_bin: /opt/ffmpeg/bin/ffmpeg\n"
        "  work_dir: /var/tmp/slidepipe\n"
        "render:\n"
        "  transition_length: 0.5\n"
    )

    settings = Settings()

    assert settings.engine.ffmpeg_bin == "/opt/ffmpeg/bin/ffmpeg"
    assert settings.engine.work_dir == Path("/var/tmp/slidepipe")
    assert settings.render.transition_length == 0.5


def test_env_overrides_yaml(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    (tmp_path / "config.yaml").write_text("render:\n  video_codec: libx265\n")
    monkeypatch.setenv("SLIDEPIPE_RENDER__VIDEO_CODEC", "libvpx-vp9")

    assert Settings().render.video_codec == "libvpx-vp9"


def test_init_overrides_everything(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("SLIDEPIPE_LIMITS__MAX_GAIN", "40")

    settings = Settings(limits=LimitsConfig(max_gain=20), render=RenderConfig(audio_bitrate="128k"))

    assert settings.limits.max_gain == 20
    assert settings.render.audio_bitrate == "128k"
