"""Tests for configuration and home directory resolution."""

from pathlib import Path

import pytest

from unmasklab.config import CaptureConfig
from unmasklab.paths import IMAGES_DIRNAME, get_home_dir, get_images_dir


class TestGetHomeDir:
    def test_default(self, monkeypatch, tmp_path):
        monkeypatch.delenv("UNMASKLAB_HOME", raising=False)
        monkeypatch.setenv("HOME", str(tmp_path))
        result = get_home_dir()
        assert result == tmp_path / ".unmasklab"
        assert result.is_dir()

    def test_env_absolute(self, monkeypatch, tmp_path):
        custom = tmp_path / "custom_home"
        monkeypatch.setenv("UNMASKLAB_HOME", str(custom))
        assert get_home_dir() == custom
        assert custom.is_dir()

    def test_env_relative(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("UNMASKLAB_HOME", "rel_home")
        assert get_home_dir() == tmp_path / "rel_home"


class TestGetImagesDir:
    def test_under_home(self, monkeypatch, tmp_path):
        monkeypatch.setenv("UNMASKLAB_HOME", str(tmp_path))
        assert get_images_dir() == tmp_path / IMAGES_DIRNAME

    def test_not_created(self, monkeypatch, tmp_path):
        monkeypatch.setenv("UNMASKLAB_HOME", str(tmp_path))
        assert not get_images_dir().exists()


class TestCaptureConfig:
    def test_defaults(self):
        config = CaptureConfig()
        assert config.jpeg_quality == 90
        assert config.sensitivity == 50
        assert config.processing_indicator_threshold_sec == 1.0

    def test_storage_dir_coerced(self, tmp_path):
        config = CaptureConfig(storage_dir=str(tmp_path))
        assert config.storage_dir == tmp_path
        assert config.resolved_storage_dir == tmp_path

    def test_resolved_default(self, monkeypatch, tmp_path):
        monkeypatch.setenv("UNMASKLAB_HOME", str(tmp_path))
        assert CaptureConfig().resolved_storage_dir == tmp_path / IMAGES_DIRNAME

    @pytest.mark.parametrize("kwargs", [
        {"jpeg_quality": 101},
        {"sensitivity": -1},
        {"max_save_workers": -2},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            CaptureConfig(**kwargs)

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("UNMASKLAB_JPEG_QUALITY", "75")
        monkeypatch.setenv("UNMASKLAB_SAVE_WORKERS", "0")
        config = CaptureConfig.from_env()
        assert config.jpeg_quality == 75
        assert config.max_save_workers == 0

    def test_from_env_ignores_garbage(self, monkeypatch):
        monkeypatch.setenv("UNMASKLAB_JPEG_QUALITY", "high")
        assert CaptureConfig.from_env().jpeg_quality == 90

    def test_overrides_win(self, monkeypatch, tmp_path):
        monkeypatch.setenv("UNMASKLAB_SAVE_WORKERS", "8")
        config = CaptureConfig.from_env(max_save_workers=1, storage_dir=tmp_path)
        assert config.max_save_workers == 1
        assert config.storage_dir == Path(tmp_path)
