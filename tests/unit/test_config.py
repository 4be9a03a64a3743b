"""Tests for configuration loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

import canvascap.config
from canvascap.config import AppConfig, get_config


class TestAppConfig:
    def test_defaults(self, monkeypatch):
        for var in (
            "CANVASCAP_TILE_BASE_URL",
            "CANVASCAP_MAX_DIMENSION",
            "CANVASCAP_READOUT_TIMEOUT",
            "CANVASCAP_OUTPUT_DIR",
            "CANVASCAP_LIBRARY_PATH",
        ):
            monkeypatch.delenv(var, raising=False)

        config = AppConfig.load()
        assert config.tile_size == 1000
        assert config.max_dimension == 4096
        assert config.max_pixels == 4096 * 4096
        assert config.readout_timeout == 6.0
        assert config.tile_base_url.endswith("/files/s0/tiles")

    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("CANVASCAP_TILE_BASE_URL", "https://tiles.test")
        monkeypatch.setenv("CANVASCAP_MAX_DIMENSION", "512")
        monkeypatch.setenv("CANVASCAP_READOUT_TIMEOUT", "2.5")
        monkeypatch.setenv("CANVASCAP_OUTPUT_DIR", str(tmp_path / "out"))
        monkeypatch.setenv("CANVASCAP_LIBRARY_PATH", str(tmp_path / "lib" / "t.json"))

        config = AppConfig.load()
        assert config.tile_base_url == "https://tiles.test"
        assert config.max_pixels == 512 * 512
        assert config.readout_timeout == 2.5
        assert config.output_dir == Path(tmp_path / "out")

        config.ensure_directories()
        assert (tmp_path / "out").is_dir()
        assert (tmp_path / "lib").is_dir()

    def test_rejects_non_positive_limits(self):
        with pytest.raises(ValidationError):
            AppConfig(max_dimension=0)
        with pytest.raises(ValidationError):
            AppConfig(readout_timeout=-1)


def test_get_config_is_cached(monkeypatch):
    monkeypatch.setattr(canvascap.config, "_config", None)
    assert get_config() is get_config()
