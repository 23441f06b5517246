"""
Tests for TOML configuration.
"""

from pathlib import Path

import pytest

from timemachine.config import (
    CONFIG_FILENAME,
    DEFAULT_HORIZONS,
    TimeMachineConfig,
    create_default_config,
    get_config_dir,
    load_config,
    load_or_create_config,
    save_config,
)
from timemachine.errors import InvalidConfiguration


class TestDefaults:
    """Default settings."""

    def test_defaults(self, tmp_path):
        config = create_default_config(tmp_path)
        assert config.property_name == "created-iso"
        assert config.number_of_files == 3
        assert config.ignore_directories == []
        assert config.vault is None
        assert config.horizons == DEFAULT_HORIZONS

    def test_enabled_offsets_in_catalog_order(self, tmp_path):
        config = create_default_config(tmp_path)
        assert [o.key for o in config.enabled_offsets()] == [
            "week", "month", "year", "five_years",
        ]

    def test_defaults_not_shared(self, tmp_path):
        first = create_default_config(tmp_path)
        second = create_default_config(tmp_path)
        first.set_horizon("ten_years", True)
        assert second.horizons["ten_years"] is False

    def test_set_unknown_horizon(self, tmp_path):
        config = create_default_config(tmp_path)
        with pytest.raises(InvalidConfiguration):
            config.set_horizon("decade", True)

    def test_config_dir_from_env(self, tmp_path, monkeypatch):
        monkeypatch.setenv("TIMEMACHINE_CONFIG_DIR", str(tmp_path / "cfg"))
        assert get_config_dir() == tmp_path / "cfg"

    def test_config_dir_default(self, monkeypatch):
        monkeypatch.delenv("TIMEMACHINE_CONFIG_DIR", raising=False)
        assert get_config_dir() == Path.home() / ".timemachine"


class TestPersistence:
    """save_config / load_config round trips."""

    def test_round_trip(self, tmp_path):
        config = TimeMachineConfig(
            path=tmp_path,
            vault=tmp_path / "vault",
            property_name="created",
            number_of_files=5,
            ignore_directories=["Archive", "templates"],
        )
        config.set_horizon("two_years", True)
        config.set_horizon("week", False)
        save_config(config)

        loaded = load_config(tmp_path)
        assert loaded.vault == tmp_path / "vault"
        assert loaded.property_name == "created"
        assert loaded.number_of_files == 5
        assert loaded.ignore_directories == ["Archive", "templates"]
        assert loaded.horizons["two_years"] is True
        assert loaded.horizons["week"] is False

    def test_load_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path)

    def test_load_or_create_writes_defaults(self, tmp_path):
        config_dir = tmp_path / "new"
        config = load_or_create_config(config_dir)
        assert (config_dir / CONFIG_FILENAME).exists()
        assert config.number_of_files == 3
        assert load_or_create_config(config_dir).horizons == DEFAULT_HORIZONS

    def test_missing_horizons_get_defaults(self, tmp_path):
        (tmp_path / CONFIG_FILENAME).write_text(
            "[timemachine]\nnumber_of_files = 2\n\n[horizons]\nweek = false\n"
        )
        config = load_config(tmp_path)
        assert config.number_of_files == 2
        assert config.horizons["week"] is False
        assert config.horizons["month"] is True

    @pytest.mark.parametrize("toml", [
        "[timemachine]\nnumber_of_files = 0\n",
        "[timemachine]\nnumber_of_files = -1\n",
        '[timemachine]\nnumber_of_files = "three"\n',
        "[timemachine]\nversion = 99\n",
        '[timemachine]\nproperty_name = ""\n',
        "[horizons]\ndecade = true\n",
        '[timemachine]\nversion = "2"\n',
        "[timemachine]\nversion = true\n",
        "horizons = 1\n",
        "[horizons]\nweek = 1\n",
        '[timemachine]\nignore_directories = "Archive"\n',
        "[timemachine]\nignore_directories = [1, 2]\n",
        "[timemachine]\nvault = 5\n",
        "[timemachine]\nproperty_name = 7\n",
        'timemachine = "x"\n',
        "not toml at all [",
    ])
    def test_invalid_config(self, tmp_path, toml):
        (tmp_path / CONFIG_FILENAME).write_text(toml)
        with pytest.raises(InvalidConfiguration):
            load_config(tmp_path)

    def test_save_rejects_invalid(self, tmp_path):
        config = create_default_config(tmp_path)
        config.number_of_files = 0
        with pytest.raises(InvalidConfiguration):
            save_config(config)
        assert not config.exists()
