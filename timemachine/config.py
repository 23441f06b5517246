"""
Configuration management for the time machine.

The configuration is stored as a TOML file in the config directory.
It names the vault, the frontmatter property holding each note's date,
how many notes to show per horizon, which horizons are enabled, and
which directories to skip.
"""

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import tomli_w

from .errors import InvalidConfiguration
from .horizons import CATALOG, OFFSETS_BY_KEY, Offset


CONFIG_FILENAME = "timemachine.toml"
CONFIG_VERSION = 1

DEFAULT_PROPERTY_NAME = "created-iso"
DEFAULT_NUMBER_OF_FILES = 3
DEFAULT_HORIZONS = {
    "week": True,
    "two_weeks": False,
    "month": True,
    "six_months": False,
    "year": True,
    "two_years": False,
    "five_years": True,
    "ten_years": False,
}


def get_config_dir() -> Path:
    """Config directory: TIMEMACHINE_CONFIG_DIR, else ~/.timemachine."""
    env_dir = os.environ.get("TIMEMACHINE_CONFIG_DIR")
    if env_dir:
        return Path(env_dir).expanduser()
    return Path.home() / ".timemachine"


@dataclass
class TimeMachineConfig:
    """Complete time machine configuration."""
    path: Path
    version: int = CONFIG_VERSION
    vault: Optional[Path] = None
    property_name: str = DEFAULT_PROPERTY_NAME
    number_of_files: int = DEFAULT_NUMBER_OF_FILES
    horizons: dict[str, bool] = field(default_factory=lambda: dict(DEFAULT_HORIZONS))
    ignore_directories: list[str] = field(default_factory=list)

    @property
    def config_path(self) -> Path:
        """Path to the TOML config file."""
        return self.path / CONFIG_FILENAME

    def exists(self) -> bool:
        """Check if config file exists."""
        return self.config_path.exists()

    def enabled_offsets(self) -> list[Offset]:
        """Enabled horizons, in catalog order."""
        return [offset for offset in CATALOG if self.horizons.get(offset.key, False)]

    def set_horizon(self, key: str, enabled: bool) -> None:
        if key not in OFFSETS_BY_KEY:
            valid = ", ".join(OFFSETS_BY_KEY)
            raise InvalidConfiguration(f"Unknown horizon {key!r} (valid: {valid})")
        self.horizons[key] = enabled

    def validate(self) -> None:
        """
        Check values that would otherwise fail later, mid-run.

        Raises:
            InvalidConfiguration: On a bad count, horizon key, or property name
        """
        count = self.number_of_files
        if isinstance(count, bool) or not isinstance(count, int) or count <= 0:
            raise InvalidConfiguration(
                f"number_of_files must be a positive integer, got {count!r}"
            )
        unknown = sorted(set(self.horizons) - set(OFFSETS_BY_KEY))
        if unknown:
            raise InvalidConfiguration(f"Unknown horizons in config: {', '.join(unknown)}")
        if not self.property_name or not self.property_name.strip():
            raise InvalidConfiguration("property_name must not be empty")


def create_default_config(config_dir: Path) -> TimeMachineConfig:
    """Create a config with default settings."""
    return TimeMachineConfig(path=config_dir)


def load_config(config_dir: Path) -> TimeMachineConfig:
    """
    Load configuration from a config directory.

    Raises:
        FileNotFoundError: If config doesn't exist
        InvalidConfiguration: If config is invalid
    """
    config_path = config_dir / CONFIG_FILENAME

    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path, "rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            raise InvalidConfiguration(f"Cannot parse {config_path}: {e}") from e

    section = data.get("timemachine", {})
    if not isinstance(section, dict):
        raise InvalidConfiguration("[timemachine] must be a table")

    # Validate version
    version = section.get("version", 1)
    if isinstance(version, bool) or not isinstance(version, int):
        raise InvalidConfiguration(f"Config version must be an integer, got {version!r}")
    if version > CONFIG_VERSION:
        raise InvalidConfiguration(
            f"Config version {version} is newer than supported ({CONFIG_VERSION})"
        )

    # Missing horizon keys fall back to defaults, so new horizons show up
    # with their default state in old configs
    horizon_table = data.get("horizons", {})
    if not isinstance(horizon_table, dict):
        raise InvalidConfiguration("[horizons] must be a table of key = true/false")
    horizons = dict(DEFAULT_HORIZONS)
    for key, enabled in horizon_table.items():
        if not isinstance(enabled, bool):
            raise InvalidConfiguration(f"Horizon {key!r} must be true or false, got {enabled!r}")
        horizons[key] = enabled

    vault = section.get("vault")
    if vault is not None and not isinstance(vault, str):
        raise InvalidConfiguration(f"vault must be a path string, got {vault!r}")
    property_name = section.get("property_name", DEFAULT_PROPERTY_NAME)
    if not isinstance(property_name, str):
        raise InvalidConfiguration(f"property_name must be a string, got {property_name!r}")
    ignore_directories = section.get("ignore_directories", [])
    if not isinstance(ignore_directories, list) or not all(
        isinstance(d, str) for d in ignore_directories
    ):
        raise InvalidConfiguration(
            f"ignore_directories must be a list of strings, got {ignore_directories!r}"
        )

    config = TimeMachineConfig(
        path=config_dir,
        version=version,
        vault=Path(vault).expanduser() if vault else None,
        property_name=property_name,
        number_of_files=section.get("number_of_files", DEFAULT_NUMBER_OF_FILES),
        horizons=horizons,
        ignore_directories=[d.strip() for d in ignore_directories if d.strip()],
    )
    config.validate()
    return config


def config_to_dict(config: TimeMachineConfig) -> dict:
    """TOML-ready structure of a config (also used for --json display)."""
    section: dict[str, Any] = {"version": config.version}
    if config.vault is not None:
        section["vault"] = str(config.vault)
    section["property_name"] = config.property_name
    section["number_of_files"] = config.number_of_files
    section["ignore_directories"] = list(config.ignore_directories)
    return {
        "timemachine": section,
        "horizons": {offset.key: bool(config.horizons.get(offset.key, False)) for offset in CATALOG},
    }


def save_config(config: TimeMachineConfig) -> None:
    """
    Save configuration to the config directory.

    Creates the directory if it doesn't exist.
    """
    config.validate()
    config.path.mkdir(parents=True, exist_ok=True)
    with open(config.config_path, "wb") as f:
        tomli_w.dump(config_to_dict(config), f)


def load_or_create_config(config_dir: Path) -> TimeMachineConfig:
    """
    Load existing config or create a new one with defaults.

    This is the main entry point for config management.
    """
    config_path = config_dir / CONFIG_FILENAME

    if config_path.exists():
        return load_config(config_dir)
    else:
        config = create_default_config(config_dir)
        save_config(config)
        return config
