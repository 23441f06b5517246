"""
Core API for the time machine.

One run:
- build(): a fresh HorizonSet from the enabled horizons
- scan: read every note's date property from the vault
- ingest: route dated notes into each horizon's selector
"""

import logging
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

from .config import TimeMachineConfig, get_config_dir, load_or_create_config
from .documents import DEFAULT_MAX_WORKERS, scan_vault
from .horizons import HorizonSet

logger = logging.getLogger(__name__)


class TimeMachine:
    """
    Surfaces notes written around each enabled horizon ("a month ago", ...).

    Holds configuration only. Every run() builds and returns its own
    HorizonSet; nothing from a previous run is reused.
    """

    def __init__(
        self,
        config: Optional[TimeMachineConfig] = None,
        vault: Optional[Path] = None,
        *,
        max_workers: int = DEFAULT_MAX_WORKERS,
        ops_log: bool = True,
    ) -> None:
        """
        Args:
            config: Settings; loaded (or created) from the config dir if omitted
            vault: Vault directory; overrides config.vault
            max_workers: Parallel file reads per run
            ops_log: Write a one-line summary of each run to the ops log
        """
        if config is None:
            config = load_or_create_config(get_config_dir())
        config.validate()
        self._config = config

        vault = vault if vault is not None else config.vault
        if vault is None:
            raise FileNotFoundError(
                "No vault configured. Pass a vault path or run: timemachine config --vault PATH"
            )
        vault = Path(vault).expanduser().resolve()
        if not vault.is_dir():
            raise FileNotFoundError(f"Vault not found: {vault}")
        self._vault = vault
        self._max_workers = max_workers

        # --- Persistent operations log ---
        self._ops_log_handler = None
        if ops_log:
            from .logging_config import configure_ops_log
            self._ops_log_handler = configure_ops_log(config.path)

    @property
    def config(self) -> TimeMachineConfig:
        return self._config

    @property
    def vault(self) -> Path:
        return self._vault

    def build(self, now: Optional[datetime] = None, capacity: Optional[int] = None) -> HorizonSet:
        """Empty horizon set for the enabled horizons."""
        return HorizonSet.build(
            self._config.enabled_offsets(),
            capacity if capacity is not None else self._config.number_of_files,
            now=now,
        )

    def run(self, now: Optional[datetime] = None, capacity: Optional[int] = None) -> HorizonSet:
        """
        Scan the vault and select notes for every enabled horizon.

        Args:
            now: Reference time for the boundaries (default: current UTC time)
            capacity: Notes per horizon (default: config.number_of_files)

        Returns:
            A new HorizonSet, populated

        Raises:
            InvalidConfiguration: If no horizons are enabled or capacity is bad
        """
        horizons = self.build(now=now, capacity=capacity)
        started = time.perf_counter()
        stats = horizons.ingest(scan_vault(
            self._vault,
            self._config.property_name,
            self._config.ignore_directories,
            max_workers=self._max_workers,
        ))
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(
            "run vault=%s notes=%d undated=%d routed=%d too_recent=%d horizons=%d in %.0fms",
            self._vault, stats.seen, stats.skipped, stats.routed, stats.unmatched,
            len(horizons), elapsed_ms,
        )
        return horizons

    def resolve(self, identifier: str) -> Path:
        """Absolute path of a note by its vault-relative identifier."""
        path = (self._vault / identifier).resolve()
        if not path.is_relative_to(self._vault):
            raise ValueError(f"Identifier escapes the vault: {identifier!r}")
        return path

    def close(self) -> None:
        """Detach the ops log handler."""
        if self._ops_log_handler is not None:
            from .logging_config import remove_ops_log
            remove_ops_log(self._ops_log_handler)
            self._ops_log_handler = None

    def __enter__(self) -> "TimeMachine":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
