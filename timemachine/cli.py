"""
CLI interface for the time machine.

Usage:
    timemachine show [VAULT]
    timemachine open N [VAULT]
    timemachine config --vault ~/notes --enable two_years --count 5
    timemachine horizons
"""

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Optional

import tomli_w
import typer
from typing_extensions import Annotated

from .api import TimeMachine
from .config import (
    TimeMachineConfig,
    config_to_dict,
    get_config_dir,
    load_or_create_config,
    save_config,
)
from .documents import parse_date
from .errors import InvalidConfiguration
from .horizons import CATALOG, HorizonSet
from .logging_config import configure_quiet_mode, enable_debug_mode
from .types import DatedItem, display_date


# Configure quiet mode by default
# Set TIMEMACHINE_VERBOSE=1 to enable debug mode via environment
if os.environ.get("TIMEMACHINE_VERBOSE") == "1":
    enable_debug_mode()
else:
    configure_quiet_mode(quiet=True)


def _version_callback(value: bool):
    if value:
        from importlib.metadata import version
        print(f"timemachine {version('timemachine-notes')}")
        raise typer.Exit()


def _verbose_callback(value: bool):
    if value:
        enable_debug_mode()


# Global state for CLI options
_json_output = False
_config_override: Optional[Path] = None


def _json_callback(value: bool):
    global _json_output
    _json_output = value


def _get_json_output() -> bool:
    return _json_output


def _config_callback(value: Optional[Path]):
    global _config_override
    _config_override = value


def _get_config_dir() -> Path:
    return _config_override if _config_override is not None else get_config_dir()


app = typer.Typer(
    name="timemachine",
    help="Revisit notes from a week, a month, a year ago.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v",
        help="Enable debug-level logging to stderr",
        callback=_verbose_callback,
        is_eager=True,
    )] = False,
    output_json: Annotated[bool, typer.Option(
        "--json", "-j",
        help="Output as JSON",
        callback=_json_callback,
        is_eager=True,
    )] = False,
    version: Annotated[Optional[bool], typer.Option(
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    )] = None,
    config_dir: Annotated[Optional[Path], typer.Option(
        "--config", "-c",
        envvar="TIMEMACHINE_CONFIG_DIR",
        help="Path to the config directory (default: ~/.timemachine/)",
        callback=_config_callback,
        is_eager=True,
    )] = None,
):
    """Revisit notes from a week, a month, a year ago."""


# -----------------------------------------------------------------------------
# Common Options
# -----------------------------------------------------------------------------

VaultArgument = Annotated[
    Optional[Path],
    typer.Argument(help="Vault directory (default: vault from config)")
]

NowOption = Annotated[
    Optional[str],
    typer.Option(
        "--now",
        help="Reference date for the horizons (default: now; e.g. 2026-01-15)"
    )
]

CountOption = Annotated[
    Optional[int],
    typer.Option(
        "--count", "-n",
        help="Notes per horizon (default: number_of_files from config)"
    )
]


def _parse_now(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise typer.BadParameter(f"Not a date: {value}", param_hint="--now")
    return parsed


def _load_config() -> TimeMachineConfig:
    try:
        return load_or_create_config(_get_config_dir())
    except InvalidConfiguration as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _get_machine(vault: Optional[Path]) -> TimeMachine:
    """Initialize the time machine, handling errors gracefully."""
    config = _load_config()
    try:
        return TimeMachine(config, vault)
    except (FileNotFoundError, InvalidConfiguration) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _run(tm: TimeMachine, now: Optional[str], count: Optional[int]) -> HorizonSet:
    now_dt = _parse_now(now)
    try:
        return tm.run(now=now_dt, capacity=count)
    except InvalidConfiguration as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)


def _numbered(horizons: HorizonSet) -> list[tuple[int, DatedItem]]:
    """Every listed note with its display number, in listing order."""
    entries = []
    for horizon in horizons:
        for item in horizon.retained():
            entries.append((len(entries) + 1, item))
    return entries


def render_horizons(horizons: HorizonSet) -> str:
    """Text listing: a heading per horizon, then its notes newest first."""
    lines = []
    n = 0
    for horizon in horizons:
        if lines:
            lines.append("")
        lines.append(f"{horizon.label} - {display_date(horizon.boundary)}")
        retained = horizon.retained()
        if not retained:
            lines.append("  (no notes)")
        for item in retained:
            n += 1
            lines.append(f"  {n}. {item}")
            lines.append(f"     {item.identifier}")
    return "\n".join(lines)


# -----------------------------------------------------------------------------
# Commands
# -----------------------------------------------------------------------------

@app.command()
def show(
    vault: VaultArgument = None,
    now: NowOption = None,
    count: CountOption = None,
):
    """List the notes closest to each enabled horizon."""
    with _get_machine(vault) as tm:
        horizons = _run(tm, now, count)
    if _get_json_output():
        typer.echo(json.dumps(horizons.to_dict(), indent=2))
    else:
        typer.echo(render_horizons(horizons))


@app.command("open")
def open_note(
    number: Annotated[int, typer.Argument(help="Note number as listed by 'show'")],
    vault: VaultArgument = None,
    now: NowOption = None,
    count: CountOption = None,
):
    """Open a listed note with the system default application."""
    with _get_machine(vault) as tm:
        entries = _numbered(_run(tm, now, count))
    if not 1 <= number <= len(entries):
        typer.echo(f"Error: No note numbered {number} ({len(entries)} listed)", err=True)
        raise typer.Exit(1)
    _, item = entries[number - 1]
    path = tm.resolve(item.identifier)
    if _get_json_output():
        typer.echo(json.dumps({"identifier": item.identifier, "path": str(path)}))
    else:
        typer.echo(f"Opening {item.identifier}")
    typer.launch(str(path))


@app.command()
def config(
    vault: Annotated[Optional[Path], typer.Option(
        "--vault", help="Vault directory to scan"
    )] = None,
    property_name: Annotated[Optional[str], typer.Option(
        "--property", "-p", help="Frontmatter property holding the note date"
    )] = None,
    count: Annotated[Optional[int], typer.Option(
        "--count", "-n", help="Notes per horizon"
    )] = None,
    enable: Annotated[Optional[list[str]], typer.Option(
        "--enable", "-e", help="Enable a horizon (repeatable)"
    )] = None,
    disable: Annotated[Optional[list[str]], typer.Option(
        "--disable", "-d", help="Disable a horizon (repeatable)"
    )] = None,
    ignore: Annotated[Optional[list[str]], typer.Option(
        "--ignore", "-i", help="Directory to skip (repeatable)"
    )] = None,
    clear_ignore: Annotated[bool, typer.Option(
        "--clear-ignore", help="Forget all ignored directories"
    )] = False,
):
    """Show or change settings."""
    cfg = _load_config()
    changed = False
    try:
        if vault is not None:
            cfg.vault = vault.expanduser().resolve()
            changed = True
        if property_name is not None:
            cfg.property_name = property_name.strip()
            changed = True
        if count is not None:
            cfg.number_of_files = count
            changed = True
        for key in enable or []:
            cfg.set_horizon(key, True)
            changed = True
        for key in disable or []:
            cfg.set_horizon(key, False)
            changed = True
        if clear_ignore:
            cfg.ignore_directories = []
            changed = True
        for directory in ignore or []:
            directory = directory.strip()
            if directory and directory not in cfg.ignore_directories:
                cfg.ignore_directories.append(directory)
            changed = True
        if changed:
            save_config(cfg)
    except InvalidConfiguration as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    data = config_to_dict(cfg)
    if _get_json_output():
        typer.echo(json.dumps({"path": str(cfg.config_path), **data}, indent=2))
    else:
        typer.echo(f"# {cfg.config_path}")
        typer.echo(tomli_w.dumps(data).rstrip())


@app.command()
def horizons():
    """List the available horizons and which are enabled."""
    cfg = _load_config()
    if _get_json_output():
        typer.echo(json.dumps([
            {"key": o.key, "label": o.label, "enabled": bool(cfg.horizons.get(o.key))}
            for o in CATALOG
        ], indent=2))
        return
    width = max(len(o.key) for o in CATALOG)
    for offset in CATALOG:
        mark = "x" if cfg.horizons.get(offset.key) else " "
        typer.echo(f"[{mark}] {offset.key:<{width}}  {offset.label}")


# -----------------------------------------------------------------------------

def main():
    try:
        app()
    except SystemExit:
        raise  # Let typer handle exit codes
    except KeyboardInterrupt:
        raise SystemExit(130)  # Standard exit code for Ctrl+C
    except Exception as e:
        # Log full traceback to file, show clean message to user
        from .errors import log_exception
        log_path = log_exception(e, context="timemachine CLI", config_dir=_get_config_dir())
        typer.echo(f"Error: {e}", err=True)
        typer.echo(f"Details logged to {log_path}", err=True)
        raise SystemExit(1)


if __name__ == "__main__":
    main()
