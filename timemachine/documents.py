"""
Markdown vault scanning and frontmatter date extraction.

Produces the (identifier, date | None) stream the horizon set consumes.
Files are read in parallel; everything past the read is cheap.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import yaml
from dateutil import parser as date_parser

from .types import as_utc

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 8


def _normalize_dir(path: str) -> str:
    path = path.replace("\\", "/")
    return path if path.endswith("/") else path + "/"


def is_ignored(path: str, ignore_path: str) -> bool:
    """
    Check whether a vault path falls under an ignored directory.

    Both paths get forward slashes plus a leading and a trailing slash, then
    the ignore path must appear as a substring, so it matches whole path
    components only. "Archive" matches "Archive/a.md" and "notes/Archive/b.md"
    but not "Archives/c.md" or "MyArchive/d.md".
    """
    normalized = _normalize_dir(path)
    if not normalized.startswith("/"):
        normalized = "/" + normalized
    subpath = _normalize_dir(ignore_path.strip())
    if not subpath.startswith("/"):
        subpath = "/" + subpath
    return subpath in normalized


def is_path_ignored(path: str, ignore_directories: Iterable[str]) -> bool:
    return any(is_ignored(path, d) for d in ignore_directories if d.strip())


def iter_markdown_files(vault: Path, ignore_directories: Iterable[str] = ()) -> Iterator[Path]:
    """
    Markdown files under the vault, sorted, skipping ignored and hidden paths.

    Hidden means any path component starting with a dot (.obsidian, .git, ...).
    """
    ignore_directories = list(ignore_directories)
    for path in sorted(vault.rglob("*.md")):
        if not path.is_file():
            continue
        rel = path.relative_to(vault)
        if any(part.startswith(".") for part in rel.parts):
            continue
        if is_path_ignored(rel.as_posix(), ignore_directories):
            logger.debug("Ignoring %s", rel.as_posix())
            continue
        yield path


def read_frontmatter(text: str) -> dict[str, Any]:
    """
    Parse YAML frontmatter from the top of a note.

    The block opens with a first line of exactly "---" and closes at the next
    line that is exactly "---"; a "---" inside a value does not close it.

    Returns:
        The frontmatter mapping, or {} when there is none or it is malformed.
        Impossible calendar dates (2024-02-30) count as malformed.
    """
    lines = text.splitlines()
    if not lines or lines[0].strip() != "---":
        return {}
    try:
        end = next(i for i, line in enumerate(lines[1:], 1) if line.strip() == "---")
    except StopIteration:
        return {}
    try:
        frontmatter = yaml.safe_load("\n".join(lines[1:end]))
    except (yaml.YAMLError, ValueError, OverflowError) as e:
        # PyYAML raises plain ValueError for out-of-range timestamps
        logger.debug("Malformed frontmatter: %s", e)
        return {}
    return frontmatter if isinstance(frontmatter, dict) else {}


def parse_date(value: Any) -> Optional[datetime]:
    """
    Convert a frontmatter value to an aware UTC datetime.

    YAML already turns unquoted ISO dates into date/datetime objects; quoted
    or free-form strings go through dateutil. Returns None for anything that
    is not a recognizable date.
    """
    if isinstance(value, datetime):
        try:
            return as_utc(value)
        except OverflowError:
            # e.g. 0001-01-01T00:00:00+05:00 has no UTC equivalent
            return None
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if isinstance(value, str) and value.strip():
        try:
            return as_utc(date_parser.parse(value.strip()))
        except (ValueError, OverflowError):
            return None
    return None


def extract_date(path: Path, property_name: str) -> Optional[datetime]:
    """
    Read a note and return the date stored under `property_name`.

    Unreadable files are logged and treated as undated.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None
    value = read_frontmatter(text).get(property_name)
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        logger.debug("Unparseable %s in %s: %r", property_name, path, value)
    return parsed


def scan_vault(
    vault: Path,
    property_name: str,
    ignore_directories: Iterable[str] = (),
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> Iterator[tuple[str, Optional[datetime]]]:
    """
    Yield (identifier, date | None) for every markdown note in the vault.

    Identifiers are vault-relative POSIX paths. Results arrive in completion
    order, not path order.
    """
    files = list(iter_markdown_files(vault, ignore_directories))
    logger.debug("Scanning %d notes in %s", len(files), vault)
    if not files:
        return
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {
            executor.submit(extract_date, path, property_name): path.relative_to(vault).as_posix()
            for path in files
        }
        for future in as_completed(futures):
            yield futures[future], future.result()
