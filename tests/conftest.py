"""
Shared pytest fixtures for timemachine tests.

Provides a throwaway vault of dated notes and an isolated config directory,
so no test touches ~/.timemachine.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest

from timemachine.types import DatedItem, parse_utc_timestamp


# Reference time for every scenario: a month-end, so month offsets clamp
NOW = datetime(2026, 3, 31, 12, 0, tzinfo=timezone.utc)


def make_item(identifier: str, date: str) -> DatedItem:
    """DatedItem from an ISO date string."""
    return DatedItem(identifier, parse_utc_timestamp(date))


def write_note(vault: Path, rel: str, date_line: str | None, body: str = "Some text.") -> Path:
    """Write a markdown note; date_line is the raw frontmatter line, or None."""
    path = vault / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if date_line is None:
        path.write_text(f"# {path.stem}\n\n{body}\n")
    else:
        path.write_text(f"---\ntitle: {path.stem}\n{date_line}\n---\n\n{body}\n")
    return path


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def config_dir(tmp_path, monkeypatch) -> Path:
    """Isolated config directory, also exported as TIMEMACHINE_CONFIG_DIR."""
    path = tmp_path / "config"
    monkeypatch.setenv("TIMEMACHINE_CONFIG_DIR", str(path))
    return path


@pytest.fixture
def vault(tmp_path) -> Path:
    """
    A vault whose notes land in known horizons relative to NOW.

    With week/month/year enabled and two notes per horizon:
      week  -> b.md (03-20), c.md (03-10)
      month -> e.md (02-15), f.md (2025-12-01)
      year  -> Archive/old.md (2025-03-30), g.md (2025-03-01)
               or g.md, h.md when Archive is ignored
    """
    root = tmp_path / "vault"
    root.mkdir()
    write_note(root, "a.md", "created-iso: 2026-03-30T09:00:00")  # too recent
    write_note(root, "b.md", "created-iso: 2026-03-20")
    write_note(root, "c.md", 'created-iso: "2026-03-10T08:15:00Z"')
    write_note(root, "journal/d.md", "created-iso: 2026-03-01")
    write_note(root, "journal/e.md", "created-iso: 2026-02-15")
    write_note(root, "f.md", "created-iso: 2025-12-01")
    write_note(root, "projects/g.md", "created-iso: 2025-03-01")
    write_note(root, "h.md", "created-iso: 2020-01-01")
    write_note(root, "undated.md", None)
    write_note(root, "Archive/old.md", "created-iso: 2025-03-30")
    write_note(root, ".obsidian/hidden.md", "created-iso: 2019-01-01")
    (root / "image.png").write_bytes(b"\x89PNG")
    return root
