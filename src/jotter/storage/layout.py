"""Data root layout and path helpers.

Every document lives at a fixed place under the data root:

    config/
    journals/<year>/<month>/<yyyy-MM-dd>.md
    notes/<id>.md
    notes/.metadata.json
    todos/active.json
    todos/archive/<year>.json
    todos/tags.json

``settings.json`` and ``app_state.json`` live in the app-private config
directory instead, because app state is what points at the data root.
"""

from datetime import date
from pathlib import Path

# Created by DataDirectoryManager.initialize
DATA_SUBDIRS = ("config", "journals", "notes", "todos", "todos/archive")

# Copied by DataDirectoryManager.migrate
MIGRATED_SUBDIRS = ("journals", "notes", "todos")

SETTINGS_FILENAME = "settings.json"
APP_STATE_FILENAME = "app_state.json"
NOTE_INDEX_FILENAME = ".metadata.json"
PROBE_FILENAME = ".jotter_test"


def get_todos_dir(root: Path) -> Path:
    return root / "todos"


def get_active_todos_path(root: Path) -> Path:
    return get_todos_dir(root) / "active.json"


def get_archive_dir(root: Path) -> Path:
    return get_todos_dir(root) / "archive"


def get_archive_path(root: Path, year: int) -> Path:
    """Path of the archive document for todos completed in *year*."""
    return get_archive_dir(root) / f"{year}.json"


def get_tags_path(root: Path) -> Path:
    return get_todos_dir(root) / "tags.json"


def get_journals_dir(root: Path) -> Path:
    return root / "journals"


def get_journal_month_dir(root: Path, year: int, month: int) -> Path:
    return get_journals_dir(root) / str(year) / f"{month:02d}"


def get_journal_path(root: Path, target_date: date) -> Path:
    """
    Get the Markdown file for a journal date.

    Args:
        root: Data root
        target_date: Journal date

    Returns:
        Path like journals/2025/12/2025-12-21.md
    """
    return (
        get_journal_month_dir(root, target_date.year, target_date.month)
        / f"{target_date.isoformat()}.md"
    )


def get_notes_dir(root: Path) -> Path:
    return root / "notes"


def get_note_index_path(root: Path) -> Path:
    return get_notes_dir(root) / NOTE_INDEX_FILENAME


def get_note_path(root: Path, note_id: str) -> Path:
    """
    Get the Markdown file holding a note body.

    Raises:
        ValueError: If *note_id* would resolve outside the notes folder
    """
    if not note_id or note_id in (".", "..") or "/" in note_id or "\\" in note_id:
        raise ValueError(f"Invalid note id: {note_id!r}")
    return get_notes_dir(root) / f"{note_id}.md"
