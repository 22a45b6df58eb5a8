"""Data root bootstrap, validation and migration."""

import logging
from pathlib import Path

from jotter.core.types import DataStats, TodoList
from jotter.storage.codec import load_document
from jotter.storage.filesystem import FileStore
from jotter.storage.layout import (
    DATA_SUBDIRS,
    MIGRATED_SUBDIRS,
    PROBE_FILENAME,
    get_active_todos_path,
    get_archive_dir,
    get_journals_dir,
    get_notes_dir,
)

logger = logging.getLogger(__name__)


class DataDirectoryManager:
    """Creates, checks and relocates the data directory tree."""

    def __init__(self, fs: FileStore):
        self.fs = fs

    def initialize(self, root: Path) -> None:
        """
        Ensure the data directory structure exists.

        Safe to call multiple times; existing files are left alone.
        """
        root = Path(root)
        for name in DATA_SUBDIRS:
            self.fs.create_directories(root / name)
        logger.info("Data directory ready at %s", root)

    def validate(self, path: Path) -> bool:
        """
        Check that *path* is an existing, writable directory.

        Writability is probed by writing and deleting a scratch file.
        """
        path = Path(path)
        if not self.fs.exists(path) or not self.fs.is_dir(path):
            return False

        probe = path / PROBE_FILENAME
        try:
            self.fs.write_text(probe, "test")
            self.fs.delete(probe)
        except OSError as e:
            logger.warning("Data directory %s is not writable: %s", path, e)
            return False
        return True

    def migrate(self, old_root: Path, new_root: Path) -> bool:
        """
        Copy journals, notes and todos from *old_root* into *new_root*.

        The old tree is never modified. This is best effort: on failure a
        partially copied destination may remain.

        Returns:
            True if everything was copied
        """
        old_root = Path(old_root).expanduser()
        new_root = Path(new_root).expanduser()
        if old_root.resolve() == new_root.resolve():
            return True

        try:
            self.initialize(new_root)
            for name in MIGRATED_SUBDIRS:
                source = old_root / name
                if self.fs.exists(source):
                    self.fs.copy_directory(source, new_root / name)
        except OSError:
            logger.error(
                "Failed to migrate data from %s to %s",
                old_root,
                new_root,
                exc_info=True,
            )
            return False

        logger.info("Migrated data from %s to %s", old_root, new_root)
        return True

    def stats(self, root: Path) -> DataStats:
        """Count journal files, note files and stored todos under *root*."""
        root = Path(root)
        journal_count = 0
        for year_dir in self.fs.list(get_journals_dir(root)):
            for month_dir in self.fs.list(year_dir):
                journal_count += sum(
                    1 for p in self.fs.list(month_dir) if p.suffix == ".md"
                )

        note_count = sum(
            1 for p in self.fs.list(get_notes_dir(root)) if p.suffix == ".md"
        )

        todo_paths = [get_active_todos_path(root)] + [
            p for p in self.fs.list(get_archive_dir(root)) if p.suffix == ".json"
        ]
        todo_count = sum(
            len(load_document(self.fs, p, TodoList, TodoList()).todos)
            for p in todo_paths
        )

        return DataStats(
            journal_count=journal_count,
            note_count=note_count,
            todo_count=todo_count,
        )
