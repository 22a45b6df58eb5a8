"""File system access for the storage layer.

FileStore is the only place that touches disk. It carries no business
logic: whole-file text reads and writes, directory creation, listing,
copying, and a per-path lock registry that repositories use to serialize
load-mutate-store sequences on the same document.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import ExitStack, contextmanager
from pathlib import Path
from threading import Lock, RLock
from typing import Generator

logger = logging.getLogger(__name__)


class FileStore:
    """Thin wrapper around the local file system."""

    def __init__(self):
        self._locks: dict[str, RLock] = {}
        self._locks_guard = Lock()

    def exists(self, path: Path) -> bool:
        return path.exists()

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def create_directories(self, path: Path) -> None:
        """Create *path* and any missing parents."""
        path.mkdir(parents=True, exist_ok=True)

    def read_text(self, path: Path) -> str | None:
        """
        Read a whole file as UTF-8.

        Returns:
            File content, or None if the file does not exist
        """
        try:
            return path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def write_text(self, path: Path, content: str) -> None:
        """
        Replace the content of *path*, creating parent directories.

        The text goes to a temporary sibling first and is then renamed over
        the target, so readers see either the old or the new document.
        """
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(content)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, path)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except FileNotFoundError:
                pass
            raise
        logger.debug("Wrote %s (%d chars)", path, len(content))

    def restore_text(self, path: Path, previous: str | None) -> None:
        """Put back content captured by read_text (None means it was absent)."""
        if previous is None:
            self.delete(path)
        else:
            self.write_text(path, previous)

    def delete(self, path: Path) -> bool:
        """
        Delete a file or empty directory.

        Returns:
            True if something was deleted, False if nothing existed
        """
        try:
            if path.is_dir() and not path.is_symlink():
                path.rmdir()
            else:
                path.unlink()
        except FileNotFoundError:
            return False
        return True

    def delete_recursively(self, path: Path) -> bool:
        """Delete a directory tree. Returns False if it did not exist."""
        if not path.exists():
            return False
        if path.is_dir():
            shutil.rmtree(path)
        else:
            path.unlink()
        return True

    def list(self, path: Path) -> list[Path]:
        """List direct children of *path* (empty if not a directory)."""
        if not path.is_dir():
            return []
        return sorted(path.iterdir())

    def copy(self, source: Path, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(source, destination)

    def copy_directory(self, source: Path, destination: Path) -> None:
        """Copy a directory tree, merging into *destination* if it exists."""
        shutil.copytree(source, destination, dirs_exist_ok=True)

    def move(self, source: Path, destination: Path) -> None:
        destination.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(source, destination)

    def _lock_for(self, path: Path) -> RLock:
        key = str(path.expanduser().resolve())
        with self._locks_guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = RLock()
            return lock

    @contextmanager
    def locked(self, *paths: Path) -> Generator[None, None, None]:
        """
        Hold the in-process lock for each of *paths*.

        Locks are taken in sorted path order so two callers locking the
        same set cannot deadlock. They are re-entrant within a thread.
        """
        locks = {str(p.expanduser().resolve()): self._lock_for(p) for p in paths}
        with ExitStack() as stack:
            for key in sorted(locks):
                stack.enter_context(locks[key])
            yield
