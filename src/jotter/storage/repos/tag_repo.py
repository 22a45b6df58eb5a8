"""Tag repository - user-defined todo tags."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from jotter.core.types import TagList
from jotter.storage.codec import load_document, write_document
from jotter.storage.filesystem import FileStore
from jotter.storage.layout import get_tags_path


class TagRepo:
    """Tags (``{"tags": [tag1, tag2, ...]}``), trimmed and without duplicates."""

    def __init__(self, fs: FileStore, data_path: Callable[[], Path]):
        self.fs = fs
        self._data_path = data_path

    @property
    def path(self) -> Path:
        return get_tags_path(self._data_path())

    def list(self) -> list[str]:
        """Return all tags in insertion order (empty list if none)."""
        return list(load_document(self.fs, self.path, TagList, TagList()).tags)

    def add(self, tag: str) -> bool:
        """Add *tag*. Return ``False`` if it is blank or already present."""
        tag = tag.strip()
        if not tag:
            return False
        path = self.path
        with self.fs.locked(path):
            tags = self.list()
            if tag in tags:
                return False
            tags.append(tag)
            write_document(self.fs, path, TagList(tags=tags))
        return True

    def delete(self, tag: str) -> bool:
        """Remove *tag*. Return ``False`` if not found."""
        path = self.path
        with self.fs.locked(path):
            tags = self.list()
            if tag not in tags:
                return False
            tags.remove(tag)
            write_document(self.fs, path, TagList(tags=tags))
        return True
