"""Note repository - Markdown bodies plus a JSON metadata index.

Each note body is ``notes/<id>.md``; ``notes/.metadata.json`` holds id,
title, tags and timestamps for every note so lists and tag views never open
the bodies. The index decides whether a note exists: a body file with no
index entry is ignored.

A save writes the body and then the index. If the index write fails the body
is put back the way it was, so the two stay in step.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable
from pathlib import Path

from jotter.core.timeutils import now_ms
from jotter.core.types import Note, NoteIndex, NoteMetadata
from jotter.storage.codec import load_document, write_document
from jotter.storage.filesystem import FileStore
from jotter.storage.layout import (
    get_note_index_path,
    get_note_path,
    get_notes_dir,
)

logger = logging.getLogger(__name__)


class NoteRepo:
    """Repository for notes and the note index."""

    def __init__(
        self,
        fs: FileStore,
        data_path: Callable[[], Path],
        clock: Callable[[], int] = now_ms,
    ):
        self.fs = fs
        self._data_path = data_path
        self._clock = clock

    @property
    def root(self) -> Path:
        return self._data_path()

    def list(self) -> list[NoteMetadata]:
        """Get metadata for all notes, in index order."""
        return self._load_index()

    def get(self, note_id: str) -> Note | None:
        """
        Get a note with its body.

        Returns:
            The note, or None if it is not indexed or its body is missing or
            unreadable
        """
        metadata = next((m for m in self._load_index() if m.id == note_id), None)
        if metadata is None:
            return None

        content = self._read_body(note_id)
        if content is None:
            logger.warning("Note %s is indexed but has no readable content", note_id)
            return None

        return Note(
            id=metadata.id,
            title=metadata.title,
            content=content,
            tags=metadata.tags,
            created_at=metadata.created_at,
            updated_at=metadata.updated_at,
        )

    def save(self, note: Note) -> None:
        """
        Write the note body and upsert its index entry.

        An existing entry is replaced in place and keeps its original
        ``created_at``; ``updated_at`` is set to now.
        """
        root = self.root
        content_path = get_note_path(root, note.id)
        with self.fs.locked(get_notes_dir(root)):
            previous_content = self.fs.read_text(content_path)
            self.fs.write_text(content_path, note.content)
            try:
                self._upsert_index(note)
            except OSError:
                logger.error(
                    "Index update failed for note %s; reverting body", note.id
                )
                self.fs.restore_text(content_path, previous_content)
                raise

    def create(
        self, title: str, content: str, tags: list[str] | None = None
    ) -> Note:
        """Create a note with a fresh id and save it."""
        now = self._clock()
        note = Note(
            id=self._generate_id(now),
            title=title,
            content=content,
            tags=tags or [],
            created_at=now,
            updated_at=now,
        )
        self.save(note)
        return note

    def delete(self, note_id: str) -> bool:
        """
        Delete a note body and its index entry.

        The index entry is removed even if the body file is already gone.

        Returns:
            True if the body file existed
        """
        root = self.root
        with self.fs.locked(get_notes_dir(root)):
            deleted = self.fs.delete(get_note_path(root, note_id))
            entries = self._load_index()
            remaining = [m for m in entries if m.id != note_id]
            if len(remaining) < len(entries):
                self._save_index(remaining)
        return deleted

    def list_by_tag(self, tag: str) -> list[NoteMetadata]:
        return [m for m in self._load_index() if tag in m.tags]

    def all_tags(self) -> list[str]:
        """All tags used by any note, deduplicated and sorted."""
        return sorted({tag for m in self._load_index() for tag in m.tags})

    def search(self, query: str) -> list[NoteMetadata]:
        """
        Case-insensitive search over title, tags and body.

        Bodies are only read for notes whose title and tags do not match.
        """
        needle = query.casefold()
        return [m for m in self._load_index() if self._matches(m, needle)]

    def _matches(self, metadata: NoteMetadata, needle: str) -> bool:
        if needle in metadata.title.casefold():
            return True
        if any(needle in tag.casefold() for tag in metadata.tags):
            return True
        content = self._read_body(metadata.id) or ""
        return needle in content.casefold()

    def _read_body(self, note_id: str) -> str | None:
        path = get_note_path(self.root, note_id)
        try:
            return self.fs.read_text(path)
        except UnicodeDecodeError as e:
            logger.warning("Ignoring unreadable note %s: %s", path, e)
            return None

    def _upsert_index(self, note: Note) -> None:
        entries = self._load_index()
        now = self._clock()
        for index, existing in enumerate(entries):
            if existing.id == note.id:
                entries[index] = NoteMetadata(
                    id=note.id,
                    title=note.title,
                    tags=note.tags,
                    created_at=existing.created_at,
                    updated_at=now,
                )
                break
        else:
            entries.append(
                NoteMetadata(
                    id=note.id,
                    title=note.title,
                    tags=note.tags,
                    created_at=note.created_at,
                    updated_at=now,
                )
            )
        self._save_index(entries)

    def _generate_id(self, now: int) -> str:
        return f"{now}-{random.randint(0, 999999)}"

    def _load_index(self) -> list[NoteMetadata]:
        path = get_note_index_path(self.root)
        return list(load_document(self.fs, path, NoteIndex, NoteIndex()).notes)

    def _save_index(self, entries: list[NoteMetadata]) -> None:
        path = get_note_index_path(self.root)
        write_document(self.fs, path, NoteIndex(notes=entries))
