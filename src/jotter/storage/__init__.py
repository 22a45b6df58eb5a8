"""Storage layer for Jotter - file store, document codec and repositories."""

from jotter.storage.codec import DecodeError
from jotter.storage.directories import DataDirectoryManager
from jotter.storage.filesystem import FileStore
from jotter.storage.repos import (
    JournalRepo,
    NoteRepo,
    SettingsRepo,
    TagRepo,
    TodoRepo,
)

__all__ = [
    "DataDirectoryManager",
    "DecodeError",
    "FileStore",
    "JournalRepo",
    "NoteRepo",
    "SettingsRepo",
    "TagRepo",
    "TodoRepo",
]
