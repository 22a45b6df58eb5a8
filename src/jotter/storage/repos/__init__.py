"""Repository classes for data access."""

from jotter.storage.repos.journal_repo import JournalRepo
from jotter.storage.repos.note_repo import NoteRepo
from jotter.storage.repos.settings_repo import SettingsRepo
from jotter.storage.repos.tag_repo import TagRepo
from jotter.storage.repos.todo_repo import TodoRepo

__all__ = [
    "JournalRepo",
    "NoteRepo",
    "SettingsRepo",
    "TagRepo",
    "TodoRepo",
]
