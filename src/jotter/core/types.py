"""Shared document models for Jotter.

Every JSON document on disk maps to one of the pydantic models below. Keys
are camelCase on disk and snake_case in Python. Decoding is lenient: unknown
keys are ignored, and an invalid value for a field that has a default is
replaced by that default (see ``Document.coerce``).
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Self

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

from jotter.core.timeutils import now_ms

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 5
MIN_PRIORITY = 1
MAX_PRIORITY = 5

# Pre-migration todos stored a three-level enum instead of 1..5
LEGACY_PRIORITY = {"HIGH": 2, "NORMAL": 5, "LOW": 4}

_TRUE_STRINGS = {"1", "true", "yes", "on", "t", "y"}


def _is_true(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in _TRUE_STRINGS
    return value is True or (isinstance(value, int | float) and value == 1)


class DecodeError(Exception):
    """Raised when a stored document cannot be decoded."""

    pass


class Document(BaseModel):
    """Base for persisted documents (camelCase on disk, frozen in memory)."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def _field_has_default(cls, key: Any) -> bool:
        for name, field in cls.model_fields.items():
            keys = {name, field.alias, field.serialization_alias}
            if isinstance(field.validation_alias, AliasChoices):
                keys.update(
                    c for c in field.validation_alias.choices if isinstance(c, str)
                )
            elif isinstance(field.validation_alias, str):
                keys.add(field.validation_alias)
            if key in keys:
                return not field.is_required()
        return False

    @classmethod
    def coerce(cls, raw: Any) -> Self:
        """Validate *raw*, falling back to defaults for invalid fields.

        Raises:
            DecodeError: If *raw* is not a mapping or a required field is
                missing or invalid.
        """
        if not isinstance(raw, dict):
            raise DecodeError(
                f"{cls.__name__} must be an object, got {type(raw).__name__}"
            )
        data = dict(raw)
        while True:
            try:
                return cls.model_validate(data)
            except ValidationError as exc:
                bad_keys = {err["loc"][0] for err in exc.errors() if err["loc"]}
                droppable = [
                    key
                    for key in bad_keys
                    if key in data and cls._field_has_default(key)
                ]
                if not droppable:
                    raise DecodeError(
                        f"Invalid {cls.__name__}: {exc.error_count()} error(s)"
                    ) from exc
                for key in droppable:
                    logger.debug("%s: using default for %r", cls.__name__, key)
                    del data[key]


def _coerce_items(model: type[Document], value: Any) -> list[Any]:
    """Decode a list item by item, skipping entries that cannot be recovered."""
    if not isinstance(value, list):
        raise ValueError("expected a list")
    items = []
    for position, raw in enumerate(value):
        if isinstance(raw, model):
            items.append(raw)
            continue
        try:
            items.append(model.coerce(raw))
        except DecodeError as exc:
            logger.warning(
                "Skipping %s at position %d: %s", model.__name__, position, exc
            )
    return items


# --- Todos ---


class Todo(Document):
    """A single todo item.

    ``completed_at`` is set exactly when ``completed`` is true. ``priority``
    runs from 1 (highest) to 5.
    """

    id: str
    title: str = ""
    description: str = ""
    completed: bool = False
    tag: str | None = None
    priority: int = DEFAULT_PRIORITY
    due_at: int | None = Field(
        default=None,
        validation_alias=AliasChoices("dueAt", "dueDateTime"),
        serialization_alias="dueAt",
    )
    completed_at: int | None = None
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    @model_validator(mode="before")
    @classmethod
    def _completed_at_only_when_completed(cls, data: Any) -> Any:
        if isinstance(data, dict) and not _is_true(data.get("completed", False)):
            return {
                key: value
                for key, value in data.items()
                if key not in ("completedAt", "completed_at")
            }
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _legacy_int_id(cls, value: Any) -> Any:
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("priority", mode="before")
    @classmethod
    def _decode_priority(cls, value: Any) -> int:
        if isinstance(value, bool):
            return DEFAULT_PRIORITY
        if isinstance(value, str):
            stripped = value.strip()
            if not stripped.isdigit():
                return LEGACY_PRIORITY.get(value, DEFAULT_PRIORITY)
            value = int(stripped)
        if isinstance(value, int) and MIN_PRIORITY <= value <= MAX_PRIORITY:
            return value
        return DEFAULT_PRIORITY


class TodoList(Document):
    """Contents of ``todos/active.json`` and ``todos/archive/<year>.json``."""

    todos: list[Todo] = Field(default_factory=list)

    @field_validator("todos", mode="before")
    @classmethod
    def _coerce_todos(cls, value: Any) -> list[Any]:
        return _coerce_items(Todo, value)


class TagList(Document):
    """User-defined todo tags: trimmed, non-empty, no duplicates."""

    tags: list[str] = Field(default_factory=list)

    @field_validator("tags", mode="before")
    @classmethod
    def _clean_tags(cls, value: Any) -> list[str]:
        if not isinstance(value, list):
            raise ValueError("expected a list")
        cleaned = (t.strip() for t in value if isinstance(t, str))
        return list(dict.fromkeys(t for t in cleaned if t))


# --- Journals ---


class Journal(Document):
    """One journal entry; the date is the primary key."""

    date: dt.date
    title: str
    content: str
    mood: str | None = None
    weather: str | None = None
    created_at: int
    updated_at: int


class JournalMetadata(Document):
    """Journal fields needed for list views (no body)."""

    date: dt.date
    title: str
    mood: str | None = None
    weather: str | None = None
    updated_at: int

    @classmethod
    def from_journal(cls, journal: Journal) -> JournalMetadata:
        return cls(
            date=journal.date,
            title=journal.title,
            mood=journal.mood,
            weather=journal.weather,
            updated_at=journal.updated_at,
        )


# --- Notes ---


def _unique_strings(value: Any) -> Any:
    if not isinstance(value, list):
        return value
    return list(dict.fromkeys(t for t in value if isinstance(t, str)))


class Note(Document):
    """A note: metadata plus its Markdown body."""

    id: str
    title: str = ""
    content: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value: Any) -> Any:
        return _unique_strings(value)


class NoteMetadata(Document):
    """Index entry for a note, stored in ``notes/.metadata.json``."""

    id: str
    title: str = ""
    tags: list[str] = Field(default_factory=list)
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    @field_validator("tags", mode="before")
    @classmethod
    def _dedupe_tags(cls, value: Any) -> Any:
        return _unique_strings(value)


class NoteIndex(Document):
    """All note metadata, so listing never opens the note files."""

    notes: list[NoteMetadata] = Field(default_factory=list)

    @field_validator("notes", mode="before")
    @classmethod
    def _coerce_notes(cls, value: Any) -> list[Any]:
        return _coerce_items(NoteMetadata, value)


# --- Settings ---


class Theme(StrEnum):
    """Theme mode."""

    LIGHT = "LIGHT"
    DARK = "DARK"
    SYSTEM = "SYSTEM"


class AppSettings(Document):
    """User preferences (``settings.json``)."""

    theme: Theme = Theme.SYSTEM
    language: str = "zh-CN"
    show_completed_todos: bool = True
    default_todo_category: str | None = None
    daily_reminder_time: str | None = None


class AppState(Document):
    """Runtime state (``app_state.json``), kept apart from user settings.

    ``data_path`` locates every other document, so this is read before any
    domain repository touches disk.
    """

    data_path: str
    last_opened_route: str | None = None
    is_first_launch: bool = True
    app_version: str = "1.0.0"
    is_developer_mode_enabled: bool = False


@dataclass(frozen=True)
class StorageInfo:
    """Entry counts for the settings screen."""

    data_path: str
    journal_count: int
    note_count: int
    todo_count: int


@dataclass(frozen=True)
class DataStats:
    """Counts of stored journals, notes and todos under a data root."""

    journal_count: int
    note_count: int
    todo_count: int
