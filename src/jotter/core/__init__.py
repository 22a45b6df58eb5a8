"""Jotter core - document types, configuration and app wiring."""

from typing import TYPE_CHECKING

from jotter.core.types import (
    AppSettings,
    AppState,
    Journal,
    JournalMetadata,
    Note,
    NoteMetadata,
    Theme,
    Todo,
)

if TYPE_CHECKING:
    from jotter.core.container import AppContainer, build_container

__all__ = [
    # Wiring
    "AppContainer",
    "build_container",
    # Types
    "AppSettings",
    "AppState",
    "Journal",
    "JournalMetadata",
    "Note",
    "NoteMetadata",
    "Theme",
    "Todo",
]


def __getattr__(name: str):
    if name == "AppContainer":
        from jotter.core.container import AppContainer

        return AppContainer
    if name == "build_container":
        from jotter.core.container import build_container

        return build_container
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
