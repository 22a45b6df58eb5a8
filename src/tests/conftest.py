"""Shared test fixtures and configuration."""

from __future__ import annotations

from datetime import datetime

import pytest

from jotter.core.timeutils import MS_PER_DAY
from jotter.core.types import Todo
from jotter.storage.filesystem import FileStore

# Local noon, so +/- a few hours never crosses a calendar day
NOW_MS = int(datetime(2025, 12, 21, 12, 0).timestamp() * 1000)


class FakeClock:
    """Settable epoch-millisecond clock."""

    def __init__(self, now: int = NOW_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, days: float = 0, ms: int = 0) -> None:
        self.now += int(days * MS_PER_DAY) + ms


@pytest.fixture
def data_root(tmp_path):
    """Data root directory for repositories."""
    root = tmp_path / "data"
    root.mkdir()
    return root


@pytest.fixture
def fs():
    return FileStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_env(monkeypatch, tmp_path):
    """Set up mock environment variables."""
    env_vars = {
        "JOTTER_CONFIG_DIR": str(tmp_path / "config"),
        "JOTTER_DATA_DIR": str(tmp_path / "data"),
        "JOTTER_ARCHIVE_DAYS": "7",
        "LOG_LEVEL": "DEBUG",
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture
def make_todo():
    """Factory for Todo objects with fixed timestamps."""

    def _make_todo(
        todo_id: str = "todo-1",
        *,
        title: str = "Buy milk",
        completed: bool = False,
        completed_at: int | None = None,
        due_at: int | None = None,
        priority: int = 5,
        tag: str | None = None,
    ) -> Todo:
        return Todo(
            id=todo_id,
            title=title,
            completed=completed,
            completed_at=completed_at,
            due_at=due_at,
            priority=priority,
            tag=tag,
            created_at=NOW_MS - MS_PER_DAY,
            updated_at=NOW_MS - MS_PER_DAY,
        )

    return _make_todo


@pytest.fixture
def sample_active_document():
    """Active todo document as an older app version wrote it."""
    return {
        "todos": [
            {
                "id": "a1",
                "title": "Legacy high",
                "priority": "HIGH",
                "dueDateTime": NOW_MS,
                "createdAt": NOW_MS,
                "updatedAt": NOW_MS,
                "someFutureField": {"x": 1},
            },
            {
                "id": "a2",
                "title": "Numeric",
                "priority": 3,
                "completed": False,
            },
        ]
    }
