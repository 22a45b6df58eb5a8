"""Todo repository - active list plus per-year archives.

Unfinished and recently completed todos live in ``todos/active.json``.
Todos completed longer ago than the retention window are moved into
``todos/archive/<year>.json`` by completion year. A todo id exists in
exactly one of those documents at a time.

Every mutation re-reads the documents it touches, changes them, and writes
them back whole while holding the todos lock. Moves between documents write
the destination first and revert it if removing from the source fails.
"""

import logging
from collections.abc import Callable, Iterable
from datetime import date
from pathlib import Path

from jotter.core.timeutils import MS_PER_DAY, local_date, local_year, now_ms
from jotter.core.types import Todo, TodoList
from jotter.storage.codec import load_document, write_document
from jotter.storage.filesystem import FileStore
from jotter.storage.layout import (
    get_active_todos_path,
    get_archive_dir,
    get_archive_path,
    get_todos_dir,
)

logger = logging.getLogger(__name__)

DEFAULT_ARCHIVE_DAYS = 7


def _unique_by_id(todos: Iterable[Todo]) -> list[Todo]:
    """Drop later todos whose id was already seen."""
    seen: set[str] = set()
    unique = []
    for todo in todos:
        if todo.id not in seen:
            seen.add(todo.id)
            unique.append(todo)
    return unique


class TodoRepo:
    """Repository for todo data access."""

    def __init__(
        self,
        fs: FileStore,
        data_path: Callable[[], Path],
        clock: Callable[[], int] = now_ms,
    ):
        """
        Initialize todo repository.

        Args:
            fs: File store
            data_path: Returns the current data root
            clock: Returns the current time in epoch milliseconds
        """
        self.fs = fs
        self._data_path = data_path
        self._clock = clock

    @property
    def root(self) -> Path:
        return self._data_path()

    # --- Queries ---

    def list_active(self) -> list[Todo]:
        """Get all todos in the active document (empty if missing/corrupt)."""
        return self._load(get_active_todos_path(self.root))

    def list_by_date(self, target_date: date) -> list[Todo]:
        """Get active todos due on *target_date* (local calendar)."""
        return [
            todo
            for todo in self.list_active()
            if todo.due_at is not None and local_date(todo.due_at) == target_date
        ]

    def list_today(self) -> list[Todo]:
        """
        Get the todos to show for today.

        - Incomplete, no due date: always shown
        - Incomplete, due date set: shown when due today or overdue
        - Completed: shown only if completed today
        """
        today = local_date(self._clock())
        result = []
        for todo in self.list_active():
            if todo.completed:
                completed_at = todo.completed_at
                if completed_at is not None and local_date(completed_at) == today:
                    result.append(todo)
            elif todo.due_at is None or local_date(todo.due_at) <= today:
                result.append(todo)
        return result

    def archive_years(self) -> list[int]:
        """Years that have an archive document, ascending."""
        years = []
        for path in self.fs.list(get_archive_dir(self.root)):
            if path.suffix != ".json":
                continue
            try:
                years.append(int(path.stem))
            except ValueError:
                continue
        return sorted(years)

    def archived(self, year: int) -> list[Todo]:
        """Get archived todos for *year*."""
        return self._load(get_archive_path(self.root, year))

    def all_archived(self) -> list[Todo]:
        return [todo for year in self.archive_years() for todo in self.archived(year)]

    def all_completed(self) -> list[Todo]:
        """Completed todos from the active and archive documents, newest first."""
        active_completed = [t for t in self.list_active() if t.completed]
        merged = _unique_by_id(active_completed + self.all_archived())
        return sorted(merged, key=lambda t: t.completed_at or 0, reverse=True)

    def all_todos(self) -> list[Todo]:
        """Pending active todos followed by every completed todo."""
        pending = [t for t in self.list_active() if not t.completed]
        return _unique_by_id(pending + self.all_completed())

    # --- Mutations ---

    def save(self, todo: Todo) -> Todo:
        """
        Insert or update a todo.

        A todo whose id is already stored is replaced where it lives and its
        ``updated_at`` refreshed. An archived todo saved as not completed is
        moved back to the active document. A new todo is appended to the
        active document. ``completed_at`` is filled in for a completed todo
        that has none.

        Returns:
            The todo as stored
        """
        root = self.root
        path = get_active_todos_path(root)
        if todo.completed and todo.completed_at is None:
            todo = todo.model_copy(update={"completed_at": self._clock()})
        with self.fs.locked(get_todos_dir(root)):
            todos = self._load(path)
            for index, existing in enumerate(todos):
                if existing.id == todo.id:
                    todo = todo.model_copy(update={"updated_at": self._clock()})
                    todos[index] = todo
                    self._write(path, todos)
                    return todo

            found = self._find_archived(todo.id)
            if found is not None:
                year, archived, index = found
                todo = todo.model_copy(update={"updated_at": self._clock()})
                if todo.completed:
                    archived[index] = todo
                    self._write(get_archive_path(root, year), archived)
                else:
                    del archived[index]
                    self._move_to_active(year, archived, todos, todo)
                return todo

            todos.append(todo)
            self._write(path, todos)
        return todo

    def complete(self, todo_id: str) -> bool:
        """Mark an active todo completed. Returns False if not found."""
        path = get_active_todos_path(self.root)
        with self.fs.locked(get_todos_dir(self.root)):
            todos = self._load(path)
            for index, todo in enumerate(todos):
                if todo.id == todo_id:
                    now = self._clock()
                    todos[index] = todo.model_copy(
                        update={
                            "completed": True,
                            "completed_at": now,
                            "updated_at": now,
                        }
                    )
                    self._write(path, todos)
                    return True
        return False

    def uncomplete(self, todo_id: str) -> bool:
        """
        Mark a todo not completed.

        A todo found in an archive is moved back into the active document.
        If the move fails halfway the active document is restored, leaving
        the todo where it was, and the error is re-raised.

        Returns:
            False if no todo with *todo_id* exists
        """
        root = self.root
        active_path = get_active_todos_path(root)
        with self.fs.locked(get_todos_dir(root)):
            active = self._load(active_path)
            for index, todo in enumerate(active):
                if todo.id == todo_id:
                    active[index] = self._reopened(todo)
                    self._write(active_path, active)
                    return True

            found = self._find_archived(todo_id)
            if found is None:
                return False
            year, archived, index = found
            todo = archived.pop(index)
            self._move_to_active(year, archived, active, self._reopened(todo))
        return True

    def delete(self, todo_id: str) -> bool:
        """
        Delete a todo from the active document or, failing that, an archive.

        Only the document that contained the todo is rewritten.

        Returns:
            True if a todo was removed
        """
        root = self.root
        with self.fs.locked(get_todos_dir(root)):
            candidates = [get_active_todos_path(root)] + [
                get_archive_path(root, year) for year in self.archive_years()
            ]
            for path in candidates:
                todos = self._load(path)
                remaining = [t for t in todos if t.id != todo_id]
                if len(remaining) < len(todos):
                    self._write(path, remaining)
                    return True
        return False

    def archive_completed(self, days_old: int = DEFAULT_ARCHIVE_DAYS) -> int:
        """
        Move todos completed more than *days_old* days ago into archives.

        Archived todos are grouped by the local year of ``completed_at`` and
        merged into that year's archive. On an id collision the copy already
        in the archive is kept. Running this twice in a row changes nothing
        the second time, and every id ends up in exactly one document.

        Returns:
            Number of todos removed from the active document
        """
        root = self.root
        now = self._clock()
        cutoff = now - days_old * MS_PER_DAY
        active_path = get_active_todos_path(root)

        with self.fs.locked(get_todos_dir(root)):
            todos = self._load(active_path)
            to_archive: list[Todo] = []
            to_keep: list[Todo] = []
            for todo in todos:
                expired = todo.completed_at is not None and todo.completed_at < cutoff
                (to_archive if todo.completed and expired else to_keep).append(todo)
            if not to_archive:
                return 0

            by_year: dict[int, list[Todo]] = {}
            for todo in to_archive:
                year = local_year(
                    todo.completed_at if todo.completed_at is not None else now
                )
                by_year.setdefault(year, []).append(todo)

            originals: dict[Path, str | None] = {}
            try:
                for year, year_todos in sorted(by_year.items()):
                    archive_path = get_archive_path(root, year)
                    originals[archive_path] = self.fs.read_text(archive_path)
                    existing = self._load(archive_path)
                    self._write(archive_path, self._merge(year, existing, year_todos))
                self._write(active_path, to_keep)
            except OSError:
                logger.error(
                    "Archiving failed; restoring %d archive(s)", len(originals)
                )
                for archive_path, content in originals.items():
                    self.fs.restore_text(archive_path, content)
                raise

        logger.info(
            "Archived %d completed todo(s) into year(s) %s",
            len(to_archive),
            sorted(by_year),
        )
        return len(to_archive)

    # --- Helpers ---

    def _find_archived(self, todo_id: str) -> tuple[int, list[Todo], int] | None:
        """Locate *todo_id* in the archives as (year, archive todos, index)."""
        for year in self.archive_years():
            archived = self._load(get_archive_path(self.root, year))
            for index, todo in enumerate(archived):
                if todo.id == todo_id:
                    return year, archived, index
        return None

    def _move_to_active(
        self, year: int, archived: list[Todo], active: list[Todo], todo: Todo
    ) -> None:
        """
        Append *todo* to active, then rewrite the archive without it.

        *archived* must already exclude the todo. If the archive write fails
        the active document is restored and the error re-raised.
        """
        root = self.root
        active_path = get_active_todos_path(root)
        previous_active = self.fs.read_text(active_path)
        self._write(active_path, active + [todo])
        try:
            self._write(get_archive_path(root, year), archived)
        except OSError:
            logger.error(
                "Failed to remove todo %s from archive %s; reverting", todo.id, year
            )
            self.fs.restore_text(active_path, previous_active)
            raise
        logger.info("Moved todo %s from archive %s to active", todo.id, year)

    def _reopened(self, todo: Todo) -> Todo:
        return todo.model_copy(
            update={
                "completed": False,
                "completed_at": None,
                "updated_at": self._clock(),
            }
        )

    @staticmethod
    def _merge(year: int, existing: list[Todo], incoming: list[Todo]) -> list[Todo]:
        existing_ids = {t.id for t in existing}
        for todo in incoming:
            if todo.id in existing_ids:
                logger.warning(
                    "Todo %s already archived in %s; keeping the archived copy",
                    todo.id,
                    year,
                )
        return _unique_by_id(existing + incoming)

    def _load(self, path: Path) -> list[Todo]:
        return list(load_document(self.fs, path, TodoList, TodoList()).todos)

    def _write(self, path: Path, todos: list[Todo]) -> None:
        write_document(self.fs, path, TodoList(todos=todos))
