"""Tests for jotter.storage.repos.todo_repo."""

import json
import logging
from datetime import datetime, timedelta

import pytest

from jotter.core.timeutils import MS_PER_DAY, local_date
from jotter.storage.layout import get_active_todos_path, get_archive_path
from jotter.storage.repos.todo_repo import TodoRepo
from tests.conftest import NOW_MS


@pytest.fixture
def repo(fs, data_root, clock):
    return TodoRepo(fs, lambda: data_root, clock=clock)


def _ids(todos):
    return [t.id for t in todos]


def _write_json(path, payload):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload), encoding="utf-8")


def _stored_ids(data_root):
    """Every todo id on disk, per document."""
    result = {}
    for path in sorted((data_root / "todos").rglob("*.json")):
        if path.name == "tags.json":
            continue
        payload = json.loads(path.read_text(encoding="utf-8"))
        result[path.relative_to(data_root).as_posix()] = [
            t["id"] for t in payload["todos"]
        ]
    return result


class TestQueries:
    """Tests for read-only queries."""

    def test_missing_documents_are_empty(self, repo):
        assert repo.list_active() == []
        assert repo.archive_years() == []
        assert repo.all_todos() == []

    def test_corrupt_active_reads_as_empty(self, repo, data_root, caplog):
        path = get_active_todos_path(data_root)
        path.parent.mkdir(parents=True)
        path.write_text("not json", encoding="utf-8")

        assert repo.list_active() == []
        assert "Ignoring unreadable document" in caplog.text

    def test_legacy_active_document(self, repo, data_root, sample_active_document):
        _write_json(get_active_todos_path(data_root), sample_active_document)

        todos = repo.list_active()

        assert _ids(todos) == ["a1", "a2"]
        assert todos[0].priority == 2
        assert todos[0].due_at == NOW_MS

    def test_list_by_date(self, repo, make_todo):
        repo.save(make_todo("today", due_at=NOW_MS))
        repo.save(make_todo("tomorrow", due_at=NOW_MS + MS_PER_DAY))
        repo.save(make_todo("undated"))

        today = local_date(NOW_MS)

        assert _ids(repo.list_by_date(today)) == ["today"]
        assert _ids(repo.list_by_date(today + timedelta(days=1))) == ["tomorrow"]

    def test_list_today(self, repo, make_todo):
        """Today's view: undated, due-or-overdue, and completed today."""
        repo.save(make_todo("undated"))
        repo.save(make_todo("overdue", due_at=NOW_MS - 3 * MS_PER_DAY))
        repo.save(make_todo("due-today", due_at=NOW_MS + 60_000))
        repo.save(make_todo("future", due_at=NOW_MS + 2 * MS_PER_DAY))
        repo.save(
            make_todo("done-today", completed=True, completed_at=NOW_MS - 60_000)
        )
        repo.save(
            make_todo(
                "done-yesterday", completed=True, completed_at=NOW_MS - MS_PER_DAY
            )
        )

        assert _ids(repo.list_today()) == [
            "undated",
            "overdue",
            "due-today",
            "done-today",
        ]

    def test_archive_years_ignores_other_files(self, repo, data_root):
        archive_dir = data_root / "todos" / "archive"
        archive_dir.mkdir(parents=True)
        for name in ("2024.json", "2023.json", "notes.txt", "misc.json"):
            (archive_dir / name).write_text('{"todos": []}', encoding="utf-8")

        assert repo.archive_years() == [2023, 2024]

    def test_all_completed_sorted_and_deduplicated(self, repo, data_root, make_todo):
        repo.save(make_todo("active-done", completed=True, completed_at=NOW_MS))
        repo.save(make_todo("pending"))
        _write_json(
            get_archive_path(data_root, 2024),
            {
                "todos": [
                    {"id": "old", "completed": True, "completedAt": NOW_MS - 500},
                    {"id": "active-done", "completed": True, "completedAt": 1},
                ]
            },
        )

        completed = repo.all_completed()

        assert _ids(completed) == ["active-done", "old"]
        assert completed[0].completed_at == NOW_MS

    def test_all_todos_pending_first(self, repo, make_todo):
        repo.save(make_todo("done", completed=True, completed_at=NOW_MS))
        repo.save(make_todo("pending"))

        assert _ids(repo.all_todos()) == ["pending", "done"]


class TestMutations:
    """Tests for save/complete/uncomplete/delete."""

    def test_save_appends_then_updates_in_place(self, repo, clock, make_todo):
        repo.save(make_todo("a"))
        repo.save(make_todo("b"))
        clock.advance(ms=5_000)

        stored = repo.save(make_todo("a", title="Renamed"))

        assert _ids(repo.list_active()) == ["a", "b"]
        assert repo.list_active()[0].title == "Renamed"
        assert stored.updated_at == clock.now

    def test_saved_file_is_camel_case(self, repo, data_root, make_todo):
        repo.save(make_todo("a", due_at=NOW_MS, tag="work"))

        payload = json.loads(get_active_todos_path(data_root).read_text("utf-8"))

        assert payload["todos"][0]["dueAt"] == NOW_MS
        assert payload["todos"][0]["tag"] == "work"
        assert "createdAt" in payload["todos"][0]

    def test_save_completed_without_timestamp_stamps_it(
        self, repo, clock, make_todo
    ):
        stored = repo.save(make_todo("a", completed=True))

        assert stored.completed_at == clock.now
        assert repo.list_active()[0].completed_at == clock.now

    def test_save_pending_drops_completed_at(self, repo, make_todo):
        repo.save(make_todo("a", completed_at=NOW_MS))

        assert repo.list_active()[0].completed_at is None

    def test_complete(self, repo, clock, make_todo):
        repo.save(make_todo("a"))

        assert repo.complete("a") is True
        todo = repo.list_active()[0]
        assert todo.completed is True
        assert todo.completed_at == clock.now
        assert repo.complete("missing") is False

    def test_uncomplete_active(self, repo, make_todo):
        repo.save(make_todo("a", completed=True, completed_at=NOW_MS))

        assert repo.uncomplete("a") is True
        todo = repo.list_active()[0]
        assert todo.completed is False
        assert todo.completed_at is None

    def test_uncomplete_moves_out_of_archive(self, repo, data_root, make_todo):
        repo.save(make_todo("keep"))
        _write_json(
            get_archive_path(data_root, 2024),
            {"todos": [{"id": "old", "completed": True, "completedAt": 1}]},
        )

        assert repo.uncomplete("old") is True

        assert _stored_ids(data_root) == {
            "todos/active.json": ["keep", "old"],
            "todos/archive/2024.json": [],
        }
        assert repo.list_active()[1].completed is False

    def test_uncomplete_missing(self, repo):
        assert repo.uncomplete("nope") is False

    def test_uncomplete_rollback(self, repo, fs, data_root, make_todo, monkeypatch):
        """A failed archive write leaves the todo archived and active untouched."""
        repo.save(make_todo("keep"))
        archive_path = get_archive_path(data_root, 2024)
        _write_json(
            archive_path,
            {"todos": [{"id": "old", "completed": True, "completedAt": 1}]},
        )
        before = _stored_ids(data_root)
        real_write = fs.write_text

        def failing_write(path, content):
            if path == archive_path:
                raise OSError("read-only archive")
            real_write(path, content)

        monkeypatch.setattr(fs, "write_text", failing_write)

        with pytest.raises(OSError, match="read-only archive"):
            repo.uncomplete("old")

        assert _stored_ids(data_root) == before

    def test_delete_from_active(self, repo, make_todo):
        repo.save(make_todo("a"))
        repo.save(make_todo("b"))

        assert repo.delete("a") is True
        assert _ids(repo.list_active()) == ["b"]
        assert repo.delete("a") is False

    def test_delete_from_archive_leaves_active_alone(self, repo, data_root, make_todo):
        repo.save(make_todo("a"))
        active_path = get_active_todos_path(data_root)
        active_before = active_path.read_bytes()
        _write_json(
            get_archive_path(data_root, 2024),
            {"todos": [{"id": "old", "completed": True, "completedAt": 1}]},
        )

        assert repo.delete("old") is True

        assert repo.archived(2024) == []
        assert active_path.read_bytes() == active_before


class TestArchiveCompleted:
    """Tests for archive_completed()."""

    def test_boundary(self, repo, make_todo):
        """Eight days old is archived, six days old stays active."""
        repo.save(make_todo("pending"))
        repo.save(
            make_todo("old", completed=True, completed_at=NOW_MS - 8 * MS_PER_DAY)
        )
        repo.save(
            make_todo("recent", completed=True, completed_at=NOW_MS - 6 * MS_PER_DAY)
        )

        assert repo.archive_completed(7) == 1

        assert _ids(repo.list_active()) == ["pending", "recent"]
        assert _ids(repo.all_archived()) == ["old"]

    def test_groups_by_completion_year(self, repo, data_root, make_todo):
        completed_2024 = int(datetime(2024, 6, 1, 12, 0).timestamp() * 1000)
        completed_2023 = int(datetime(2023, 6, 1, 12, 0).timestamp() * 1000)
        repo.save(make_todo("y24", completed=True, completed_at=completed_2024))
        repo.save(make_todo("y23", completed=True, completed_at=completed_2023))

        assert repo.archive_completed() == 2

        assert repo.archive_years() == [2023, 2024]
        assert _ids(repo.archived(2024)) == ["y24"]
        assert _ids(repo.archived(2023)) == ["y23"]
        assert repo.list_active() == []

    def test_merges_with_existing_archive(self, repo, data_root, make_todo):
        completed_2024 = int(datetime(2024, 6, 1, 12, 0).timestamp() * 1000)
        _write_json(
            get_archive_path(data_root, 2024),
            {"todos": [{"id": "earlier", "completed": True, "completedAt": 1}]},
        )
        repo.save(make_todo("new", completed=True, completed_at=completed_2024))

        repo.archive_completed()

        assert _ids(repo.archived(2024)) == ["earlier", "new"]

    def test_collision_keeps_archived_copy(self, repo, data_root, make_todo, caplog):
        completed_2024 = int(datetime(2024, 6, 1, 12, 0).timestamp() * 1000)
        _write_json(
            get_archive_path(data_root, 2024),
            {
                "todos": [
                    {
                        "id": "dup",
                        "title": "archived",
                        "completed": True,
                        "completedAt": 1,
                    }
                ]
            },
        )
        repo.save(
            make_todo(
                "dup", title="active", completed=True, completed_at=completed_2024
            )
        )
        caplog.set_level(logging.WARNING)

        assert repo.archive_completed() == 1

        archived = repo.archived(2024)
        assert [t.title for t in archived] == ["archived"]
        assert repo.list_active() == []
        assert "already archived" in caplog.text

    def test_idempotent(self, repo, data_root, make_todo):
        repo.save(
            make_todo("old", completed=True, completed_at=NOW_MS - 30 * MS_PER_DAY)
        )
        repo.save(make_todo("pending"))

        assert repo.archive_completed() == 1
        after_first = _stored_ids(data_root)

        assert repo.archive_completed() == 0
        assert _stored_ids(data_root) == after_first

    def test_conserves_ids(self, repo, data_root, make_todo):
        """Every id appears in exactly one document afterwards."""
        for n in range(10):
            completed = n % 2 == 0
            repo.save(
                make_todo(
                    f"t{n}",
                    completed=completed,
                    completed_at=NOW_MS - n * 3 * MS_PER_DAY if completed else None,
                )
            )

        repo.archive_completed()

        stored = [i for ids in _stored_ids(data_root).values() for i in ids]
        assert sorted(stored) == sorted(f"t{n}" for n in range(10))

    def test_nothing_to_archive_writes_nothing(self, repo, data_root, make_todo):
        repo.save(make_todo("pending"))

        assert repo.archive_completed() == 0
        assert not (data_root / "todos" / "archive").exists()

    def test_failure_restores_archives(
        self, repo, fs, data_root, make_todo, monkeypatch
    ):
        """If the active rewrite fails, archives written so far are reverted."""
        repo.save(
            make_todo("old", completed=True, completed_at=NOW_MS - 30 * MS_PER_DAY)
        )
        before = _stored_ids(data_root)
        active_path = get_active_todos_path(data_root)
        real_write = fs.write_text

        def failing_write(path, content):
            if path == active_path:
                raise OSError("active is read-only")
            real_write(path, content)

        monkeypatch.setattr(fs, "write_text", failing_write)

        with pytest.raises(OSError, match="active is read-only"):
            repo.archive_completed()

        assert _stored_ids(data_root) == before


class TestConservation:
    def test_all_todos_tracks_saves_minus_deletes(self, repo, clock, make_todo):
        """Mixed operations never duplicate or lose an id."""
        for n in range(6):
            repo.save(make_todo(f"t{n}"))
        repo.complete("t0")
        repo.complete("t1")
        repo.complete("t2")
        clock.advance(days=10)
        repo.archive_completed(7)
        repo.uncomplete("t1")
        repo.delete("t2")
        repo.delete("t4")
        repo.save(make_todo("t1", title="edited"))

        ids = [t.id for t in repo.all_todos()]

        assert sorted(ids) == ["t0", "t1", "t3", "t5"]
        assert len(ids) == len(set(ids))

    def test_save_archived_id_updates_archive_in_place(
        self, repo, data_root, clock, make_todo
    ):
        """Re-saving an archived todo does not add a second copy to active."""
        repo.save(make_todo("t", completed=True, completed_at=NOW_MS))
        clock.advance(days=10)
        repo.archive_completed(7)

        stored = repo.save(
            make_todo("t", title="edited", completed=True, completed_at=NOW_MS)
        )

        assert stored.updated_at == clock.now
        assert _stored_ids(data_root) == {
            "todos/active.json": [],
            "todos/archive/2025.json": ["t"],
        }
        assert repo.archived(2025)[0].title == "edited"

        assert repo.delete("t") is True
        assert repo.all_todos() == []

    def test_save_archived_id_as_pending_moves_to_active(
        self, repo, data_root, clock, make_todo
    ):
        repo.save(make_todo("t", completed=True, completed_at=NOW_MS))
        clock.advance(days=10)
        repo.archive_completed(7)

        repo.save(make_todo("t", title="again"))

        assert _stored_ids(data_root) == {
            "todos/active.json": ["t"],
            "todos/archive/2025.json": [],
        }
        assert _ids(repo.all_todos()) == ["t"]
        assert repo.list_active()[0].title == "again"
