"""Journal repository - one Markdown file per calendar date.

File format::

    ---
    date: 2025-12-21
    createdAt: 1734764400000
    updatedAt: 1734764400000
    mood: happy
    weather: sunny
    ---

    # <title>

    <body>

The date in the file name is authoritative; the ``date`` header line is
informational.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import date
from itertools import dropwhile
from pathlib import Path

from jotter.core.timeutils import local_date, now_ms
from jotter.core.types import Journal, JournalMetadata
from jotter.storage.filesystem import FileStore
from jotter.storage.frontmatter import parse_frontmatter, write_frontmatter
from jotter.storage.layout import (
    get_journal_month_dir,
    get_journal_path,
    get_journals_dir,
)

logger = logging.getLogger(__name__)

UNTITLED = "Untitled"


def _is_blank(line: str) -> bool:
    return not line.strip()


def _parse_timestamp(value: str | None, fallback: int) -> int:
    if value is None:
        return fallback
    try:
        return int(value)
    except ValueError:
        return fallback


def journal_to_markdown(journal: Journal) -> str:
    """Serialize a journal entry to its Markdown file content."""
    header = write_frontmatter(
        {
            "date": journal.date.isoformat(),
            "createdAt": journal.created_at,
            "updatedAt": journal.updated_at,
            "mood": journal.mood,
            "weather": journal.weather,
        }
    )
    return f"{header}\n# {journal.title}\n\n{journal.content}"


def parse_journal(entry_date: date, content: str, now: int) -> Journal:
    """
    Parse Markdown file content into a journal entry.

    The first non-blank line after the front matter is the title (one
    leading ``#`` removed); everything after it, minus leading blank lines,
    is the body. Missing or unparsable timestamps fall back to *now*.

    Args:
        entry_date: Date taken from the file name
        content: File content
        now: Fallback timestamp in epoch milliseconds

    Returns:
        Parsed journal
    """
    fields, rest = parse_frontmatter(content)
    body_lines = list(dropwhile(_is_blank, rest))

    title = UNTITLED
    if body_lines:
        first = body_lines[0]
        title = (first[1:] if first.startswith("#") else first).strip()

    body = "\n".join(dropwhile(_is_blank, body_lines[1:]))

    return Journal(
        date=entry_date,
        title=title,
        content=body,
        mood=fields.get("mood"),
        weather=fields.get("weather"),
        created_at=_parse_timestamp(fields.get("createdAt"), now),
        updated_at=_parse_timestamp(fields.get("updatedAt"), now),
    )


class JournalRepo:
    """Repository for journal entries keyed by date."""

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

    def get(self, entry_date: date) -> Journal | None:
        """Get the journal for *entry_date*, or None if absent or unreadable."""
        return self._read(entry_date, get_journal_path(self.root, entry_date))

    def get_today(self) -> Journal | None:
        return self.get(local_date(self._clock()))

    def save(self, journal: Journal) -> None:
        """Write *journal*, replacing any entry for the same date."""
        path = get_journal_path(self.root, journal.date)
        with self.fs.locked(path):
            self.fs.write_text(path, journal_to_markdown(journal))

    def save_today(
        self,
        title: str,
        content: str,
        mood: str | None = None,
        weather: str | None = None,
    ) -> Journal:
        """Create or update today's entry, keeping its original creation time."""
        now = self._clock()
        today = local_date(now)
        path = get_journal_path(self.root, today)
        with self.fs.locked(path):
            existing = self.get(today)
            journal = Journal(
                date=today,
                title=title,
                content=content,
                mood=mood,
                weather=weather,
                created_at=existing.created_at if existing else now,
                updated_at=now,
            )
            self.save(journal)
        return journal

    def delete(self, entry_date: date) -> bool:
        """Delete the entry for *entry_date*. Returns False if none existed."""
        path = get_journal_path(self.root, entry_date)
        with self.fs.locked(path):
            return self.fs.delete(path)

    def exists(self, entry_date: date) -> bool:
        return self.fs.exists(get_journal_path(self.root, entry_date))

    def list(self, year: int, month: int) -> list[JournalMetadata]:
        """
        List entries for a month, newest first.

        Files whose name is not a date or that cannot be read are skipped.
        """
        return [
            JournalMetadata.from_journal(journal)
            for journal in self._entries(year, month)
        ]

    def years(self) -> list[int]:
        """Years that have a journal folder, newest first."""
        years = []
        for path in self.fs.list(get_journals_dir(self.root)):
            if not self.fs.is_dir(path):
                continue
            try:
                years.append(int(path.name))
            except ValueError:
                continue
        return sorted(years, reverse=True)

    def search(self, query: str) -> list[JournalMetadata]:
        """
        Case-insensitive search over titles and bodies of every entry.

        This is a full scan; there is no index.
        """
        needle = query.casefold()
        results = [
            JournalMetadata.from_journal(journal)
            for year in self.years()
            for month in range(1, 13)
            for journal in self._entries(year, month)
            if needle in journal.title.casefold()
            or needle in journal.content.casefold()
        ]
        return sorted(results, key=lambda m: m.date, reverse=True)

    def _entries(self, year: int, month: int) -> list[Journal]:
        month_dir = get_journal_month_dir(self.root, year, month)
        journals = []
        for path in self.fs.list(month_dir):
            if path.suffix != ".md":
                continue
            try:
                entry_date = date.fromisoformat(path.stem)
            except ValueError:
                logger.debug("Skipping non-journal file %s", path)
                continue
            journal = self._read(entry_date, path)
            if journal is not None:
                journals.append(journal)
        return sorted(journals, key=lambda j: j.date, reverse=True)

    def _read(self, entry_date: date, path: Path) -> Journal | None:
        try:
            content = self.fs.read_text(path)
        except UnicodeDecodeError as e:
            logger.warning("Ignoring unreadable journal %s: %s", path, e)
            return None
        if content is None:
            return None
        return parse_journal(entry_date, content, self._clock())
