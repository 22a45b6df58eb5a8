"""Jotter - local-first journal, todo list and notes.

Everything the app persists lives as plain files under a user-chosen data
root: JSON documents for todos, tags and the note index, Markdown for
journal entries and note bodies.
"""

__version__ = "1.0.0"
