"""JSON document encoding with a default-on-error read policy.

``read_document`` reports problems by raising DecodeError. Repositories do
not call it directly for user-facing reads; they go through
``load_document``, which logs the failure and substitutes a default, so a
corrupt file looks like "no data yet" instead of crashing the app.
"""

import json
import logging
from pathlib import Path
from typing import TypeVar

from jotter.core.types import DecodeError, Document
from jotter.storage.filesystem import FileStore

logger = logging.getLogger(__name__)

D = TypeVar("D", bound=Document)
T = TypeVar("T")

__all__ = [
    "DecodeError",
    "encode_document",
    "load_document",
    "read_document",
    "write_document",
]


def encode_document(document: Document) -> str:
    """Serialize *document* as pretty-printed UTF-8 JSON with camelCase keys."""
    payload = document.model_dump(mode="json", by_alias=True)
    return json.dumps(payload, indent=2, ensure_ascii=False) + "\n"


def read_document(fs: FileStore, path: Path, model: type[D]) -> D | None:
    """
    Read and decode a JSON document.

    Returns:
        The decoded document, or None if the file does not exist

    Raises:
        DecodeError: If the file is not UTF-8, not JSON, or not a valid
            document of type *model*
    """
    try:
        content = fs.read_text(path)
    except UnicodeDecodeError as e:
        raise DecodeError(f"{path} is not valid UTF-8: {e}") from e
    if content is None:
        return None

    try:
        raw = json.loads(content)
    except json.JSONDecodeError as e:
        raise DecodeError(f"Invalid JSON in {path}: {e}") from e

    return model.coerce(raw)


def load_document(fs: FileStore, path: Path, model: type[D], default: T) -> D | T:
    """Read a document, returning *default* if it is missing or unreadable."""
    try:
        document = read_document(fs, path, model)
    except DecodeError as e:
        logger.warning("Ignoring unreadable document %s: %s", path, e)
        return default
    if document is None:
        return default
    return document


def write_document(fs: FileStore, path: Path, document: Document) -> None:
    """Encode and write *document*. OSError propagates to the caller."""
    fs.write_text(path, encode_document(document))
