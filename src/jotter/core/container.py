"""Application wiring: build every repository once and hand them out.

The UI layer should call build_container() at startup and pass the result
to whatever needs storage. Domain repositories resolve the data root on
every call through SettingsRepo, so relocating the data root takes effect
without rebuilding them.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from jotter.core.config import (
    ARCHIVE_AFTER_DAYS,
    ARCHIVE_ON_STARTUP,
    CONFIG_DIR,
    DEFAULT_DATA_DIR,
)
from jotter.core.timeutils import now_ms
from jotter.storage.directories import DataDirectoryManager
from jotter.storage.filesystem import FileStore
from jotter.storage.repos import (
    JournalRepo,
    NoteRepo,
    SettingsRepo,
    TagRepo,
    TodoRepo,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AppContainer:
    """Single set of storage components for the process."""

    fs: FileStore
    settings: SettingsRepo
    directories: DataDirectoryManager
    todos: TodoRepo
    journals: JournalRepo
    notes: NoteRepo
    tags: TagRepo

    def initialize(
        self,
        archive_after_days: int = ARCHIVE_AFTER_DAYS,
        archive: bool = ARCHIVE_ON_STARTUP,
    ) -> None:
        """Create the data tree if needed and archive old completed todos."""
        data_path = self.settings.get_data_path()
        self.directories.initialize(data_path)
        if not archive:
            return
        archived = self.todos.archive_completed(archive_after_days)
        if archived:
            logger.info("Startup archived %d completed todo(s)", archived)

    def is_first_launch(self) -> bool:
        return self.settings.is_first_launch()

    def is_data_path_valid(self) -> bool:
        """True if the data root is usable or does not exist yet (can be created)."""
        data_path = self.settings.get_data_path()
        return self.directories.validate(data_path) or not self.fs.exists(data_path)

    def relocate_data(self, new_root: Path | str) -> bool:
        """
        Move the data root to *new_root*.

        Data is copied first; the new location is only recorded if the copy
        succeeded, so a failed migration leaves the app on the old root.

        Returns:
            True if the app now uses *new_root*
        """
        new_root = Path(new_root).expanduser()
        old_root = self.settings.get_data_path()
        if not self.directories.migrate(old_root, new_root):
            return False
        self.settings.update_data_path(new_root)
        return True


def build_container(
    config_dir: Path | str | None = None,
    default_data_dir: Path | str | None = None,
    clock: Callable[[], int] | None = None,
) -> AppContainer:
    """
    Build the storage components with all dependencies wired.

    Args:
        config_dir: App-private config directory (defaults to CONFIG_DIR)
        default_data_dir: Data root used before the user picks one
            (defaults to DEFAULT_DATA_DIR)
        clock: Epoch-millisecond clock (defaults to wall time)

    Returns:
        Fully configured AppContainer
    """
    actual_config_dir = Path(config_dir) if config_dir else CONFIG_DIR
    actual_data_dir = Path(default_data_dir) if default_data_dir else DEFAULT_DATA_DIR
    actual_clock = clock or now_ms

    fs = FileStore()
    settings = SettingsRepo(
        fs, config_dir=actual_config_dir, default_data_dir=actual_data_dir
    )
    data_path = settings.get_data_path

    return AppContainer(
        fs=fs,
        settings=settings,
        directories=DataDirectoryManager(fs),
        todos=TodoRepo(fs, data_path, clock=actual_clock),
        journals=JournalRepo(fs, data_path, clock=actual_clock),
        notes=NoteRepo(fs, data_path, clock=actual_clock),
        tags=TagRepo(fs, data_path),
    )
