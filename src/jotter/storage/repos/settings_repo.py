"""Settings repository - user preferences and app state.

Both documents live in the app-private config directory, not under the data
root: app state records where the data root is.
"""

from pathlib import Path

from jotter.core.types import AppSettings, AppState, StorageInfo
from jotter.storage.codec import load_document, write_document
from jotter.storage.filesystem import FileStore
from jotter.storage.layout import (
    APP_STATE_FILENAME,
    SETTINGS_FILENAME,
    get_journals_dir,
    get_notes_dir,
    get_todos_dir,
)


class SettingsRepo:
    """Repository for settings and app state data access."""

    def __init__(self, fs: FileStore, config_dir: Path, default_data_dir: Path):
        """
        Initialize settings repository.

        Args:
            fs: File store
            config_dir: App-private directory for settings.json/app_state.json
            default_data_dir: Data root used until the user chooses one
        """
        self.fs = fs
        self.config_dir = Path(config_dir)
        self.default_data_dir = Path(default_data_dir)

    @property
    def settings_file(self) -> Path:
        return self.config_dir / SETTINGS_FILENAME

    @property
    def app_state_file(self) -> Path:
        return self.config_dir / APP_STATE_FILENAME

    # --- Settings ---

    def load_settings(self) -> AppSettings:
        """Load settings, or defaults if missing or unreadable."""
        path = self.settings_file
        return load_document(self.fs, path, AppSettings, AppSettings())

    def save_settings(self, settings: AppSettings) -> None:
        write_document(self.fs, self.settings_file, settings)

    def reset_all_settings(self) -> None:
        self.save_settings(AppSettings())

    # --- App state ---

    def load_app_state(self) -> AppState | None:
        """Load app state, or None if missing or unreadable."""
        return load_document(self.fs, self.app_state_file, AppState, None)

    def save_app_state(self, state: AppState) -> None:
        write_document(self.fs, self.app_state_file, state)

    def is_first_launch(self) -> bool:
        state = self.load_app_state()
        return state is None or state.is_first_launch

    def get_data_path(self) -> Path:
        """Get the configured data root, or the default if none is set."""
        state = self.load_app_state()
        if state is None or not state.data_path:
            return self.default_data_dir
        return Path(state.data_path).expanduser()

    def update_data_path(self, new_path: Path | str) -> None:
        """Point the app at *new_path*; this also ends first-launch setup."""
        state = self.load_app_state() or AppState(data_path=str(new_path))
        self.save_app_state(
            state.model_copy(
                update={"data_path": str(new_path), "is_first_launch": False}
            )
        )

    def mark_first_launch_complete(self) -> None:
        state = self.load_app_state() or AppState(
            data_path=str(self.default_data_dir)
        )
        self.save_app_state(state.model_copy(update={"is_first_launch": False}))

    def reset_to_first_launch(self) -> None:
        """Show the setup flow again on next start (no-op without app state)."""
        state = self.load_app_state()
        if state is None:
            return
        self.save_app_state(state.model_copy(update={"is_first_launch": True}))

    def is_developer_mode_enabled(self) -> bool:
        state = self.load_app_state()
        return state is not None and state.is_developer_mode_enabled

    def set_developer_mode_enabled(self, enabled: bool) -> None:
        state = self.load_app_state()
        if state is None:
            return
        self.save_app_state(
            state.model_copy(update={"is_developer_mode_enabled": enabled})
        )

    def storage_info(self) -> StorageInfo:
        """Entry counts of the journal, note and todo folders."""
        data_path = self.get_data_path()
        return StorageInfo(
            data_path=str(data_path),
            journal_count=len(self.fs.list(get_journals_dir(data_path))),
            note_count=len(self.fs.list(get_notes_dir(data_path))),
            todo_count=len(self.fs.list(get_todos_dir(data_path))),
        )
