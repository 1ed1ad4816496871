import os
import sys
import tempfile
from pathlib import Path
from dataclasses import dataclass

APP_NAME = "SessionTimer"

# Lil helper function to create missing directories if missing, and optionally error out when a path
# doesn't exist.
def ensure_directory(path: Path,must_exist=False):
    if must_exist:
        if not path.exists():
            raise FileNotFoundError(f"Required directory is missing: {path}")
        if not path.is_dir():
            raise NotADirectoryError(f"Expected a directory, got a file: {path}")
    else:
        path.mkdir(parents=True,exist_ok=True)
    return path

# Picks the base folder for all user-specific data. SESSIONTIMER_HOME always wins, then the usual per-platform
# spots. Returns the folder the app should own, not its parent.
def _resolve_data_root():
    override = os.getenv("SESSIONTIMER_HOME")
    if override:
        return Path(override)
    appdata = os.getenv("APPDATA")
    if appdata:
        return Path(appdata) / APP_NAME
    xdg = os.getenv("XDG_DATA_HOME")
    if xdg:
        return Path(xdg) / APP_NAME
    return Path.home() / ".local" / "share" / APP_NAME

# Dataclass for accessing paths across program.
@dataclass(frozen=False)
class ProjectPaths:

    root: Path
    data: Path
    logs: Path

    history: Path
    settings: Path

    @staticmethod
    def build():
        # Folder for the install itself, no user-specific files
        if getattr(sys, "frozen", False):
            root = Path(sys.executable).resolve().parent
        else:
            root = Path(__file__).resolve().parents[2]

        # Folder for all user-specific stuff. If we can't create it (read-only home, weird sandbox), we
        # fall back to the temp dir so the timers still work, history just won't survive a reboot.
        try:
            data = ensure_directory(_resolve_data_root())
        except OSError:
            data = ensure_directory(Path(tempfile.gettempdir()) / APP_NAME)

        logs = ensure_directory(data / "logs")

        return ProjectPaths(
            root = root,
            data = data,
            logs = logs,
            history = data / "timer_history.json",
            settings = data / "settings.json",
        )
PATHS = ProjectPaths.build()
