from __future__ import annotations

import os
import platform
from pathlib import Path


def default_data_dir(app_name: str = "TwitchWebRequest") -> Path:
    """Return a writable per-platform data directory for the application.

    Priority:
      - $TWITCHWEBREQUEST_DATA_DIR if set
      - Windows: %LOCALAPPDATA% (fallback %APPDATA%)
      - macOS: ~/Library/Application Support/{app_name}
      - Linux/Unix: $XDG_DATA_HOME or ~/.local/share/{app_name}
      - Fallback: current working directory
    The directory is created if it doesn't exist.
    """
    env_override = os.environ.get("TWITCHWEBREQUEST_DATA_DIR")
    if env_override:
        p = Path(env_override).expanduser()
        try:
            p.mkdir(parents=True, exist_ok=True)
            return p
        except OSError:
            # fall through to platform-specific defaults
            pass

    system = platform.system()
    candidates: list[Path] = []
    if system == "Windows":
        for env in ("LOCALAPPDATA", "APPDATA"):
            base = os.environ.get(env)
            if base:
                candidates.append(Path(base) / app_name)
    elif system == "Darwin":
        candidates.append(Path.home() / "Library" / "Application Support" / app_name)
    else:
        xdg = os.environ.get("XDG_DATA_HOME")
        if xdg:
            candidates.append(Path(xdg) / app_name)
        else:
            candidates.append(Path.home() / ".local" / "share" / app_name)

    for p in candidates:
        try:
            p.mkdir(parents=True, exist_ok=True)
            return p
        except OSError:
            continue

    p = Path.cwd() / app_name
    p.mkdir(parents=True, exist_ok=True)
    return p


def default_settings_path(
    filename: str = "settings.db", app_name: str = "TwitchWebRequest"
) -> Path:
    """Return the path of the key-value settings database for `app_name`."""
    override = os.environ.get("TWITCHWEBREQUEST_SETTINGS_PATH")
    if override:
        return Path(override).expanduser()

    return default_data_dir(app_name) / filename
