"""Environment-driven settings for chat-library."""

import os
from pathlib import Path

DEFAULT_EXPORT_FILENAME = "chat-library-conversations.json"


def get_export_dir() -> Path:
    """Return the directory exports are written to by default."""
    env = os.environ.get("CHAT_LIBRARY_EXPORT_DIR")
    if env:
        return Path(env)

    downloads = Path.home() / "Downloads"
    if downloads.is_dir():
        return downloads
    return Path.cwd()


def get_export_filename() -> str:
    """Return the fixed file name used for exports."""
    return os.environ.get("CHAT_LIBRARY_EXPORT_FILENAME") or DEFAULT_EXPORT_FILENAME


def get_log_level() -> str:
    return os.environ.get("CHAT_LIBRARY_LOG_LEVEL", "INFO").upper()
