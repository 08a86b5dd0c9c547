"""
Configuration module for iMessage filtering.

Handles the chat.db location and the conversation filter for a run.

Database Path Resolution (first match wins):
    1. Explicit db_path argument
    2. IMESSAGE_FILTER_DB_PATH environment variable
    3. ./chat.db
    4. ~/Library/Messages/chat.db
"""

import os
from pathlib import Path
from typing import Optional

DB_PATH_ENV_VAR = "IMESSAGE_FILTER_DB_PATH"


class Config:
    """Configuration class for iMessage filtering."""

    # Default database file name
    DEFAULT_DB_NAME = "chat.db"

    # Default path to Messages directory on macOS
    DEFAULT_MESSAGES_PATH = Path.home() / "Library" / "Messages"

    def __init__(
        self,
        db_path: Optional[str] = None,
        conversation_filter: Optional[str] = None,
    ):
        """
        Initialize configuration.

        Args:
            db_path: Optional path to chat.db file. If not provided, will look
                    at $IMESSAGE_FILTER_DB_PATH, the current directory, then
                    the default Messages directory.
            conversation_filter: Optional filter expression, groups separated
                    by ';' and contacts by ','.
        """
        self._db_path: Optional[Path] = None
        env_db_path = os.getenv(DB_PATH_ENV_VAR)
        if db_path:
            self._db_path = Path(db_path)
        elif env_db_path:
            self._db_path = Path(env_db_path)
        else:
            current_dir_db = Path.cwd() / self.DEFAULT_DB_NAME
            if current_dir_db.exists():
                self._db_path = current_dir_db
            elif (self.DEFAULT_MESSAGES_PATH / self.DEFAULT_DB_NAME).exists():
                self._db_path = self.DEFAULT_MESSAGES_PATH / self.DEFAULT_DB_NAME

        self._conversation_filter = conversation_filter or None

    @property
    def db_path(self) -> Optional[Path]:
        """Get the chat.db file path."""
        return self._db_path

    @property
    def db_path_str(self) -> Optional[str]:
        """Get the chat.db file path as a string."""
        return str(self._db_path) if self._db_path else None

    @property
    def conversation_filter(self) -> Optional[str]:
        """Get the conversation filter expression, if any."""
        return self._conversation_filter

    def validate(self) -> bool:
        """
        Validate that the chat.db file exists and is readable.

        Returns:
            True if chat.db exists and is readable, False otherwise.
        """
        if not self._db_path:
            return False
        return self._db_path.is_file() and os.access(self._db_path, os.R_OK)


# Global configuration instance
_config: Optional[Config] = None


def get_config(
    db_path: Optional[str] = None,
    conversation_filter: Optional[str] = None,
) -> Config:
    """
    Get or create the global configuration instance.

    A new instance is created when none exists yet or when any argument is
    given.

    Returns:
        Config instance.
    """
    global _config
    if _config is None or db_path is not None or conversation_filter is not None:
        _config = Config(db_path, conversation_filter)
    return _config


def set_config(config: Optional[Config]) -> None:
    """
    Set (or clear, with None) the global configuration instance.

    Args:
        config: Config instance to use.
    """
    global _config
    _config = config
