"""
iMessage Filter - resolve conversation filters against macOS chat.db.

This package provides functionality to:
- Cache handles and chats from the iMessage database (read-only)
- Resolve contact filter expressions into chat and handle selections
- List contacts and chats for building filter expressions
"""

__version__ = "0.1.0"

from imessage_filter.config import get_config, Config
from imessage_filter.database import DatabaseConnection

__all__ = [
    "get_config",
    "Config",
    "DatabaseConnection",
]
