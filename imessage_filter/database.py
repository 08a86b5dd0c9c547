"""
Database connection module.

Provides read-only access to chat.db and the queries the filter stage needs.
"""

import sqlite3
from contextlib import closing
from typing import Optional, Tuple
import logging

from imessage_filter.config import Config
from imessage_filter.filtering.cache import ChatRoster, ParticipantIndex, build_caches
from imessage_filter.filtering.listing import ContactListing, list_contacts_and_chats
from imessage_filter.filtering.query_context import QueryContext

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Database connection manager for iMessage chat.db.

    Provides read-only access to the SQLite database with proper
    connection management and error handling.
    """

    def __init__(self, config: Config, *, use_memory: bool = False):
        """
        Initialize database connection.

        Args:
            config: Configuration object with database path.
            use_memory: Copy the database into memory on connect.

        Raises:
            ValueError: If database path is not configured or invalid.
        """
        if not config.validate():
            raise ValueError(f"Database file not found or not readable: {config.db_path_str}")

        self.config = config
        self.use_memory = use_memory
        self._connection: Optional[sqlite3.Connection] = None

    def __enter__(self):
        """Context manager entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def connect(self) -> sqlite3.Connection:
        """
        Establish read-only connection to database.

        Returns:
            SQLite connection object.

        Raises:
            sqlite3.Error: If connection fails.
        """
        if self._connection is not None:
            return self._connection

        db_path = self.config.db_path_str
        uri = f"file:{db_path}?mode=ro"

        try:
            if not self.use_memory:
                self._connection = sqlite3.connect(uri, uri=True)
                logger.info(f"Connected to database: {db_path}")
                return self._connection

            # SQLite's backup API keeps the in-memory copy consistent
            with closing(sqlite3.connect(uri, uri=True)) as disk_conn:
                mem_conn = sqlite3.connect(":memory:")
                disk_conn.backup(mem_conn)
                self._connection = mem_conn

            logger.info(f"Loaded database into memory from: {db_path}")
            return self._connection
        except sqlite3.Error as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    def close(self) -> None:
        """Close database connection."""
        if self._connection:
            self._connection.close()
            self._connection = None
            logger.debug("Database connection closed")

    @property
    def connection(self) -> sqlite3.Connection:
        """
        Get database connection.

        Raises:
            RuntimeError: If connection not established.
        """
        if self._connection is None:
            raise RuntimeError("Database connection not established. Call connect() first.")
        return self._connection

    def build_caches(self) -> Tuple[ParticipantIndex, ChatRoster]:
        """Cache handles, chats and chat participants for filter resolution."""
        return build_caches(self.connection)

    def list_contacts(self) -> ContactListing:
        """List every chat with messages, newest first."""
        return list_contacts_and_chats(self.connection)

    def count_filtered_messages(self, context: QueryContext) -> int:
        """
        Count the messages an export restricted by context would include.

        Args:
            context: Query context holding the active selection.

        Returns:
            Number of matching messages.
        """
        clause, params = context.message_filter_sql("c.chat_id", "m.handle_id")
        query = f"""
            SELECT COUNT(DISTINCT m.ROWID)
            FROM message m
            LEFT JOIN chat_message_join c ON m.ROWID = c.message_id
            WHERE {clause};
        """
        with closing(self.connection.cursor()) as cursor:
            cursor.execute(query, params)
            result = cursor.fetchone()
            return result[0] if result else 0
