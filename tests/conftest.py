"""
Pytest fixtures for iMessage Filter tests.

Fixture Categories:
    1. Database fixtures (sample chat.db with duplicate handles, empty chat.db)
    2. In-memory cache fixtures (participant index and chat roster)

Sample chat.db layout:

    handle  id                      person_centric_id
    1       +14155551234            p-jane      Jane (iMessage)
    2       jane.doe@example.com    p-jane      Jane (email)
    3       +14155555678            -           Bob
    4       Alice@Example.com       -           Alice
    5       +442071234567           -           UK contact
    6       +14155551234            -           Jane (SMS duplicate of 1)

    chat    chat_identifier         display_name    participants
    1       +14155551234            -               {1}
    2       jane.doe@example.com    -               {2}
    3       +14155555678            -               {3}
    4       chat100                 Trip Planning   {1, 3}
    5       chat200                 -               {3, 4, 5}
    6       +14155551234            -               {6}
    7       +18005550199            -               {9}  (handle 9 was deleted)
    8       chat300                 -               {}
"""

import sqlite3
from pathlib import Path

import pytest

from imessage_filter.config import set_config
from imessage_filter.filtering.cache import ChatInfo, ChatRoster, ParticipantIndex

# 2023-12-22 in nanoseconds since 2001-01-01
BASE_DATE_NS = 725_000_000_000_000_000


def _message_date(message_id: int) -> int:
    return BASE_DATE_NS + message_id * 60_000_000_000


def pytest_configure(config):
    config.addinivalue_line("markers", "property: Hypothesis property-based tests")


# =============================================================================
# Sample chat.db fixtures
# =============================================================================


@pytest.fixture
def sample_chat_db(tmp_path: Path) -> Path:
    """
    Create a chat.db with duplicated handles and chats.

    Returns:
        Path to the sample chat.db file.
    """
    db_path = tmp_path / "chat.db"
    conn = sqlite3.connect(str(db_path))

    try:
        conn.executescript(
            """
            CREATE TABLE handle (
                ROWID INTEGER PRIMARY KEY,
                id TEXT NOT NULL,
                service TEXT,
                country TEXT,
                person_centric_id TEXT
            );

            CREATE TABLE chat (
                ROWID INTEGER PRIMARY KEY,
                chat_identifier TEXT,
                display_name TEXT,
                service_name TEXT
            );

            CREATE TABLE chat_handle_join (
                chat_id INTEGER,
                handle_id INTEGER,
                UNIQUE (chat_id, handle_id)
            );

            CREATE TABLE message (
                ROWID INTEGER PRIMARY KEY,
                text TEXT,
                handle_id INTEGER,
                date INTEGER,
                is_from_me INTEGER DEFAULT 0
            );

            CREATE TABLE chat_message_join (
                chat_id INTEGER,
                message_id INTEGER,
                PRIMARY KEY (chat_id, message_id)
            );
        """
        )

        handles = [
            (1, "+14155551234", "iMessage", "us", "p-jane"),
            (2, "jane.doe@example.com", "iMessage", None, "p-jane"),
            (3, "+14155555678", "iMessage", "us", None),
            (4, "Alice@Example.com", "iMessage", None, None),
            (5, "+442071234567", "iMessage", "gb", None),
            (6, "+14155551234", "SMS", "us", None),
        ]
        conn.executemany(
            "INSERT INTO handle (ROWID, id, service, country, person_centric_id) "
            "VALUES (?, ?, ?, ?, ?)",
            handles,
        )

        chats = [
            (1, "+14155551234", None, "iMessage"),
            (2, "jane.doe@example.com", None, "iMessage"),
            (3, "+14155555678", None, "iMessage"),
            (4, "chat100", "Trip Planning", "iMessage"),
            (5, "chat200", None, "iMessage"),
            (6, "+14155551234", "", "SMS"),
            (7, "+18005550199", None, "SMS"),
            (8, "chat300", None, "iMessage"),
        ]
        conn.executemany(
            "INSERT INTO chat (ROWID, chat_identifier, display_name, service_name) "
            "VALUES (?, ?, ?, ?)",
            chats,
        )

        chat_handles = [(1, 1), (2, 2), (3, 3), (4, 1), (4, 3), (5, 3), (5, 4), (5, 5), (6, 6), (7, 9)]
        conn.executemany(
            "INSERT INTO chat_handle_join (chat_id, handle_id) VALUES (?, ?)",
            chat_handles,
        )

        # (message ROWID, handle, is_from_me, chat or None for orphaned messages)
        messages = [
            (1, 1, 0, 1),
            (2, 0, 1, 1),
            (3, 1, 0, 1),
            (4, 2, 0, 2),
            (5, 3, 0, 3),
            (6, 0, 1, 3),
            (7, 1, 0, 4),
            (8, 3, 0, 4),
            (9, 4, 0, 5),
            (10, 6, 0, 6),
            (11, 9, 0, 7),
            (12, 0, 1, 8),
            (13, 1, 0, None),
            (14, 3, 0, None),
        ]
        conn.executemany(
            "INSERT INTO message (ROWID, text, handle_id, date, is_from_me) VALUES (?, ?, ?, ?, ?)",
            [
                (rowid, f"Message {rowid}", handle_id, _message_date(rowid), from_me)
                for rowid, handle_id, from_me, _ in messages
            ],
        )
        conn.executemany(
            "INSERT INTO chat_message_join (chat_id, message_id) VALUES (?, ?)",
            [(chat_id, rowid) for rowid, _, _, chat_id in messages if chat_id is not None],
        )

        conn.commit()

    finally:
        conn.close()

    return db_path


@pytest.fixture
def legacy_chat_db(tmp_path: Path) -> Path:
    """
    Create a chat.db from an older macOS, without handle.person_centric_id.

    Returns:
        Path to the legacy chat.db file.
    """
    db_path = tmp_path / "legacy_chat.db"
    conn = sqlite3.connect(str(db_path))

    try:
        conn.executescript(
            """
            CREATE TABLE handle (ROWID INTEGER PRIMARY KEY, id TEXT NOT NULL);
            CREATE TABLE chat (
                ROWID INTEGER PRIMARY KEY,
                chat_identifier TEXT,
                display_name TEXT
            );
            CREATE TABLE chat_handle_join (chat_id INTEGER, handle_id INTEGER);

            INSERT INTO handle VALUES (1, '+14155551234'), (2, '+1 (415) 555-1234');
            INSERT INTO chat VALUES (1, '+14155551234', NULL);
            INSERT INTO chat_handle_join VALUES (1, 1);
        """
        )
        conn.commit()

    finally:
        conn.close()

    return db_path


@pytest.fixture
def incomplete_chat_db(tmp_path: Path) -> Path:
    """
    Create a chat.db missing the chat_handle_join table.

    Returns:
        Path to the incomplete chat.db file.
    """
    db_path = tmp_path / "incomplete_chat.db"
    conn = sqlite3.connect(str(db_path))

    try:
        conn.executescript(
            """
            CREATE TABLE handle (ROWID INTEGER PRIMARY KEY, id TEXT NOT NULL);
            CREATE TABLE chat (
                ROWID INTEGER PRIMARY KEY,
                chat_identifier TEXT,
                display_name TEXT
            );
        """
        )
        conn.commit()

    finally:
        conn.close()

    return db_path


# =============================================================================
# In-memory cache fixtures
# =============================================================================


@pytest.fixture
def person_participants() -> ParticipantIndex:
    """Four contacts known only by name: Person 10 to Person 13."""
    return ParticipantIndex.from_identifiers(
        {
            10: "Person 10",
            11: "Person 11",
            12: "Person 12",
            13: "Person 13",
        }
    )


@pytest.fixture
def person_chats() -> ChatRoster:
    """
    Four direct messages and two group chats.

        1: {10}  2: {11}  3: {12}  4: {13}  5: {10, 11}  6: {12, 13}
    """
    return ChatRoster.from_rosters(
        {
            1: {10},
            2: {11},
            3: {12},
            4: {13},
            5: {10, 11},
            6: {12, 13},
        },
        {chat_id: ChatInfo(chat_id, f"chat{chat_id}") for chat_id in range(1, 7)},
    )


# =============================================================================
# Global state
# =============================================================================


@pytest.fixture(autouse=True)
def reset_global_config():
    """Clear the process-wide Config between tests."""
    set_config(None)
    yield
    set_config(None)
