"""
Participant and chat caches built from chat.db.

The filter engine never queries chat.db itself. Before resolution, the
handle, chat and chat_handle_join tables are read once (SELECT-only) into two
immutable snapshots:

    ParticipantIndex: handle ROWID -> identifier, plus a dedup map
    ChatRoster:       chat ROWID -> participant set and chat info, plus a dedup map

Deduplication:
    - Handles sharing a normalized identifier or a person_centric_id fold
      into one canonical participant key
    - Chats with identical rosters fold into one canonical chat key
    - Canonical keys are consecutive integers from 0, assigned in ROWID order
"""

import sqlite3
from contextlib import closing
from dataclasses import dataclass
from functools import cached_property
from types import MappingProxyType
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set, Tuple
import logging

from imessage_filter.filtering.normalizers import (
    IdentifierShape,
    classify_identifier,
    normalize_identifier,
)

logger = logging.getLogger(__name__)

REQUIRED_TABLES = ("handle", "chat", "chat_handle_join")


@dataclass(frozen=True)
class ChatInfo:
    """Cached row from the chat table."""

    rowid: int
    chat_identifier: str
    display_name: Optional[str] = None

    @property
    def name(self) -> Optional[str]:
        """Display name, or None when the chat has no (non-empty) name."""
        return self.display_name if self.display_name else None


def dedupe_participants(
    identifiers: Mapping[int, str],
    person_ids: Optional[Mapping[int, Optional[str]]] = None,
) -> Dict[int, int]:
    """
    Collapse duplicate handle rows onto canonical participant keys.

    Args:
        identifiers: Handle ROWID -> raw identifier.
        person_ids: Optional handle ROWID -> person_centric_id.

    Returns:
        Handle ROWID -> canonical participant key.
    """
    canonical: Dict[int, int] = {}
    by_value: Dict[str, int] = {}
    by_person: Dict[str, int] = {}
    next_key = 0

    for handle_id in sorted(identifiers):
        normalized = normalize_identifier(identifiers[handle_id])
        person_id = person_ids.get(handle_id) if person_ids else None

        unique_id = by_person.get(person_id) if person_id else None
        if unique_id is None:
            unique_id = by_value.get(normalized)
        if unique_id is None:
            unique_id = next_key
            next_key += 1

        canonical[handle_id] = unique_id
        by_value.setdefault(normalized, unique_id)
        if person_id:
            by_person.setdefault(person_id, unique_id)

    return canonical


def dedupe_chats(rosters: Mapping[int, Iterable[int]]) -> Dict[int, int]:
    """
    Collapse chats with identical participant sets onto canonical chat keys.

    Args:
        rosters: Chat ROWID -> participant handle ROWIDs.

    Returns:
        Chat ROWID -> canonical chat key.
    """
    canonical: Dict[int, int] = {}
    by_roster: Dict[FrozenSet[int], int] = {}

    for chat_id in sorted(rosters):
        roster = frozenset(rosters[chat_id])
        if roster not in by_roster:
            by_roster[roster] = len(by_roster)
        canonical[chat_id] = by_roster[roster]

    return canonical


@dataclass(frozen=True)
class ParticipantIndex:
    """Read-only map of handle ROWID to identifier, with its dedup map."""

    identifiers: Mapping[int, str]
    canonical: Mapping[int, int]

    def __post_init__(self):
        object.__setattr__(self, "identifiers", MappingProxyType(dict(self.identifiers)))
        object.__setattr__(self, "canonical", MappingProxyType(dict(self.canonical)))

    @classmethod
    def from_identifiers(
        cls,
        identifiers: Mapping[int, str],
        person_ids: Optional[Mapping[int, Optional[str]]] = None,
    ) -> "ParticipantIndex":
        """Build an index and its dedup map from raw identifiers."""
        return cls(identifiers, dedupe_participants(identifiers, person_ids))

    def __len__(self) -> int:
        return len(self.identifiers)

    def __contains__(self, handle_id: object) -> bool:
        return handle_id in self.identifiers

    def get(self, handle_id: int) -> Optional[str]:
        return self.identifiers.get(handle_id)

    def canonical_key(self, handle_id: int) -> Optional[int]:
        return self.canonical.get(handle_id)

    def sorted_items(self) -> List[Tuple[int, str]]:
        return sorted(self.identifiers.items())

    @cached_property
    def normalized_items(self) -> Tuple[Tuple[int, IdentifierShape], ...]:
        """(handle ROWID, classified identifier) pairs in ROWID order."""
        return tuple(
            (handle_id, classify_identifier(identifier))
            for handle_id, identifier in self.sorted_items()
        )

    def unique_count(self) -> int:
        return len(set(self.canonical.values()))

    def duplicate_count(self) -> int:
        return len(self.identifiers) - self.unique_count()


@dataclass(frozen=True)
class ChatRoster:
    """Read-only map of chat ROWID to participants and chat info, with its dedup map."""

    rosters: Mapping[int, FrozenSet[int]]
    chats: Mapping[int, ChatInfo]
    canonical: Mapping[int, int]

    def __post_init__(self):
        rosters = {chat_id: frozenset(members) for chat_id, members in self.rosters.items()}
        object.__setattr__(self, "rosters", MappingProxyType(rosters))
        object.__setattr__(self, "chats", MappingProxyType(dict(self.chats)))
        object.__setattr__(self, "canonical", MappingProxyType(dict(self.canonical)))

    @classmethod
    def from_rosters(
        cls,
        rosters: Mapping[int, Iterable[int]],
        chats: Optional[Mapping[int, ChatInfo]] = None,
    ) -> "ChatRoster":
        """Build a roster and its dedup map from chat participant sets."""
        frozen = {chat_id: frozenset(members) for chat_id, members in rosters.items()}
        return cls(frozen, chats or {}, dedupe_chats(frozen))

    def __len__(self) -> int:
        return len(self.rosters)

    def roster(self, chat_id: int) -> FrozenSet[int]:
        return self.rosters.get(chat_id, frozenset())

    def chat(self, chat_id: int) -> Optional[ChatInfo]:
        return self.chats.get(chat_id)

    def canonical_key(self, chat_id: int) -> Optional[int]:
        return self.canonical.get(chat_id)

    def sorted_items(self) -> List[Tuple[int, FrozenSet[int]]]:
        return sorted(self.rosters.items())

    def unique_count(self) -> int:
        return len(set(self.canonical.values()))

    def duplicate_count(self) -> int:
        return len(self.rosters) - self.unique_count()


# =============================================================================
# chat.db readers
# =============================================================================


def _table_names(conn: sqlite3.Connection) -> Set[str]:
    with closing(conn.cursor()) as cursor:
        cursor.execute("SELECT `name` FROM `sqlite_master` WHERE `type`='table';")
        return {row[0] for row in cursor.fetchall()}


def _column_names(conn: sqlite3.Connection, table_name: str) -> Set[str]:
    with closing(conn.cursor()) as cursor:
        cursor.execute(f"PRAGMA table_info('{table_name}');")
        return {row[1] for row in cursor.fetchall()}


def require_tables(conn: sqlite3.Connection, table_names: Iterable[str] = REQUIRED_TABLES) -> None:
    """
    Ensure chat.db has the tables the caches are built from.

    Raises:
        ValueError: If any table is missing.
    """
    existing = _table_names(conn)
    missing = [name for name in table_names if name not in existing]
    if missing:
        raise ValueError(f"Database is missing required tables: {', '.join(missing)}")


def cache_participants(
    conn: sqlite3.Connection,
) -> Tuple[Dict[int, str], Dict[int, Optional[str]]]:
    """
    Read every handle row.

    person_centric_id only exists on newer macOS versions; older databases
    yield an empty person map.

    Returns:
        (handle ROWID -> identifier, handle ROWID -> person_centric_id)
    """
    has_person_id = "person_centric_id" in _column_names(conn, "handle")
    query = (
        "SELECT ROWID, id, person_centric_id FROM handle ORDER BY ROWID;"
        if has_person_id
        else "SELECT ROWID, id, NULL FROM handle ORDER BY ROWID;"
    )

    identifiers: Dict[int, str] = {}
    person_ids: Dict[int, Optional[str]] = {}
    with closing(conn.cursor()) as cursor:
        cursor.execute(query)
        for rowid, raw_id, person_id in cursor.fetchall():
            identifiers[rowid] = raw_id or ""
            if person_id:
                person_ids[rowid] = person_id

    return identifiers, person_ids


def cache_chats(conn: sqlite3.Connection) -> Dict[int, ChatInfo]:
    """Read every chat row."""
    query = """
        SELECT ROWID, chat_identifier, display_name
        FROM chat
        ORDER BY ROWID;
    """

    chats: Dict[int, ChatInfo] = {}
    with closing(conn.cursor()) as cursor:
        cursor.execute(query)
        for rowid, chat_identifier, display_name in cursor.fetchall():
            chats[rowid] = ChatInfo(rowid, chat_identifier or "", display_name)
    return chats


def cache_chat_rosters(conn: sqlite3.Connection) -> Dict[int, FrozenSet[int]]:
    """Read chat_handle_join into chat ROWID -> participant handle ROWIDs."""
    rosters: Dict[int, Set[int]] = {}
    with closing(conn.cursor()) as cursor:
        cursor.execute("SELECT chat_id, handle_id FROM chat_handle_join;")
        for chat_id, handle_id in cursor.fetchall():
            rosters.setdefault(chat_id, set()).add(handle_id)
    return {chat_id: frozenset(members) for chat_id, members in rosters.items()}


def build_caches(conn: sqlite3.Connection) -> Tuple[ParticipantIndex, ChatRoster]:
    """
    Build the participant index and chat roster from chat.db.

    Args:
        conn: SQLite connection to chat.db (read-only recommended).

    Returns:
        (ParticipantIndex, ChatRoster)

    Raises:
        ValueError: If chat.db lacks a required table.
    """
    require_tables(conn)

    logger.info("[1/3] Caching chats...")
    chats = cache_chats(conn)
    logger.info("[2/3] Caching chatrooms...")
    rosters = cache_chat_rosters(conn)
    logger.info("[3/3] Caching participants...")
    identifiers, person_ids = cache_participants(conn)

    participants = ParticipantIndex.from_identifiers(identifiers, person_ids)
    roster = ChatRoster.from_rosters(rosters, chats)
    logger.info(
        f"Cache built: {len(participants)} handles, {len(chats)} chats, "
        f"{len(roster)} chatrooms with participants"
    )
    return participants, roster
