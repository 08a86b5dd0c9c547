"""
Contact listing and database diagnostics.

The listing feeds contact pickers that build filter expressions: every chat
with at least one message, newest first, split into direct messages and
group chats. Output lines are pipe-delimited so other tools can parse them:

    CONTACT|<identifier>|<message count>|<last message date>
    GROUP|<name>|<message count>|<last message date>|<id>,<id>,...
"""

import sqlite3
from contextlib import closing
from dataclasses import dataclass, field
from typing import List, Optional

from imessage_filter.filtering.cache import ChatRoster, ParticipantIndex
from imessage_filter.utils import format_timestamp

LISTING_QUERY = """
    SELECT
        chat.ROWID AS chat_id,
        chat.display_name,
        chat.chat_identifier,
        COUNT(DISTINCT message.ROWID) AS message_count,
        MAX(message.date) AS last_message_date,
        GROUP_CONCAT(DISTINCT handle.id) AS participants
    FROM chat
    JOIN chat_message_join ON chat.ROWID = chat_message_join.chat_id
    JOIN message ON chat_message_join.message_id = message.ROWID
    LEFT JOIN chat_handle_join ON chat.ROWID = chat_handle_join.chat_id
    LEFT JOIN handle ON chat_handle_join.handle_id = handle.ROWID
    GROUP BY chat.ROWID
    HAVING message_count >= 1
    ORDER BY last_message_date DESC, chat.ROWID;
"""


@dataclass
class ChatListingEntry:
    """A chat with its message count and participants."""

    chat_id: int
    display_name: Optional[str]
    chat_identifier: str
    message_count: int
    last_message_date: str
    participants: List[str] = field(default_factory=list)

    @property
    def is_group(self) -> bool:
        return len(self.participants) > 1

    @property
    def contact_id(self) -> str:
        # Chats with a deleted contact have no participants
        return self.participants[0] if self.participants else self.chat_identifier

    @property
    def name(self) -> str:
        return self.display_name or self.chat_identifier

    def render(self) -> str:
        if self.is_group:
            return (
                f"GROUP|{self.name}|{self.message_count}|{self.last_message_date}|"
                f"{','.join(self.participants)}"
            )
        return f"CONTACT|{self.contact_id}|{self.message_count}|{self.last_message_date}"


@dataclass
class ContactListing:
    """All chats with messages, newest first."""

    entries: List[ChatListingEntry] = field(default_factory=list)

    @property
    def individual_chats(self) -> List[ChatListingEntry]:
        return [entry for entry in self.entries if not entry.is_group]

    @property
    def group_chats(self) -> List[ChatListingEntry]:
        return [entry for entry in self.entries if entry.is_group]

    def render_lines(self) -> List[str]:
        individual = self.individual_chats
        groups = self.group_chats
        lines = [
            f"Total DMs: {len(individual)}",
            f"Total Group Chats: {len(groups)}",
            f"Total Chats: {len(individual) + len(groups)}",
        ]
        lines.extend(entry.render() for entry in individual)
        lines.extend(entry.render() for entry in groups)
        return lines


def list_contacts_and_chats(conn: sqlite3.Connection) -> ContactListing:
    """
    List every chat with at least one message.

    Args:
        conn: SQLite connection to chat.db.

    Returns:
        ContactListing ordered by latest message, newest first.
    """
    entries = []
    with closing(conn.cursor()) as cursor:
        cursor.execute(LISTING_QUERY)
        for row in cursor.fetchall():
            chat_id, display_name, chat_identifier, count, last_date, participants = row
            entries.append(
                ChatListingEntry(
                    chat_id=chat_id,
                    display_name=display_name or None,
                    chat_identifier=chat_identifier or "",
                    message_count=count,
                    last_message_date=format_timestamp(last_date),
                    participants=sorted(participants.split(",")) if participants else [],
                )
            )
    return ContactListing(entries)


@dataclass(frozen=True)
class DiagnosticReport:
    """Duplicate counts for the cached handle and chat tables."""

    handle_count: int
    duplicated_handles: int
    chat_count: int
    duplicated_chats: int

    def render_lines(self) -> List[str]:
        lines = [
            f"Handles: {self.handle_count}",
            f"Chatrooms with participants: {self.chat_count}",
        ]
        if self.duplicated_handles > 0:
            lines.append(f"Duplicated contacts: {self.duplicated_handles}")
        if self.duplicated_chats > 0:
            lines.append(f"Duplicated chats: {self.duplicated_chats}")
        return lines


def run_diagnostic(participants: ParticipantIndex, chats: ChatRoster) -> DiagnosticReport:
    """Count duplicated contacts and chats in the caches."""
    return DiagnosticReport(
        handle_count=len(participants),
        duplicated_handles=participants.duplicate_count(),
        chat_count=len(chats),
        duplicated_chats=chats.duplicate_count(),
    )
