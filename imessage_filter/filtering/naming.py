"""
Conversation naming.

Builds the human-readable conversation name used for export filenames and
for counting distinct conversations in a filtered selection.

Naming Rules:
    1. Named chats: "<display name> - <chat ROWID>"
    2. Unnamed chats: participant identifiers, "A, B, C"
       (long lists end in ", and N others")
    3. Chats with no participants: chat_identifier
"""

from typing import AbstractSet, Optional
import logging
import re

from imessage_filter.filtering.cache import ChatInfo, ChatRoster, ParticipantIndex

logger = logging.getLogger(__name__)

# Longest name we generate, leaving room for an extension
MAX_LENGTH = 235

UNKNOWN = "Unknown"

_INVALID_FILENAME_CHARS = re.compile(r'[/\\:*?"<>|]')


def who(handle_id: Optional[int], participants: ParticipantIndex) -> str:
    """Return the identifier for a handle, or "Unknown"."""
    if handle_id is None:
        return UNKNOWN
    identifier = participants.get(handle_id)
    return identifier if identifier is not None else UNKNOWN


def filename_from_participants(
    roster: AbstractSet[int], participants: ParticipantIndex
) -> str:
    """
    Join participant identifiers into a name no longer than MAX_LENGTH.

    Examples:
        - "Contact 1, Contact 2"
        - "Contact 1, Contact 2, ... Contact 13, and 4 others"
    """
    added = 0
    out = ""
    for handle_id in sorted(roster):
        participant = who(handle_id, participants)
        if len(participant) + len(out) < MAX_LENGTH:
            if out:
                out += ", "
            out += participant
            added += 1
            continue

        extra = f", and {len(roster) - added} others"
        if len(extra) + len(out) >= MAX_LENGTH:
            out = out[: MAX_LENGTH - len(extra)] + extra
        elif not out:
            out = participant[:MAX_LENGTH]
        else:
            out += extra
        break
    return out


def sanitize_filename(filename: str) -> str:
    """Replace characters that are invalid in filenames with '_'."""
    return _INVALID_FILENAME_CHARS.sub("_", filename)


def chat_filename(
    chat: ChatInfo,
    chats: ChatRoster,
    participants: ParticipantIndex,
    extension: Optional[str] = None,
) -> str:
    """
    Build the filename for a chat.

    Args:
        chat: The chat to name.
        chats: Chat roster, for participant lookup.
        participants: Participant index, for identifier lookup.
        extension: Optional extension such as ".html".

    Returns:
        Sanitized filename.
    """
    name = chat.name
    if name is not None:
        filename = f"{name[:MAX_LENGTH]} - {chat.rowid}"
    else:
        roster = chats.roster(chat.rowid)
        if roster:
            filename = filename_from_participants(roster, participants)
        else:
            logger.error(f"Found error: message chat ID {chat.rowid} has no members!")
            filename = chat.chat_identifier

    if extension:
        filename += extension

    return sanitize_filename(filename)
