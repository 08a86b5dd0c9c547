"""
Reporting for resolved filter selections.

Raw handle and chat rows contain duplicates, so counts are taken over
canonical participants and over distinct conversation names.
"""

from dataclasses import dataclass
from typing import Optional, Set
import logging

from imessage_filter.filtering.cache import ChatRoster, ParticipantIndex
from imessage_filter.filtering.naming import filename_from_participants
from imessage_filter.filtering.resolver import ResolvedSelection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SelectionSummary:
    """Distinct handle and conversation counts for a selection."""

    handle_count: int
    chat_count: int

    def describe(self) -> str:
        plural = "s" if self.handle_count != 1 else ""
        return f"Filtering for {self.handle_count} handle{plural} across {self.chat_count} chatrooms..."


def summarize_selection(
    selection: ResolvedSelection,
    participants: ParticipantIndex,
    chats: ChatRoster,
) -> SelectionSummary:
    """
    Count distinct handles and conversations in a selection.

    Handles are counted through the canonical participant map; handles with
    no canonical key share a single bucket. Chats are counted by their
    participant-derived name.
    """
    unique_handles: Set[Optional[int]] = {
        participants.canonical_key(handle_id) for handle_id in selection.selected_handle_ids
    }

    unique_chats: Set[str] = set()
    for chat_id in selection.selected_chat_ids:
        roster = chats.roster(chat_id)
        if roster:
            unique_chats.add(filename_from_participants(roster, participants))

    return SelectionSummary(len(unique_handles), len(unique_chats))


def report_selection(
    selection: ResolvedSelection,
    participants: ParticipantIndex,
    chats: ChatRoster,
) -> SelectionSummary:
    """Log how many handles and conversations will be exported."""
    summary = summarize_selection(selection, participants, chats)
    logger.info(summary.describe())
    return summary
