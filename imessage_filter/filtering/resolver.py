"""
Conversation filter resolution.

Turns a user filter expression such as

    "Jane Doe,+1 (555) 123-4567;alice@example.com"

into the handle ROWIDs and chat ROWIDs to include in an export.

Expression Grammar:
    expression := group (';' group)*
    group      := term (',' term)*

    A group with one distinct term selects direct messages with that contact.
    A group with two or more distinct terms selects group chats whose
    participants are exactly those contacts.

Resolution Strategy (per group):
    1. Normalize terms, drop blank ones and duplicates
    2. Match each term against every participant (see matching.py)
    3. Multi-term groups with an unmatched term are skipped
    4. Scan chats:
       - DM: single-participant chat whose participant matched the term,
         or, when the term matched nobody, whose chat_identifier matches it
       - Group: roster size equals the term count, roster is covered by the
         matched handles, and every term is represented in the roster
    5. Results of all groups are folded together with set union

The resolver never mutates its inputs and keeps no state between calls.
Termination on an empty result is left to the caller: resolve() returns
NothingMatched instead.
"""

from dataclasses import dataclass, field
from functools import reduce
from typing import Dict, FrozenSet, List, Optional, Tuple, Union
import logging

from imessage_filter.filtering.cache import ChatRoster, ParticipantIndex
from imessage_filter.filtering.matching import shapes_match
from imessage_filter.filtering.normalizers import (
    IdentifierShape,
    classify_identifier,
)

logger = logging.getLogger(__name__)

GROUP_SEPARATOR = ";"
TERM_SEPARATOR = ","


@dataclass(frozen=True)
class FilterTerm:
    """One contact identifier from a filter group."""

    raw: str
    shape: IdentifierShape

    @property
    def normalized(self) -> str:
        return self.shape.value


@dataclass(frozen=True)
class FilterGroup:
    """A ';'-separated part of the expression, with distinct normalized terms."""

    raw: str
    terms: Tuple[FilterTerm, ...]

    @property
    def is_direct_message(self) -> bool:
        return len(self.terms) == 1


@dataclass(frozen=True)
class ResolvedSelection:
    """Handle and chat ROWIDs selected by a filter expression."""

    selected_handle_ids: FrozenSet[int] = frozenset()
    selected_chat_ids: FrozenSet[int] = frozenset()

    def union(self, other: "ResolvedSelection") -> "ResolvedSelection":
        return ResolvedSelection(
            self.selected_handle_ids | other.selected_handle_ids,
            self.selected_chat_ids | other.selected_chat_ids,
        )

    def is_empty(self) -> bool:
        return not self.selected_chat_ids


@dataclass(frozen=True)
class GroupMatch:
    """Outcome of resolving a single filter group."""

    group: FilterGroup
    handles_by_term: Dict[str, FrozenSet[int]] = field(default_factory=dict)
    unresolved: Tuple[str, ...] = ()
    selection: ResolvedSelection = ResolvedSelection()
    skipped: bool = False


@dataclass(frozen=True)
class Resolved:
    """The expression selected at least one chat."""

    selection: ResolvedSelection
    groups: Tuple[GroupMatch, ...] = ()


@dataclass(frozen=True)
class NothingMatched:
    """The expression selected no chats; there is nothing to export."""

    expression: str
    groups: Tuple[GroupMatch, ...] = ()


Resolution = Union[Resolved, NothingMatched]


def parse_filter_group(raw_group: str) -> Optional[FilterGroup]:
    """
    Parse one group into its distinct normalized terms.

    Returns:
        The FilterGroup, or None if the group has no usable terms.
    """
    terms: List[FilterTerm] = []
    seen = set()

    for raw_term in raw_group.split(TERM_SEPARATOR):
        stripped = raw_term.strip()
        if not stripped:
            continue

        # Separator-only terms normalize to "" and still count as a term
        shape = classify_identifier(stripped)
        if shape.value in seen:
            logger.debug(f"Skipping duplicate filter '{stripped}' in group '{raw_group}'")
            continue

        seen.add(shape.value)
        terms.append(FilterTerm(stripped, shape))

    if not terms:
        return None
    return FilterGroup(raw_group, tuple(terms))


def parse_filter_expression(expression: Optional[str]) -> List[FilterGroup]:
    """
    Split an expression into filter groups, dropping empty ones.

    Examples:
        >>> [len(g.terms) for g in parse_filter_expression("a,b;c")]
        [2, 1]
    """
    if not expression:
        return []

    groups = []
    for raw_group in expression.split(GROUP_SEPARATOR):
        group = parse_filter_group(raw_group)
        if group is None:
            logger.warning(f"Skipping empty filter group '{raw_group}'")
            continue
        groups.append(group)
    return groups


class FilterResolver:
    """
    Resolve filter expressions against a participant index and chat roster.

    Both snapshots are treated as read-only; one resolver can be reused for
    any number of expressions.
    """

    def __init__(self, participants: ParticipantIndex, chats: ChatRoster):
        self.participants = participants
        self.chats = chats

    def match_term(self, term: FilterTerm) -> FrozenSet[int]:
        """Return every handle ROWID whose identifier matches the term."""
        return frozenset(
            handle_id
            for handle_id, handle_shape in self.participants.normalized_items
            if shapes_match(term.shape, handle_shape)
        )

    def _match_direct_chats(
        self, term: FilterTerm, handles: FrozenSet[int]
    ) -> FrozenSet[int]:
        matched = set()
        for chat_id, roster in self.chats.sorted_items():
            if len(roster) != 1:
                continue

            if handles:
                if roster <= handles:
                    matched.add(chat_id)
                continue

            # Contact never made it into the handle table
            chat = self.chats.chat(chat_id)
            if chat is not None and shapes_match(
                term.shape, classify_identifier(chat.chat_identifier)
            ):
                logger.debug(
                    f"Matched chat {chat_id} by identifier '{chat.chat_identifier}'"
                )
                matched.add(chat_id)
        return frozenset(matched)

    def _match_group_chats(
        self, term_count: int, handles_by_term: Dict[str, FrozenSet[int]]
    ) -> FrozenSet[int]:
        group_handles = frozenset().union(*handles_by_term.values())
        matched = set()
        for chat_id, roster in self.chats.sorted_items():
            if len(roster) != term_count or not roster <= group_handles:
                continue
            # Each term must be represented by at least one participant
            if all(roster & term_handles for term_handles in handles_by_term.values()):
                matched.add(chat_id)
        return frozenset(matched)

    def resolve_group(self, group: FilterGroup) -> GroupMatch:
        """Resolve a single filter group to its handles and chats."""
        handles_by_term: Dict[str, FrozenSet[int]] = {}
        unresolved: List[str] = []

        for term in group.terms:
            handles = self.match_term(term)
            if handles:
                handles_by_term[term.normalized] = handles
            else:
                logger.warning(
                    f"No matching handle found for filter '{term.raw}' in group '{group.raw}'"
                )
                unresolved.append(term.normalized)

        if not group.is_direct_message and unresolved:
            logger.warning(
                f"Not all filters in group '{group.raw}' matched to handles. Skipping this group."
            )
            return GroupMatch(group, handles_by_term, tuple(unresolved), skipped=True)

        if group.is_direct_message:
            term = group.terms[0]
            chat_ids = self._match_direct_chats(
                term, handles_by_term.get(term.normalized, frozenset())
            )
        else:
            chat_ids = self._match_group_chats(len(group.terms), handles_by_term)

        group_handles = frozenset().union(*handles_by_term.values())
        logger.debug(
            f"Group '{group.raw}' matched {len(group_handles)} handles and {len(chat_ids)} chats"
        )
        return GroupMatch(
            group,
            handles_by_term,
            tuple(unresolved),
            ResolvedSelection(group_handles, chat_ids),
        )

    def resolve(self, expression: Optional[str]) -> Resolution:
        """
        Resolve a full filter expression.

        Args:
            expression: Filter expression, groups separated by ';' and terms by ','.

        Returns:
            Resolved with the selection, or NothingMatched if no chat was selected.
        """
        groups = parse_filter_expression(expression)
        matches = tuple(self.resolve_group(group) for group in groups)
        selection = reduce(
            ResolvedSelection.union,
            (match.selection for match in matches),
            ResolvedSelection(),
        )

        skipped = sum(1 for match in matches if match.skipped)
        logger.info(
            f"Processed {len(groups)} filter groups ({skipped} skipped): "
            f"{len(selection.selected_handle_ids)} handles, "
            f"{len(selection.selected_chat_ids)} chats"
        )

        if selection.is_empty():
            logger.warning("No chatrooms were found with the supplied contacts.")
            return NothingMatched(expression or "", matches)
        return Resolved(selection, matches)


def resolve_conversation_filter(
    expression: Optional[str],
    participants: ParticipantIndex,
    chats: ChatRoster,
) -> Resolution:
    """Convenience wrapper around FilterResolver(participants, chats).resolve()."""
    return FilterResolver(participants, chats).resolve(expression)
