"""
Active message filter for the export query stage.

A resolved selection is installed once per run and then read by every query
that decides which messages are exported.
"""

from typing import FrozenSet, Optional, Tuple

from imessage_filter.filtering.resolver import ResolvedSelection


def _placeholders(count: int) -> str:
    return ", ".join("?" for _ in range(count))


class QueryContext:
    """Holds the selected handle and chat ROWIDs for message queries."""

    def __init__(self):
        self.selected_handle_ids: Optional[FrozenSet[int]] = None
        self.selected_chat_ids: Optional[FrozenSet[int]] = None

    def set_selection(self, selection: ResolvedSelection) -> None:
        """
        Install a resolved selection.

        Raises:
            RuntimeError: If a selection was already installed.
        """
        if self.selected_chat_ids is not None:
            raise RuntimeError("A conversation filter selection is already installed.")
        self.selected_handle_ids = selection.selected_handle_ids
        self.selected_chat_ids = selection.selected_chat_ids

    def has_filters(self) -> bool:
        return bool(self.selected_chat_ids)

    def message_filter_sql(
        self,
        chat_column: str = "c.chat_id",
        handle_column: str = "m.handle_id",
    ) -> Tuple[str, Tuple[int, ...]]:
        """
        Build a WHERE predicate restricting messages to the selection.

        Messages in a selected chat are kept; messages with no chat are kept
        when they came from a selected handle.

        Returns:
            (predicate SQL, parameters). Without a selection the predicate is
            "1 = 1" with no parameters.
        """
        if not self.has_filters():
            return "1 = 1", ()

        chat_ids = tuple(sorted(self.selected_chat_ids or ()))
        clause = f"{chat_column} IN ({_placeholders(len(chat_ids))})"
        params: Tuple[int, ...] = chat_ids

        handle_ids = tuple(sorted(self.selected_handle_ids or ()))
        if handle_ids:
            clause = (
                f"({clause} OR ({chat_column} IS NULL AND "
                f"{handle_column} IN ({_placeholders(len(handle_ids))})))"
            )
            params += handle_ids

        return clause, params
