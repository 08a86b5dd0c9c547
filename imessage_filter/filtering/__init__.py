"""
Conversation filter resolution for iMessage exports.

Resolves a filter expression such as "Jane,+1 555 123 4567;alice@example.com"
into the handle and chat ROWIDs an export should include, despite chat.db
holding the same person or chat under several rows.

Architecture Overview:
    filter expression
        │  parse (';' groups, ',' terms)
        ▼
    normalizers ──► matching ──► ParticipantIndex  (handle ROWID → identifier)
        │
        ▼
    resolver ──► ChatRoster (chat ROWID → participants)
        │
        ├── Resolved(selection) ──► reporter, query_context
        └── NothingMatched      ──► caller exits cleanly

Key Design Decisions:
    1. Normalization only strips separators and folds email case
    2. Phones match on digit suffixes; emails and names match exactly
    3. Multi-contact groups select only exact group chats
    4. The engine never exits the process; callers decide
"""

from imessage_filter.filtering.normalizers import (
    normalize_identifier,
    classify_identifier,
    PhoneIdentifier,
    EmailIdentifier,
    OpaqueIdentifier,
    IdentifierShape,
)
from imessage_filter.filtering.matching import identifiers_match, shapes_match
from imessage_filter.filtering.cache import (
    ChatInfo,
    ChatRoster,
    ParticipantIndex,
    build_caches,
    dedupe_chats,
    dedupe_participants,
)
from imessage_filter.filtering.resolver import (
    FilterGroup,
    FilterResolver,
    FilterTerm,
    GroupMatch,
    NothingMatched,
    Resolution,
    Resolved,
    ResolvedSelection,
    parse_filter_expression,
    resolve_conversation_filter,
)
from imessage_filter.filtering.naming import chat_filename, filename_from_participants
from imessage_filter.filtering.reporter import SelectionSummary, report_selection
from imessage_filter.filtering.query_context import QueryContext
from imessage_filter.filtering.listing import (
    ContactListing,
    DiagnosticReport,
    list_contacts_and_chats,
    run_diagnostic,
)

__all__ = [
    # Normalizers
    "normalize_identifier",
    "classify_identifier",
    "PhoneIdentifier",
    "EmailIdentifier",
    "OpaqueIdentifier",
    "IdentifierShape",
    # Matching
    "identifiers_match",
    "shapes_match",
    # Caches
    "ChatInfo",
    "ChatRoster",
    "ParticipantIndex",
    "build_caches",
    "dedupe_chats",
    "dedupe_participants",
    # Resolution
    "FilterGroup",
    "FilterResolver",
    "FilterTerm",
    "GroupMatch",
    "NothingMatched",
    "Resolution",
    "Resolved",
    "ResolvedSelection",
    "parse_filter_expression",
    "resolve_conversation_filter",
    # Naming and reporting
    "chat_filename",
    "filename_from_participants",
    "SelectionSummary",
    "report_selection",
    # Query stage
    "QueryContext",
    # Listing
    "ContactListing",
    "DiagnosticReport",
    "list_contacts_and_chats",
    "run_diagnostic",
]
