"""
FastAPI backend for iMessage filtering.

Read-only: chat.db is opened with mode=ro and never written. Used by contact
pickers to list conversations and preview what a filter expression selects.

The database path comes from IMESSAGE_FILTER_DB_PATH (or the usual chat.db
locations, see config.py).
"""

from __future__ import annotations

import os
from typing import Any, Dict, List

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware

from imessage_filter.config import Config
from imessage_filter.database import DatabaseConnection
from imessage_filter.filtering.listing import run_diagnostic
from imessage_filter.filtering.reporter import summarize_selection
from imessage_filter.filtering.resolver import FilterResolver, NothingMatched


def _open_db() -> DatabaseConnection:
    """
    Open chat.db for reading.

    Raises HTTPException if chat.db doesn't exist.
    """
    config = Config()
    if not config.validate():
        raise HTTPException(
            status_code=503,
            detail={
                "error": "chat.db not found",
                "message": "Set IMESSAGE_FILTER_DB_PATH to a readable chat.db",
                "path": config.db_path_str,
            },
        )
    db = DatabaseConnection(config)
    db.connect()
    return db


app = FastAPI(
    title="iMessage Filter API",
    version="0.1.0",
    description="Read-only API for resolving conversation filters against chat.db.",
)

# Local dev CORS defaults
app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        os.getenv("IMESSAGE_ALLOWED_ORIGIN", "http://127.0.0.1:5173"),
        "http://localhost:5173",
    ],
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"],
)


@app.get("/health")
def health() -> Dict[str, Any]:
    """Health check - also reports whether chat.db is readable."""
    config = Config()
    readable = config.validate()
    return {
        "status": "ok" if readable else "degraded",
        "db_exists": readable,
        "db_path": config.db_path_str,
    }


@app.get("/contacts")
def contacts() -> Dict[str, Any]:
    """List direct messages and group chats, newest first."""
    db = _open_db()
    try:
        listing = db.list_contacts()
    finally:
        db.close()

    def _entry(entry) -> Dict[str, Any]:
        return {
            "chat_id": entry.chat_id,
            "name": entry.name,
            "contact_id": entry.contact_id,
            "message_count": entry.message_count,
            "last_message_date": entry.last_message_date,
            "participants": entry.participants,
        }

    return {
        "individual": [_entry(e) for e in listing.individual_chats],
        "groups": [_entry(e) for e in listing.group_chats],
    }


@app.get("/diagnostic")
def diagnostic() -> Dict[str, Any]:
    """Report duplicated contacts and chats."""
    db = _open_db()
    try:
        participants, chats = db.build_caches()
    finally:
        db.close()

    report = run_diagnostic(participants, chats)
    return {
        "handle_count": report.handle_count,
        "duplicated_handles": report.duplicated_handles,
        "chat_count": report.chat_count,
        "duplicated_chats": report.duplicated_chats,
    }


@app.get("/filter")
def resolve_filter(expression: str = Query(..., min_length=1)) -> Dict[str, Any]:
    """
    Preview the handles and chats a filter expression selects.

    An expression that selects nothing is not an error: the response has
    status "nothing_matched" and empty selections.
    """
    db = _open_db()
    try:
        participants, chats = db.build_caches()
    finally:
        db.close()

    resolution = FilterResolver(participants, chats).resolve(expression)
    skipped_groups: List[str] = [m.group.raw for m in resolution.groups if m.skipped]

    if isinstance(resolution, NothingMatched):
        return {
            "status": "nothing_matched",
            "expression": expression,
            "selected_handle_ids": [],
            "selected_chat_ids": [],
            "handle_count": 0,
            "chat_count": 0,
            "skipped_groups": skipped_groups,
        }

    selection = resolution.selection
    summary = summarize_selection(selection, participants, chats)
    return {
        "status": "resolved",
        "expression": expression,
        "selected_handle_ids": sorted(selection.selected_handle_ids),
        "selected_chat_ids": sorted(selection.selected_chat_ids),
        "handle_count": summary.handle_count,
        "chat_count": summary.chat_count,
        "skipped_groups": skipped_groups,
    }
