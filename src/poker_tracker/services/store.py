"""Write-through persistence for sessions, analysis history and the live session."""

import contextlib
import logging
import warnings
from collections.abc import Iterator
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Protocol
from uuid import UUID

from poker_tracker.domain.analysis import AnalysisHistoryItem, EncodedMedia
from poker_tracker.domain.live import LiveSession
from poker_tracker.domain.sessions import (
    CompletedSession,
    MediaAttachment,
    MediaCategory,
)
from poker_tracker.errors import StorageError, StorageWarning

SESSIONS_KEY = "poker_sessions"
HISTORY_KEY = "analysis_history"
LIVE_SESSION_KEY = "active_session"

_logger = logging.getLogger(__name__)
_collected_warnings: ContextVar[list[str] | None] = ContextVar(
    "storage_warnings", default=None
)


class KeyValueStore(Protocol):
    """Durable key-value storage for JSON-compatible values."""

    def load(self, key: str) -> object | None:
        """Return the stored value, or None if the key is absent."""

    def save(self, key: str, value: object) -> None:
        """Store a value under a key, replacing any previous one."""

    def delete(self, key: str) -> None:
        """Remove a key entirely. Missing keys are ignored."""


@dataclass
class PersistentStore:
    """Maps the three storage slots to domain objects.

    Failures never propagate: they are logged and re-emitted as
    ``StorageWarning`` so the in-memory state stays authoritative.
    """

    backend: KeyValueStore

    def load_sessions(self) -> list[CompletedSession]:
        """Return stored completed sessions, most recent first."""
        raw = self._load(SESSIONS_KEY)
        if raw is None:
            return []
        try:
            return [_session_from_dict(row) for row in raw]
        except (KeyError, TypeError, ValueError) as exc:
            _warn(f"Stored sessions are unreadable: {exc}")
            return []

    def save_sessions(self, sessions: list[CompletedSession]) -> None:
        """Persist the full session ledger."""
        self._save(SESSIONS_KEY, [_session_to_dict(session) for session in sessions])

    def load_history(self) -> list[AnalysisHistoryItem]:
        """Return stored analysis history, most recent first."""
        raw = self._load(HISTORY_KEY)
        if raw is None:
            return []
        try:
            return [_history_from_dict(row) for row in raw]
        except (KeyError, TypeError, ValueError) as exc:
            _warn(f"Stored analysis history is unreadable: {exc}")
            return []

    def save_history(self, items: list[AnalysisHistoryItem]) -> None:
        """Persist the full analysis history."""
        self._save(HISTORY_KEY, [_history_to_dict(item) for item in items])

    def load_live_session(self) -> LiveSession | None:
        """Return the persisted live session, if any."""
        raw = self._load(LIVE_SESSION_KEY)
        if raw is None:
            return None
        try:
            return _live_from_dict(raw)
        except (KeyError, TypeError, ValueError) as exc:
            _warn(f"Stored live session is unreadable: {exc}")
            return None

    def save_live_session(self, live: LiveSession) -> None:
        """Persist the live session."""
        self._save(LIVE_SESSION_KEY, _live_to_dict(live))

    def clear_live_session(self) -> None:
        """Remove the live session slot."""
        try:
            self.backend.delete(LIVE_SESSION_KEY)
        except StorageError as exc:
            _warn(f"Failed to clear live session: {exc}")

    def _load(self, key: str) -> object | None:
        try:
            return self.backend.load(key)
        except StorageError as exc:
            _warn(f"Failed to load {key}: {exc}")
            return None

    def _save(self, key: str, value: object) -> None:
        try:
            self.backend.save(key, value)
        except StorageError as exc:
            _warn(f"Failed to save {key}: {exc}")


@contextlib.contextmanager
def collect_storage_warnings() -> Iterator[list[str]]:
    """Collect storage failure messages reported in the current context.

    Tasks started inside the block share the same list, so an HTTP request can
    gather the warnings its handler produced without touching global state.
    """
    messages: list[str] = []
    token = _collected_warnings.set(messages)
    try:
        yield messages
    finally:
        _collected_warnings.reset(token)


def _warn(message: str) -> None:
    _logger.warning(message)
    collected = _collected_warnings.get()
    if collected is not None:
        collected.append(message)
    warnings.warn(message, StorageWarning, stacklevel=4)


def _media_to_dict(media: EncodedMedia | None) -> dict[str, str] | None:
    if media is None:
        return None
    return {"data": media.data, "mime_type": media.mime_type}


def _media_from_dict(raw: dict | None) -> EncodedMedia | None:
    if raw is None:
        return None
    return EncodedMedia(data=raw["data"], mime_type=raw["mime_type"])


def _session_to_dict(session: CompletedSession) -> dict[str, object]:
    return {
        "id": str(session.id),
        "date": session.date.isoformat(),
        "stakes": session.stakes,
        "location": session.location,
        "duration_hours": session.duration_hours,
        "profit": session.profit,
        "tags": list(session.tags),
        "notes": session.notes,
        "media_items": [
            {
                "id": item.id,
                "data": item.encoded_data,
                "mime_type": item.mime_type,
                "category": item.category.value,
            }
            for item in session.media_items
        ],
    }


def _session_from_dict(row: dict) -> CompletedSession:
    return CompletedSession(
        id=UUID(row["id"]),
        date=date.fromisoformat(row["date"]),
        stakes=row["stakes"],
        location=row["location"],
        duration_hours=float(row["duration_hours"]),
        profit=float(row["profit"]),
        tags=tuple(row.get("tags", [])),
        notes=row.get("notes"),
        media_items=tuple(
            MediaAttachment(
                id=item["id"],
                encoded_data=item["data"],
                mime_type=item["mime_type"],
                category=MediaCategory(item["category"]),
            )
            for item in row.get("media_items", [])
        ),
    )


def _history_to_dict(item: AnalysisHistoryItem) -> dict[str, object]:
    return {
        "id": item.id,
        "timestamp": item.timestamp.isoformat(),
        "prompt": item.prompt,
        "response": item.response,
        "strategic_tags": list(item.strategic_tags),
        "sizing_advice": item.sizing_advice,
        "media": _media_to_dict(item.media),
    }


def _history_from_dict(row: dict) -> AnalysisHistoryItem:
    return AnalysisHistoryItem(
        id=row["id"],
        timestamp=datetime.fromisoformat(row["timestamp"]),
        prompt=row["prompt"],
        response=row["response"],
        strategic_tags=tuple(row.get("strategic_tags", [])),
        sizing_advice=row.get("sizing_advice"),
        media=_media_from_dict(row.get("media")),
    )


def _live_to_dict(live: LiveSession) -> dict[str, object]:
    return {
        "start_time": live.start_time.isoformat(),
        "location": live.location,
        "stakes": live.stakes,
        "current_profit": live.current_profit,
        "is_paused": live.is_paused,
        "pause_start": live.pause_start.isoformat() if live.pause_start else None,
        "total_paused_ms": round(live.total_paused / timedelta(milliseconds=1)),
    }


def _live_from_dict(raw: dict) -> LiveSession:
    pause_start = raw.get("pause_start")
    is_paused = bool(raw.get("is_paused", False))
    if is_paused != (pause_start is not None):
        raise ValueError("pause_start must be set exactly when paused")
    return LiveSession(
        start_time=datetime.fromisoformat(raw["start_time"]),
        location=raw["location"],
        stakes=raw["stakes"],
        current_profit=float(raw.get("current_profit", 0.0)),
        is_paused=is_paused,
        pause_start=datetime.fromisoformat(pause_start) if pause_start else None,
        total_paused=timedelta(milliseconds=int(raw.get("total_paused_ms", 0))),
    )
