"""Completed session ledger and derived statistics."""

import logging
import math
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field, replace
from datetime import date
from uuid import UUID, uuid4

from poker_tracker.domain.analysis import EncodedMedia
from poker_tracker.domain.sessions import (
    CompletedSession,
    MediaAttachment,
    MediaCategory,
)
from poker_tracker.domain.stats import LedgerStats, ProfitPoint
from poker_tracker.errors import InvalidArgumentError, SessionNotFoundError
from poker_tracker.services.store import PersistentStore

_SORT_KEYS: dict[str, Callable[[CompletedSession], object]] = {
    "date": lambda session: session.date,
    "profit": lambda session: session.profit,
    "stakes": lambda session: session.stakes.casefold(),
}
SORT_FIELDS = tuple(_SORT_KEYS)
SORT_ORDERS = ("asc", "desc")

_logger = logging.getLogger(__name__)


@dataclass
class SessionLedger:
    """Holds completed sessions, most recent first, with write-through."""

    store: PersistentStore
    _sessions: list[CompletedSession] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._sessions = self.store.load_sessions()

    def sessions(self) -> list[CompletedSession]:
        """Return all sessions, most recently added first."""
        return list(self._sessions)

    def get(self, session_id: UUID) -> CompletedSession:
        """Return a session by id."""
        for session in self._sessions:
            if session.id == session_id:
                return session
        raise SessionNotFoundError(f"Unknown session {session_id}")

    def add_session(  # noqa: PLR0913
        self,
        *,
        session_date: date,
        stakes: str,
        location: str,
        duration_hours: float,
        profit: float,
        tags: Sequence[str] = (),
        notes: str | None = None,
        media: Sequence[EncodedMedia] = (),
        media_category: MediaCategory = MediaCategory.HAND_SCREENSHOT,
    ) -> CompletedSession:
        """Record a manually entered session."""
        if not stakes.strip() or not location.strip():
            raise InvalidArgumentError("Stakes and location are required")
        if not math.isfinite(duration_hours) or duration_hours < 0:
            raise InvalidArgumentError("Duration must be a non-negative number")
        if not math.isfinite(profit):
            raise InvalidArgumentError("Profit must be a finite number")
        session = CompletedSession(
            id=uuid4(),
            date=session_date,
            stakes=stakes,
            location=location,
            duration_hours=duration_hours,
            profit=profit,
            tags=tuple(tags),
            notes=notes,
            media_items=tuple(
                MediaAttachment(
                    id=f"m-{index}-{uuid4().hex[:8]}",
                    encoded_data=item.data,
                    mime_type=item.mime_type,
                    category=media_category,
                )
                for index, item in enumerate(media)
            ),
        )
        self.record(session)
        return session

    def record(self, session: CompletedSession) -> None:
        """Prepend a finished session and persist the ledger."""
        self._sessions.insert(0, session)
        _logger.info(
            "Session recorded: id=%s profit=%s hours=%s",
            session.id,
            session.profit,
            session.duration_hours,
        )
        self.store.save_sessions(self._sessions)

    def delete_session(self, session_id: UUID) -> None:
        """Remove a session by id."""
        session = self.get(session_id)
        self._sessions.remove(session)
        self.store.save_sessions(self._sessions)

    def update_notes(self, session_id: UUID, notes: str | None) -> CompletedSession:
        """Replace the notes of a session; the only mutable field."""
        current = self.get(session_id)
        updated = replace(current, notes=notes)
        index = self._sessions.index(current)
        self._sessions[index] = updated
        self.store.save_sessions(self._sessions)
        return updated

    def search(self, term: str) -> list[CompletedSession]:
        """Filter sessions by location, stakes or tag (case-insensitive)."""
        needle = term.strip().lower()
        if not needle:
            return self.sessions()
        return [
            session
            for session in self._sessions
            if needle in session.location.lower()
            or needle in session.stakes.lower()
            or any(needle in tag.lower() for tag in session.tags)
        ]

    def list_sessions(
        self, term: str = "", sort_field: str = "date", order: str = "desc"
    ) -> list[CompletedSession]:
        """Return filtered sessions sorted by date, profit or stakes."""
        if sort_field not in SORT_FIELDS:
            raise InvalidArgumentError(f"Cannot sort sessions by {sort_field!r}")
        if order not in SORT_ORDERS:
            raise InvalidArgumentError(f"Unknown sort order {order!r}")
        key = _SORT_KEYS[sort_field]
        return sorted(self.search(term), key=key, reverse=order == "desc")

    def media_for(
        self, session_id: UUID, category: MediaCategory | None = None
    ) -> list[MediaAttachment]:
        """Return a session's attachments, optionally filtered by category."""
        session = self.get(session_id)
        return [
            item
            for item in session.media_items
            if category is None or item.category == category
        ]

    def stats(self) -> LedgerStats:
        """Compute aggregates over the ledger in insertion order."""
        return compute_stats(list(reversed(self._sessions)))


def compute_stats(sessions: Sequence[CompletedSession]) -> LedgerStats:
    """Aggregate sessions given in insertion order."""
    total_profit = sum(session.profit for session in sessions)
    total_hours = sum(session.duration_hours for session in sessions)
    hourly_rate = total_profit / total_hours if total_hours > 0 else 0.0
    winners = sum(1 for session in sessions if session.profit > 0)
    win_rate = winners / len(sessions) * 100 if sessions else 0.0

    series: list[ProfitPoint] = []
    running_total = 0.0
    for index, session in enumerate(
        sorted(sessions, key=lambda session: session.date), start=1
    ):
        running_total += session.profit
        series.append(
            ProfitPoint(
                label=f"S{index}",
                date=session.date,
                cumulative_profit=running_total,
            )
        )

    return LedgerStats(
        total_profit=total_profit,
        total_hours=total_hours,
        hourly_rate=hourly_rate,
        win_rate=win_rate,
        series=series,
    )
