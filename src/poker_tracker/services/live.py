"""State machine for the live timed session (Idle, Running, Paused)."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from uuid import uuid4

from poker_tracker.domain.live import LiveSession
from poker_tracker.domain.sessions import CompletedSession
from poker_tracker.errors import InvalidArgumentError, InvalidStateError
from poker_tracker.services.ledger import SessionLedger
from poker_tracker.services.store import PersistentStore
from poker_tracker.services.ticker import ElapsedTicker

LIVE_TRACKED_TAG = "Live Tracked"

_logger = logging.getLogger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class LiveSessionTracker:
    """Owns the single in-flight live session and every transition on it."""

    store: PersistentStore
    ledger: SessionLedger
    clock: Callable[[], datetime] = _local_now
    ticker: ElapsedTicker | None = None
    _live: LiveSession | None = field(init=False, default=None, repr=False)

    def __post_init__(self) -> None:
        self._live = self.store.load_live_session()
        if self._live is not None:
            _logger.info(
                "Restored live session: stakes=%s paused=%s",
                self._live.stakes,
                self._live.is_paused,
            )

    @property
    def state(self) -> str:
        """Return Idle, Running or Paused."""
        if self._live is None:
            return "Idle"
        return "Paused" if self._live.is_paused else "Running"

    def current(self) -> LiveSession | None:
        """Return the live session, if one is active."""
        return self._live

    def start(self, stakes: str, location: str) -> LiveSession:
        """Begin tracking a new session."""
        if not stakes.strip() or not location.strip():
            raise InvalidArgumentError("Stakes and location are required")
        if self._live is not None:
            raise InvalidStateError("A live session is already in progress")
        live = LiveSession(start_time=self.clock(), location=location, stakes=stakes)
        self._set(live)
        _logger.info("Live session started: stakes=%s location=%s", stakes, location)
        return live

    def pause(self) -> LiveSession:
        """Freeze the elapsed clock."""
        live = self._require_live()
        if live.is_paused:
            raise InvalidStateError("Live session is already paused")
        paused = replace(live, is_paused=True, pause_start=self.clock())
        self._set(paused)
        return paused

    def resume(self) -> LiveSession:
        """Continue after a pause, adding the pause to the paused total."""
        live = self._require_live()
        if not live.is_paused or live.pause_start is None:
            raise InvalidStateError("Live session is not paused")
        paused_for = self.clock() - live.pause_start
        resumed = replace(
            live,
            is_paused=False,
            pause_start=None,
            total_paused=live.total_paused + max(paused_for, timedelta(0)),
        )
        self._set(resumed)
        return resumed

    def update_profit(self, value: float) -> LiveSession:
        """Replace the running profit."""
        live = self._require_live()
        updated = replace(live, current_profit=float(value))
        self._set(updated)
        return updated

    def stop(self) -> CompletedSession:
        """Finalize the live session into the ledger and clear it."""
        live = self._require_live()
        now = self.clock()
        total_paused = live.total_paused
        if live.is_paused and live.pause_start is not None:
            total_paused += max(now - live.pause_start, timedelta(0))
        active = max(now - live.start_time - total_paused, timedelta(0))
        session = CompletedSession(
            id=uuid4(),
            date=now.date(),
            stakes=live.stakes,
            location=live.location,
            duration_hours=round(active / timedelta(hours=1), 2),
            profit=live.current_profit,
            tags=(LIVE_TRACKED_TAG,),
        )
        self.ledger.record(session)
        self._live = None
        self.store.clear_live_session()
        self.sync_ticker()
        _logger.info("Live session stopped: hours=%s", session.duration_hours)
        return session

    def elapsed_seconds(self) -> float:
        """Return active seconds, frozen while paused."""
        if self._live is None:
            return 0.0
        return _elapsed(self._live, self.clock()).total_seconds()

    @property
    def ticking(self) -> bool:
        """Whether the display ticker is currently publishing."""
        return self.ticker is not None and self.ticker.running

    def sync_ticker(self) -> None:
        """Run the display ticker only while a session is running."""
        if self.ticker is None:
            return
        if self.state == "Running":
            self.ticker.start(self.elapsed_seconds)
        else:
            self.ticker.stop()

    def _require_live(self) -> LiveSession:
        if self._live is None:
            raise InvalidStateError("No live session in progress")
        return self._live

    def _set(self, live: LiveSession) -> None:
        self._live = live
        self.store.save_live_session(live)
        self.sync_ticker()


def _elapsed(live: LiveSession, now: datetime) -> timedelta:
    reference = live.pause_start if live.is_paused and live.pause_start else now
    return max(reference - live.start_time - live.total_paused, timedelta(0))


def format_elapsed(seconds: float) -> str:
    """Format seconds as HH:MM:SS."""
    total = max(int(seconds), 0)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"
