"""Domain model for the in-progress live session."""

from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class LiveSession:
    """Snapshot of the single session being tracked in real time.

    ``pause_start`` is set exactly when ``is_paused`` is true.
    ``total_paused`` only covers pause intervals that have already ended.
    """

    start_time: datetime
    location: str
    stakes: str
    current_profit: float = 0.0
    is_paused: bool = False
    pause_start: datetime | None = None
    total_paused: timedelta = timedelta(0)
