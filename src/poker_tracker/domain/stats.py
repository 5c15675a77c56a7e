"""Domain models for ledger statistics."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class ProfitPoint:
    """Cumulative profit after a session, in date order."""

    label: str
    date: date
    cumulative_profit: float


@dataclass(frozen=True)
class LedgerStats:
    """Aggregates derived from all completed sessions."""

    total_profit: float
    total_hours: float
    hourly_rate: float
    win_rate: float
    series: list[ProfitPoint]
