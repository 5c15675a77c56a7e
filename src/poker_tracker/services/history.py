"""Analysis history kept most recent first."""

from dataclasses import dataclass, field

from poker_tracker.domain.analysis import AnalysisHistoryItem
from poker_tracker.errors import InvalidArgumentError
from poker_tracker.services.store import PersistentStore

HISTORY_SORT_FIELDS = ("timestamp", "prompt")


@dataclass
class AnalysisHistory:
    """In-memory analysis history with write-through persistence."""

    store: PersistentStore
    _items: list[AnalysisHistoryItem] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._items = self.store.load_history()

    def items(self) -> list[AnalysisHistoryItem]:
        """Return history, most recent first."""
        return list(self._items)

    def prepend(self, item: AnalysisHistoryItem) -> None:
        """Add a new item at the front and persist."""
        self._items.insert(0, item)
        self.store.save_history(self._items)

    def sorted_items(
        self, sort_field: str = "timestamp", order: str = "desc"
    ) -> list[AnalysisHistoryItem]:
        """Return history sorted by timestamp or prompt text."""
        if sort_field not in HISTORY_SORT_FIELDS:
            raise InvalidArgumentError(f"Cannot sort history by {sort_field!r}")
        if order not in {"asc", "desc"}:
            raise InvalidArgumentError(f"Unknown sort order {order!r}")
        if sort_field == "timestamp":
            return sorted(
                self._items, key=lambda item: item.timestamp, reverse=order == "desc"
            )
        return sorted(
            self._items,
            key=lambda item: item.prompt.casefold(),
            reverse=order == "desc",
        )
