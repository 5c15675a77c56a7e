"""Shared test fixtures."""

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

import pytest

from poker_tracker.config import Settings
from poker_tracker.containers import AppContainer
from poker_tracker.domain.analysis import EncodedMedia
from poker_tracker.errors import StorageError
from poker_tracker.services.analysis import AnalysisClient, AnalysisService
from poker_tracker.services.history import AnalysisHistory
from poker_tracker.services.ledger import SessionLedger
from poker_tracker.services.live import LiveSessionTracker
from poker_tracker.services.store import KeyValueStore, PersistentStore
from poker_tracker.services.ticker import LiveDisplay


@dataclass
class InMemoryKeyValueStore(KeyValueStore):
    """In-memory key-value store that round-trips values through JSON."""

    values: dict[str, str] = field(default_factory=dict)

    def load(self, key: str) -> object | None:
        raw = self.values.get(key)
        return None if raw is None else json.loads(raw)

    def save(self, key: str, value: object) -> None:
        self.values[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self.values.pop(key, None)


@dataclass
class FailingKeyValueStore(KeyValueStore):
    """Store whose every operation fails."""

    def load(self, key: str) -> object | None:
        raise StorageError("disk unavailable")

    def save(self, key: str, value: object) -> None:
        raise StorageError("disk unavailable")

    def delete(self, key: str) -> None:
        raise StorageError("disk unavailable")


@dataclass
class FakeClock:
    """Manually advanced clock."""

    now: datetime = field(
        default_factory=lambda: datetime(2024, 5, 4, 20, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@dataclass
class FakeAnalysisClient(AnalysisClient):
    """Fake analysis client returning a fixed payload and recording calls."""

    payload: object = field(
        default_factory=lambda: {
            "analysis": "Villain's river raise is under-bluffed; fold is fine.",
            "strategicTags": ["Hero Call", "BTN", "Value Bet"],
            "sizingAdvice": "Bet 2/3 pot on the turn.",
        }
    )
    error: Exception | None = None
    calls: list[dict[str, object]] = field(default_factory=list)

    async def analyze(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        instructions: str,
        prompt: str,
        media: EncodedMedia | None,
        schema: dict[str, object],
    ) -> object:
        self.calls.append(
            {
                "model": model,
                "reasoning_effort": reasoning_effort,
                "prompt": prompt,
                "media": media,
                "schema": schema,
            }
        )
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        openai_api_key="openai-key",
        database_path=str(tmp_path / "poker.db"),
    )


@pytest.fixture
def kv_store() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture
def store(kv_store: InMemoryKeyValueStore) -> PersistentStore:
    return PersistentStore(kv_store)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def analysis_client() -> FakeAnalysisClient:
    return FakeAnalysisClient()


@pytest.fixture
def container(
    settings: Settings,
    store: PersistentStore,
    clock: FakeClock,
    analysis_client: FakeAnalysisClient,
) -> AppContainer:
    ledger = SessionLedger(store)
    live_tracker = LiveSessionTracker(store=store, ledger=ledger, clock=clock)
    history = AnalysisHistory(store)
    analysis_service = AnalysisService(
        client=analysis_client,
        history=history,
        model=settings.openai_model,
        reasoning_effort=settings.openai_reasoning_effort,
        extended_reasoning_effort=settings.openai_extended_reasoning_effort,
        store=settings.openai_store,
        default_pot_size=settings.default_pot_size,
        clock=clock,
    )

    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        store=store,
        ledger=ledger,
        live_tracker=live_tracker,
        live_display=LiveDisplay(),
        analysis_history=history,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
