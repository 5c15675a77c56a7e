"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from poker_tracker.adapters.openai_analysis_client import OpenAIAnalysisClient
from poker_tracker.adapters.sqlite_store import SqliteKeyValueStore
from poker_tracker.config import Settings
from poker_tracker.services.analysis import AnalysisService
from poker_tracker.services.history import AnalysisHistory
from poker_tracker.services.ledger import SessionLedger
from poker_tracker.services.live import LiveSessionTracker
from poker_tracker.services.store import PersistentStore
from poker_tracker.services.ticker import ElapsedTicker, LiveDisplay


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    store: PersistentStore
    ledger: SessionLedger
    live_tracker: LiveSessionTracker
    live_display: LiveDisplay
    analysis_history: AnalysisHistory
    analysis_service: AnalysisService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    backend = SqliteKeyValueStore.create(resolved_settings.database_path)
    store = PersistentStore(backend)
    ledger = SessionLedger(store)
    live_display = LiveDisplay()
    ticker = ElapsedTicker(on_tick=live_display.update)
    live_tracker = LiveSessionTracker(store=store, ledger=ledger, ticker=ticker)
    analysis_history = AnalysisHistory(store)
    openai_client = OpenAIAnalysisClient.create(resolved_settings.openai_api_key)
    analysis_service = AnalysisService(
        client=openai_client,
        history=analysis_history,
        model=resolved_settings.openai_model,
        reasoning_effort=resolved_settings.openai_reasoning_effort,
        extended_reasoning_effort=resolved_settings.openai_extended_reasoning_effort,
        store=resolved_settings.openai_store,
        default_pot_size=resolved_settings.default_pot_size,
    )

    async def close_resources() -> None:
        await ticker.aclose()
        await openai_client.close()
        backend.close()

    return AppContainer(
        settings=resolved_settings,
        store=store,
        ledger=ledger,
        live_tracker=live_tracker,
        live_display=live_display,
        analysis_history=analysis_history,
        analysis_service=analysis_service,
        close_resources=close_resources,
    )
