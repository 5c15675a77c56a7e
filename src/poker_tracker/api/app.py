"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import UUID

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from poker_tracker.api.models import (
    AnalysisRequest,
    MediaPayload,
    NotesUpdate,
    ProfitUpdate,
    SessionCreate,
    StartLiveRequest,
)
from poker_tracker.app_logging import configure_logging
from poker_tracker.containers import AppContainer
from poker_tracker.domain.analysis import EncodedMedia
from poker_tracker.domain.sessions import MediaCategory
from poker_tracker.errors import (
    AnalysisError,
    InvalidArgumentError,
    InvalidStateError,
    SessionNotFoundError,
)
from poker_tracker.services.analysis import build_session_prompt, session_media
from poker_tracker.services.live import format_elapsed
from poker_tracker.services.media import (
    DEFAULT_MIME_TYPE,
    decode_media,
    encode_media,
    parse_data_url,
)
from poker_tracker.services.sizing import size_for, standard_sizes
from poker_tracker.services.store import collect_storage_warnings

STORAGE_WARNING_HEADER = "X-Storage-Warning"


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.container.live_tracker.sync_ticker()
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.middleware("http")
    async def report_storage_warnings(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        with collect_storage_warnings() as messages:
            response = await call_next(request)
        if messages:
            response.headers[STORAGE_WARNING_HEADER] = "; ".join(messages)
        return response

    @app.exception_handler(SessionNotFoundError)
    async def not_found(request: Request, exc: SessionNotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(InvalidArgumentError)
    async def invalid_argument(
        request: Request, exc: InvalidArgumentError
    ) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": str(exc)})

    @app.exception_handler(InvalidStateError)
    async def invalid_state(request: Request, exc: InvalidStateError) -> JSONResponse:
        return JSONResponse(status_code=409, content={"detail": str(exc)})

    @app.exception_handler(AnalysisError)
    async def analysis_failed(request: Request, exc: AnalysisError) -> JSONResponse:
        logger.warning("Analysis failed: %s", exc)
        return JSONResponse(status_code=502, content={"detail": str(exc)})

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/live")
    async def live_status(request: Request) -> dict[str, object]:
        """Return the live session and its elapsed time."""
        return _live_payload(request.app.state.container)

    @app.post("/live/start")
    async def live_start(body: StartLiveRequest, request: Request) -> dict[str, object]:
        """Start tracking a live session."""
        state_container: AppContainer = request.app.state.container
        state_container.live_tracker.start(body.stakes, body.location)
        return _live_payload(state_container)

    @app.post("/live/pause")
    async def live_pause(request: Request) -> dict[str, object]:
        """Pause the live session."""
        state_container: AppContainer = request.app.state.container
        state_container.live_tracker.pause()
        return _live_payload(state_container)

    @app.post("/live/resume")
    async def live_resume(request: Request) -> dict[str, object]:
        """Resume the live session."""
        state_container: AppContainer = request.app.state.container
        state_container.live_tracker.resume()
        return _live_payload(state_container)

    @app.put("/live/profit")
    async def live_profit(body: ProfitUpdate, request: Request) -> dict[str, object]:
        """Replace the running profit."""
        state_container: AppContainer = request.app.state.container
        state_container.live_tracker.update_profit(body.profit)
        return _live_payload(state_container)

    @app.post("/live/stop")
    async def live_stop(request: Request) -> dict[str, object]:
        """Finalize the live session into the ledger."""
        state_container: AppContainer = request.app.state.container
        session = state_container.live_tracker.stop()
        state_container.live_display.reset()
        return {"session": session}

    @app.get("/sessions")
    async def list_sessions(
        request: Request, q: str = "", sort: str = "date", order: str = "desc"
    ) -> dict[str, object]:
        """Return sessions filtered by a search term."""
        state_container: AppContainer = request.app.state.container
        return {"sessions": state_container.ledger.list_sessions(q, sort, order)}

    @app.post("/sessions", status_code=201)
    async def create_session(
        body: SessionCreate, request: Request
    ) -> dict[str, object]:
        """Record a manually entered session."""
        state_container: AppContainer = request.app.state.container
        session = state_container.ledger.add_session(
            session_date=body.date,
            stakes=body.stakes,
            location=body.location,
            duration_hours=body.duration_hours,
            profit=body.profit,
            tags=body.tags,
            notes=body.notes,
            media=[_decode_upload(item) for item in body.media],
            media_category=body.media_category,
        )
        return {"session": session}

    @app.get("/sessions/{session_id}")
    async def get_session(session_id: UUID, request: Request) -> dict[str, object]:
        """Return a single session."""
        state_container: AppContainer = request.app.state.container
        return {"session": state_container.ledger.get(session_id)}

    @app.delete("/sessions/{session_id}")
    async def delete_session(session_id: UUID, request: Request) -> dict[str, str]:
        """Delete a session."""
        state_container: AppContainer = request.app.state.container
        state_container.ledger.delete_session(session_id)
        return {"status": "ok"}

    @app.patch("/sessions/{session_id}/notes")
    async def update_notes(
        session_id: UUID, body: NotesUpdate, request: Request
    ) -> dict[str, object]:
        """Replace a session's notes."""
        state_container: AppContainer = request.app.state.container
        session = state_container.ledger.update_notes(session_id, body.notes)
        return {"session": session}

    @app.get("/sessions/{session_id}/media")
    async def session_media_items(
        session_id: UUID, request: Request, category: MediaCategory | None = None
    ) -> dict[str, object]:
        """Return a session's attachments, optionally by category."""
        state_container: AppContainer = request.app.state.container
        return {"media": state_container.ledger.media_for(session_id, category)}

    @app.get("/sessions/{session_id}/prompt")
    async def session_prompt(session_id: UUID, request: Request) -> dict[str, object]:
        """Return an analysis prompt prefilled from a session."""
        state_container: AppContainer = request.app.state.container
        session = state_container.ledger.get(session_id)
        return {
            "prompt": build_session_prompt(session),
            "media": session_media(session),
        }

    @app.get("/stats")
    async def stats(request: Request) -> dict[str, object]:
        """Return bankroll, win rate, hourly rate and the profit series."""
        state_container: AppContainer = request.app.state.container
        return {"stats": state_container.ledger.stats()}

    @app.post("/analysis")
    async def analyze(body: AnalysisRequest, request: Request) -> dict[str, object]:
        """Submit a prompt, with optional media, to the analysis model."""
        state_container: AppContainer = request.app.state.container
        media = _decode_upload(body.media) if body.media else None
        result = await state_container.analysis_service.analyze(
            body.prompt,
            media,
            body.mode,
            pot_size=body.pot_size,
            venue=body.venue,
        )
        return {"result": result}

    @app.get("/analysis/history")
    async def analysis_history(
        request: Request, sort: str = "timestamp", order: str = "desc"
    ) -> dict[str, object]:
        """Return stored analyses."""
        state_container: AppContainer = request.app.state.container
        return {"history": state_container.analysis_history.sorted_items(sort, order)}

    @app.get("/sizing")
    async def sizing(
        pot: float, fraction: float | None = None
    ) -> dict[str, object]:
        """Return reference bet sizes for a pot."""
        return {
            "pot": pot,
            "sizes": standard_sizes(pot),
            "custom": size_for(pot, fraction) if fraction is not None else None,
        }

    return app


def _live_payload(container: AppContainer) -> dict[str, object]:
    tracker = container.live_tracker
    elapsed = tracker.elapsed_seconds()
    ticked = container.live_display.elapsed_seconds
    return {
        "state": tracker.state,
        "session": tracker.current(),
        "elapsed_seconds": elapsed,
        "ticked_seconds": ticked,
        "display": format_elapsed(ticked if tracker.ticking else elapsed),
    }


def _decode_upload(payload: MediaPayload) -> EncodedMedia:
    """Re-encode uploaded base64 or a data URL, detecting the MIME type when missing."""
    mime_type = payload.mime_type
    if payload.data.startswith("data:"):
        media = parse_data_url(payload.data)
        mime_type = mime_type or media.mime_type
    else:
        media = EncodedMedia(
            data=payload.data, mime_type=mime_type or DEFAULT_MIME_TYPE
        )
    return encode_media(decode_media(media), mime_type)
