"""Pydantic models for API request payloads."""

from datetime import date

from pydantic import BaseModel, Field

from poker_tracker.domain.analysis import AnalysisMode
from poker_tracker.domain.sessions import MediaCategory


class MediaPayload(BaseModel):
    """Base64 media, or a base64 data URL, sent by the client."""

    data: str
    mime_type: str | None = None


class StartLiveRequest(BaseModel):
    """Start a live session."""

    stakes: str
    location: str


class ProfitUpdate(BaseModel):
    """Replace the running profit of the live session."""

    profit: float


class SessionCreate(BaseModel):
    """Manual session entry."""

    date: date
    stakes: str
    location: str
    duration_hours: float = Field(ge=0)
    profit: float
    tags: list[str] = Field(default_factory=list)
    notes: str | None = None
    media: list[MediaPayload] = Field(default_factory=list)
    media_category: MediaCategory = MediaCategory.HAND_SCREENSHOT


class NotesUpdate(BaseModel):
    """Replace a session's notes."""

    notes: str | None = None


class AnalysisRequest(BaseModel):
    """Submit a hand history or session notes for analysis."""

    prompt: str = ""
    media: MediaPayload | None = None
    mode: AnalysisMode = AnalysisMode.STANDARD
    pot_size: float | None = None
    venue: str | None = None
