"""Domain models for completed poker sessions."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from uuid import UUID


class MediaCategory(str, Enum):
    """Fixed set of categories an attachment can be filed under."""

    HAND_SCREENSHOT = "Hand Screenshot"
    TABLE_VIEW = "Table View"
    PLAYER_CAM = "Player Cam"
    AUDIO_NOTE = "Audio Note"


@dataclass(frozen=True)
class MediaAttachment:
    """Encoded media stored alongside a session."""

    id: str
    encoded_data: str
    mime_type: str
    category: MediaCategory


@dataclass(frozen=True)
class CompletedSession:
    """A finished session recorded in the ledger."""

    id: UUID
    date: date
    stakes: str
    location: str
    duration_hours: float
    profit: float
    tags: tuple[str, ...] = ()
    notes: str | None = None
    media_items: tuple[MediaAttachment, ...] = field(default_factory=tuple)
