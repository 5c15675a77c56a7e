"""Models for hand analysis requests and results."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AnalysisMode(str, Enum):
    """Analysis profiles. They change the prompt and depth, never the schema."""

    STANDARD = "standard"
    EXTENDED_REASONING = "extended-reasoning"
    SIZING = "sizing-focused"
    VENUE = "venue-focused"


@dataclass(frozen=True)
class EncodedMedia:
    """Transport-safe media payload."""

    data: str
    mime_type: str


class AnalysisResponse(BaseModel):
    """Structured output returned by the analysis model."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    analysis: str = Field(min_length=1)
    strategic_tags: list[str] = Field(alias="strategicTags")
    sizing_advice: str | None = Field(default=None, alias="sizingAdvice")


@dataclass(frozen=True)
class AnalysisResult:
    """Result handed back to the caller after a successful analysis."""

    analysis_text: str
    strategic_tags: list[str]
    sizing_advice: str | None


@dataclass(frozen=True)
class AnalysisHistoryItem:
    """Stored record of one successful analysis."""

    id: str
    timestamp: datetime
    prompt: str
    response: str
    strategic_tags: tuple[str, ...] = ()
    sizing_advice: str | None = None
    media: EncodedMedia | None = None
