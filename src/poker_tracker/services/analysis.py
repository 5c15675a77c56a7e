"""Hand and session analysis through a structured-output model."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from uuid import uuid4

from pydantic import ValidationError

from poker_tracker.domain.analysis import (
    AnalysisHistoryItem,
    AnalysisMode,
    AnalysisResponse,
    AnalysisResult,
    EncodedMedia,
)
from poker_tracker.domain.sessions import CompletedSession
from poker_tracker.errors import AnalysisError
from poker_tracker.services.history import AnalysisHistory
from poker_tracker.services.sizing import standard_sizes

DEFAULT_PROMPT = "Analyze this situation."

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "analysis": {"type": "string"},
        "strategicTags": {
            "type": "array",
            "items": {"type": "string"},
            "description": (
                "Detailed tags for strategy and table dynamics, e.g. Hero call, "
                "Value bet, Bluff, Semi-bluff, hero position (BTN, CO), table image."
            ),
        },
        "sizingAdvice": {"anyOf": [{"type": "string"}, {"type": "null"}]},
    },
    "required": ["analysis", "strategicTags", "sizingAdvice"],
    "additionalProperties": False,
}

SYSTEM_INSTRUCTIONS = """You are a world-class GTO poker coach and data scientist.
Examine the provided hand history or session notes.
Critical tasks:
1. Map all player actions to specific positions (BTN, SB, BB, UTG, HJ, CO).
2. Identify strategic markers: Bluff, Value Bet, Hero Call, Inductive Bet,
   Thin Value, Check-Raise.
3. Look for sizing tells or GTO deviations.
4. If an image is provided, parse the board cards and stack sizes.
Keep the response professional, theoretically grounded and actionable."""

_logger = logging.getLogger(__name__)


class AnalysisClient(Protocol):
    """Interface for the structured-output analysis model."""

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
        """Return the decoded JSON payload, raising AnalysisError on failure."""


def _local_now() -> datetime:
    return datetime.now().astimezone()


@dataclass
class AnalysisService:
    """Builds analysis requests, validates replies and records history."""

    client: AnalysisClient
    history: AnalysisHistory
    model: str
    reasoning_effort: str | None
    extended_reasoning_effort: str
    store: bool
    default_pot_size: float = 100.0
    clock: Callable[[], datetime] = _local_now

    async def analyze(
        self,
        prompt_text: str,
        media: EncodedMedia | None = None,
        mode: AnalysisMode = AnalysisMode.STANDARD,
        *,
        pot_size: float | None = None,
        venue: str | None = None,
    ) -> AnalysisResult:
        """Run one analysis and prepend it to history on success."""
        final_prompt = build_prompt(
            prompt_text,
            mode,
            pot_size=self.default_pot_size if pot_size is None else pot_size,
            venue=venue,
        )
        effort = (
            self.extended_reasoning_effort
            if mode is AnalysisMode.EXTENDED_REASONING
            else self.reasoning_effort
        )
        raw = await self.client.analyze(
            model=self.model,
            reasoning_effort=effort,
            store=self.store,
            instructions=SYSTEM_INSTRUCTIONS,
            prompt=final_prompt,
            media=media,
            schema=ANALYSIS_SCHEMA,
        )
        try:
            parsed = AnalysisResponse.model_validate(raw)
        except ValidationError as exc:
            _logger.warning("Analysis response rejected: %s", exc.error_count())
            raise AnalysisError(
                "The analysis model returned a response in an unexpected format."
            ) from exc

        item = AnalysisHistoryItem(
            id=f"analysis-{uuid4().hex}",
            timestamp=self.clock(),
            prompt=prompt_text,
            response=parsed.analysis,
            strategic_tags=tuple(parsed.strategic_tags),
            sizing_advice=parsed.sizing_advice or None,
            media=media,
        )
        self.history.prepend(item)
        _logger.info(
            "Analysis complete: mode=%s tags=%s", mode.value, len(parsed.strategic_tags)
        )
        return AnalysisResult(
            analysis_text=parsed.analysis,
            strategic_tags=list(parsed.strategic_tags),
            sizing_advice=parsed.sizing_advice or None,
        )


def build_prompt(
    prompt_text: str,
    mode: AnalysisMode,
    *,
    pot_size: float,
    venue: str | None = None,
) -> str:
    """Assemble the final prompt for a profile."""
    prompt = prompt_text if prompt_text.strip() else DEFAULT_PROMPT
    if mode is AnalysisMode.SIZING:
        sizes = standard_sizes(pot_size)
        reference = ", ".join(f"{label}: {amount}" for label, amount in sizes.items())
        prompt += (
            "\n\n**ADDITIONAL REQUEST: SIZING OPTIMIZATION**\n"
            f"Current Pot Size: {pot_size:g}. Reference sizes: {reference}.\n"
            "Provide specific sizing suggestions for continuation bets, value bets "
            "and bluffs based on this pot. Suggest exact numbers for 1/3, 1/2, 2/3, "
            "full pot and overbets where theoretically appropriate."
        )
    elif mode is AnalysisMode.VENUE:
        where = venue.strip() if venue and venue.strip() else "the venue in question"
        prompt += (
            "\n\n**ADDITIONAL REQUEST: VENUE CONTEXT**\n"
            f"Venue: {where}.\n"
            "Describe the typical player pool and game dynamics at this venue and "
            "how the recommended lines should adjust for them."
        )
    return prompt


def build_session_prompt(session: CompletedSession) -> str:
    """Turn a completed session into an analysis request."""
    tags_line = f"[Tags: {', '.join(session.tags)}]\n" if session.tags else ""
    sign = "+" if session.profit >= 0 else "-"
    return (
        f"{tags_line}**Session Analysis Request**\n"
        f"Date: {session.date.isoformat()}\n"
        f"Location: {session.location}\n"
        f"Stakes: {session.stakes}\n"
        f"Profit/Loss: {sign}${abs(session.profit):g}\n"
        f"Duration: {session.duration_hours:g} hours\n\n"
        "**Notes/History:**\n"
        f"{session.notes or 'No notes provided.'}\n\n"
        "*Analyze my performance. Focus on GTO adherence.*"
    )


def session_media(session: CompletedSession) -> EncodedMedia | None:
    """Return the first attachment of a session as analysis media."""
    if not session.media_items:
        return None
    first = session.media_items[0]
    return EncodedMedia(data=first.encoded_data, mime_type=first.mime_type)
