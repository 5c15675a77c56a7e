"""OpenAI Responses API client for hand analysis."""

import json
from dataclasses import dataclass

from openai import AsyncOpenAI, OpenAIError

from poker_tracker.domain.analysis import EncodedMedia
from poker_tracker.errors import AnalysisError
from poker_tracker.services.analysis import AnalysisClient
from poker_tracker.services.media import to_data_url


@dataclass
class OpenAIAnalysisClient(AnalysisClient):
    """Analysis client backed by OpenAI Responses API."""

    client: AsyncOpenAI

    @classmethod
    def create(cls, api_key: str) -> "OpenAIAnalysisClient":
        """Create an OpenAI analysis client."""
        return cls(client=AsyncOpenAI(api_key=api_key))

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
        """Call OpenAI Responses API with structured outputs."""
        content: list[dict[str, object]] = []
        if media is not None:
            content.append(_media_part(media))
        content.append({"type": "input_text", "text": prompt})
        request_payload: dict[str, object] = {
            "model": model,
            "instructions": instructions,
            "input": [{"role": "user", "content": content}],
            "text": {
                "format": {
                    "type": "json_schema",
                    "name": "hand_analysis",
                    "strict": True,
                    "schema": schema,
                }
            },
            "store": store,
        }
        if reasoning_effort:
            request_payload["reasoning"] = {"effort": reasoning_effort}

        try:
            response = await self.client.responses.create(**request_payload)
        except OpenAIError as exc:
            raise AnalysisError(f"Analysis request failed: {exc}") from exc
        output_text = response.output_text
        if not output_text:
            raise AnalysisError("OpenAI returned an empty response")
        try:
            return json.loads(output_text)
        except json.JSONDecodeError as exc:
            raise AnalysisError("OpenAI returned a response that is not JSON") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.client.close()


def _media_part(media: EncodedMedia) -> dict[str, object]:
    if media.mime_type.startswith("image/"):
        return {"type": "input_image", "image_url": to_data_url(media)}
    return {
        "type": "input_file",
        "filename": "attachment",
        "file_data": to_data_url(media),
    }
