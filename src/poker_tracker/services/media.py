"""Media codec for attachments sent to storage and the analysis model."""

import base64
import binascii

from poker_tracker.domain.analysis import EncodedMedia
from poker_tracker.errors import InvalidArgumentError

DEFAULT_MIME_TYPE = "application/octet-stream"


def encode_media(data: bytes, mime_type: str | None = None) -> EncodedMedia:
    """Encode raw bytes as base64 text tagged with a MIME type."""
    resolved = mime_type or detect_mime_type(data)
    encoded = base64.b64encode(data).decode("ascii")
    return EncodedMedia(data=encoded, mime_type=resolved)


def decode_media(media: EncodedMedia) -> bytes:
    """Return the original bytes of an encoded attachment."""
    try:
        return base64.b64decode(media.data, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise InvalidArgumentError("Media payload is not valid base64") from exc


def to_data_url(media: EncodedMedia) -> str:
    """Render encoded media as a data URL."""
    return f"data:{media.mime_type};base64,{media.data}"


def parse_data_url(url: str) -> EncodedMedia:
    """Split a base64 data URL into its MIME type and payload."""
    header, sep, payload = url.partition(",")
    if not sep or not header.startswith("data:") or not header.endswith(";base64"):
        raise InvalidArgumentError("Expected a base64 data URL")
    mime_type = header[len("data:") : -len(";base64")] or DEFAULT_MIME_TYPE
    return EncodedMedia(data=payload, mime_type=mime_type)


def detect_mime_type(data: bytes) -> str:  # noqa: PLR0911
    """Infer a MIME type from common image and audio file signatures."""
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith((b"GIF87a", b"GIF89a")):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    if data[:4] == b"RIFF" and data[8:12] == b"WAVE":
        return "audio/wav"
    if data.startswith(b"OggS"):
        return "audio/ogg"
    if data.startswith(b"ID3") or data[:2] in {b"\xff\xfb", b"\xff\xf3"}:
        return "audio/mpeg"
    if data.startswith(b"\x1aE\xdf\xa3"):
        return "audio/webm"
    return DEFAULT_MIME_TYPE
