"""Two-layer decoding of Gemini responses into ExtractedData.

Layer 1 unwraps the candidates/content/parts envelope, layer 2 decodes the
JSON object the model wrote into the first part's text (optionally fenced in
Markdown code blocks). Either both layers succeed or decoding fails.
"""

import logging

from pydantic import ValidationError

from errors import EnvelopeDecodeError, PayloadDecodeError
from models import ExtractedData, GeminiResponse

logger = logging.getLogger(__name__)

FENCE_MARKERS = ("```json", "```")


def decode_envelope(raw: str) -> str:
    """Return the text of the first part of the first candidate."""
    try:
        envelope = GeminiResponse.model_validate_json(raw)
    except ValidationError as e:
        logger.warning("Response envelope mismatch: %s", raw[:200])
        raise EnvelopeDecodeError(f"Unexpected response structure: {e.error_count()} error(s)") from e

    if not envelope.candidates:
        raise EnvelopeDecodeError("Response contains no candidates")

    parts = envelope.candidates[0].content.parts
    if not parts:
        raise EnvelopeDecodeError("First candidate contains no parts")

    return parts[0].text


def strip_fences(text: str) -> str:
    """Trim whitespace and drop every Markdown code fence marker."""
    cleaned = text.strip()
    for marker in FENCE_MARKERS:
        cleaned = cleaned.replace(marker, "")
    return cleaned


def decode_payload(text: str) -> ExtractedData:
    """Decode the model's (possibly fenced) JSON object. Unknown keys are ignored."""
    cleaned = strip_fences(text)
    try:
        return ExtractedData.model_validate_json(cleaned)
    except ValidationError as e:
        logger.warning("Could not decode extraction payload: %s", cleaned[:200])
        raise PayloadDecodeError(f"Invalid extraction payload: {e.errors()[0]['msg']}") from e


def decode_response(raw: str) -> ExtractedData:
    """Decode a raw generateContent response body into an extraction record."""
    return decode_payload(decode_envelope(raw))
