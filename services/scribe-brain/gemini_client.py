"""Async HTTP client for the Gemini multimodal generateContent endpoint.

One outbound call per extraction, no retry. Failures are raised as
TransportError so the pipeline can report them as a failed calling stage.
"""

import logging

import httpx

from config import settings
from errors import TransportError
from normalizer import JPEG_MIME_TYPE

logger = logging.getLogger(__name__)


def build_request_body(prompt: str, image_b64: str, mime_type: str = JPEG_MIME_TYPE) -> dict:
    """One content with two parts: the compiled prompt, then the inline image."""
    return {
        "contents": [
            {
                "parts": [
                    {"text": prompt},
                    {"inline_data": {"mime_type": mime_type, "data": image_b64}},
                ]
            }
        ]
    }


class GeminiClient:
    """Thin async wrapper around httpx for generateContent requests."""

    def __init__(
        self,
        api_key: str,
        base_url: str | None = None,
        model: str | None = None,
        timeout: int | None = None,
        connect_timeout: int | None = None,
    ):
        self._api_key = api_key
        self._base_url = (base_url or settings.GEMINI_BASE_URL).rstrip("/")
        self._model = model or settings.GEMINI_MODEL

        read_timeout = timeout if timeout is not None else settings.GEMINI_TIMEOUT_SECONDS
        conn_timeout = connect_timeout if connect_timeout is not None else settings.GEMINI_CONNECT_TIMEOUT

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(
                connect=float(conn_timeout),
                read=float(read_timeout),
                write=30.0,
                pool=30.0,
            ),
        )

    @property
    def model(self) -> str:
        return self._model

    async def aclose(self):
        await self._client.aclose()

    async def generate(self, prompt: str, image_b64: str, mime_type: str = JPEG_MIME_TYPE) -> str:
        """Send prompt and image, returning the raw response body for decoding."""
        payload = build_request_body(prompt, image_b64, mime_type)

        try:
            resp = await self._client.post(
                f"/models/{self._model}:generateContent",
                params={"key": self._api_key},
                json=payload,
            )
        except httpx.TimeoutException as e:
            logger.warning("Gemini request timed out: %s", type(e).__name__)
            raise TransportError(f"AI service timed out: {type(e).__name__}") from e
        except httpx.HTTPError as e:
            # str(e) may embed the request URL and with it the key
            logger.warning("Gemini request failed: %s", type(e).__name__)
            raise TransportError(f"Network Error: {type(e).__name__}") from e

        if resp.status_code != 200:
            detail = _error_detail(resp)
            logger.error("Gemini returned %d: %s", resp.status_code, detail)
            raise TransportError(detail, status_code=resp.status_code)

        if not resp.content:
            raise TransportError("AI service returned an empty response", status_code=resp.status_code)

        logger.info("Gemini responded with %d bytes", len(resp.content))
        return resp.text


def _error_detail(resp: httpx.Response) -> str:
    """Best-effort message from a Google API error body."""
    try:
        message = resp.json().get("error", {}).get("message")
    except (ValueError, AttributeError):
        message = None
    return message or f"HTTP {resp.status_code}"
