"""Remote vision captioning turned into filename-safe text."""

import base64
import logging
import re
from typing import Optional

import httpx

logger = logging.getLogger(__name__)

CAPTION_PROMPT = (
    "Analyze this image in extreme detail. Provide a very long, descriptive, and unique "
    "title (up to 200 characters) that captures the colors, subjects, mood, and background. "
    "Use hyphens (-) instead of spaces. The output should be a single continuous string "
    "safe for a filename. Do not provide any other text."
)

# Used when the model answers but returns no text.
PLACEHOLDER_CAPTION = "high-fidelity-image-description"

MAX_CAPTION_LENGTH = 190

_WHITESPACE = re.compile(r"\s+")
_UNSAFE = re.compile(r"[^a-z0-9-]")


class CaptionFailure(Exception):
    """The captioning call failed or returned unusable content."""


def sanitize_caption(text: str) -> str:
    """Lower-case, hyphenate whitespace, drop unsafe characters, truncate."""
    cleaned = _WHITESPACE.sub("-", text.strip().lower())
    cleaned = _UNSAFE.sub("", cleaned)
    return cleaned[:MAX_CAPTION_LENGTH]


def extract_text(data) -> str:
    """Pull the text of the first candidate out of a generateContent response.

    Args:
        data: Decoded JSON body

    Returns:
        The concatenated text parts, possibly empty

    Raises:
        CaptionFailure: If the body does not look like a generateContent response
    """
    if not isinstance(data, dict):
        raise CaptionFailure("Malformed response: not an object")

    # Prompt-level blocks come back without candidates
    candidates = data.get("candidates", [])
    if not isinstance(candidates, list):
        raise CaptionFailure("Malformed response: bad candidates")

    if not candidates:
        return ""

    candidate = candidates[0]
    if not isinstance(candidate, dict):
        raise CaptionFailure("Malformed response: bad candidate")

    parts = (candidate.get("content") or {}).get("parts") or []
    return "".join(part.get("text") or "" for part in parts if isinstance(part, dict))


class VisionCaptioner:
    """Captions images through the Gemini generateContent REST API."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-3-flash-preview",
        api_base: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout: Optional[float] = 120.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.api_base = api_base.rstrip("/")
        self._client = client or httpx.AsyncClient(timeout=timeout)

    @property
    def endpoint(self) -> str:
        return f"{self.api_base}/models/{self.model}:generateContent"

    def build_request(self, content: bytes, content_type: str) -> dict:
        """Build the JSON body for one image."""
        return {
            "contents": [
                {
                    "parts": [
                        {"text": CAPTION_PROMPT},
                        {
                            "inline_data": {
                                "mime_type": content_type,
                                "data": base64.b64encode(content).decode("ascii"),
                            }
                        },
                    ]
                }
            ]
        }

    async def caption(self, content: bytes, content_type: str) -> str:
        """Caption one image.

        Args:
            content: Raw image bytes
            content_type: Declared media type, must be image/*

        Returns:
            Sanitized caption, at most 190 characters of [a-z0-9-]

        Raises:
            CaptionFailure: On transport errors, bad status, malformed or unusable responses
        """
        if not content_type.lower().startswith("image/"):
            raise CaptionFailure(f"Not an image: {content_type}")

        headers = {"x-goog-api-key": self.api_key} if self.api_key else {}
        logger.debug(f"Captioning {len(content)} bytes ({content_type}) with {self.model}")

        try:
            response = await self._client.post(
                self.endpoint,
                json=self.build_request(content, content_type),
                headers=headers,
            )
            response.raise_for_status()
            data = response.json()
        except httpx.HTTPStatusError as e:
            raise CaptionFailure(f"Captioning API returned {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise CaptionFailure(f"Captioning request failed: {e!r}") from e
        except ValueError as e:
            raise CaptionFailure("Malformed response: invalid JSON") from e

        raw_text = extract_text(data) or PLACEHOLDER_CAPTION
        caption = sanitize_caption(raw_text)
        if not caption:
            raise CaptionFailure(f"Unusable caption: {raw_text[:80]!r}")
        return caption

    async def aclose(self):
        await self._client.aclose()
