"""
Handwriting recognition via the Gemini generateContent REST API.

The recognizer contract: recognize(png) returns the
characters it read, or an empty string when it read nothing or the call
failed. Callers cannot tell the two apart.
"""
import asyncio
import base64
import logging
from typing import Optional, Protocol

import aiohttp

from hana_vocab.config import Config

logger = logging.getLogger(__name__)

PROMPT = (
    "Identify the Korean character(s) or word written in this image. "
    "Return ONLY the plain text characters. "
    "If nothing is identifiable, return an empty string."
)


class Recognizer(Protocol):
    async def recognize(self, image_png: bytes) -> str: ...

    async def close(self) -> None: ...


class NullRecognizer:
    """Recognizer used when no API key is configured; reads nothing."""

    async def recognize(self, image_png: bytes) -> str:
        return ""

    async def close(self) -> None:
        return None


def extract_text(data: dict) -> str:
    """Pull the first text part out of a generateContent response."""
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    texts = [part["text"] for part in parts if isinstance(part, dict) and part.get("text")]
    return "".join(texts).strip()


class GeminiRecognizer:
    """Single-attempt Gemini vision call. Never raises."""

    BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.recognizer_timeout)
            self._session = aiohttp.ClientSession(timeout=timeout)
        return self._session

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    def build_payload(self, image_png: bytes) -> dict:
        return {
            "contents": [{
                "parts": [
                    {"inline_data": {
                        "mime_type": "image/png",
                        "data": base64.b64encode(image_png).decode("ascii"),
                    }},
                    {"text": PROMPT},
                ],
            }],
            "generationConfig": {"temperature": 0, "topP": 1},
        }

    async def recognize(self, image_png: bytes) -> str:
        if not self.config.gemini_api_key:
            logger.warning("No Gemini API key configured; handwriting cannot be recognized")
            return ""
        url = f"{self.BASE_URL}/models/{self.config.recognizer_model}:generateContent"
        headers = {"x-goog-api-key": self.config.gemini_api_key}
        try:
            session = await self._get_session()
            async with session.post(url, headers=headers, json=self.build_payload(image_png)) as response:
                if response.status != 200:
                    error = await response.text()
                    logger.error("Recognition failed with HTTP %s: %s", response.status, error[:200])
                    return ""
                data = await response.json()
        except asyncio.TimeoutError:
            logger.error("Recognition timed out after %ss", self.config.recognizer_timeout)
            return ""
        except (aiohttp.ClientError, ValueError) as e:
            logger.error("Recognition failed: %s", e)
            return ""
        return extract_text(data)
