"""
Image Generation Service

Pass-through to an OpenAI-compatible images endpoint (OpenRouter by default).
Prompts and responses are not inspected beyond extracting the image URL.
"""
import logging
from typing import Optional

import httpx

from app.config import settings
from app.core.errors import AppError, ErrorKind

logger = logging.getLogger("uvicorn.error")


class ImageGenerationService:
    """Image generation via an OpenAI-compatible API"""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.api_key = settings.openai_api_key
        self.model = settings.ai_image_model
        self.api_url = f"{settings.ai_api_base.rstrip('/')}/images/generations"
        self.timeout = settings.ai_timeout_seconds
        self._transport = transport

    def is_available(self) -> bool:
        """Check if API key is configured"""
        return bool(self.api_key)

    async def generate(self, prompt: str, size: str = "1024x1024") -> str:
        """Return the URL of one generated image."""
        if not self.is_available():
            raise AppError(ErrorKind.UPSTREAM_ERROR, "Image generation is not configured")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = {"model": self.model, "prompt": prompt, "n": 1, "size": size}
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                resp = await client.post(self.api_url, headers=headers, json=payload)
                resp.raise_for_status()
                result = resp.json()
            return result["data"][0]["url"]
        except httpx.HTTPStatusError as e:
            logger.error("[image] upstream status=%s body=%s", e.response.status_code, e.response.text)
            raise AppError(ErrorKind.UPSTREAM_ERROR, "Image generation failed")
        except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
            logger.error("[image] generation failed: %r", e)
            raise AppError(ErrorKind.UPSTREAM_ERROR, "Image generation failed")
