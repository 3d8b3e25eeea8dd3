"""
GeminiService - text generation using Google Gemini.

Handles all Gemini API interactions with intelligent rate limiting and retries.
Used by the creative classifier and the recommendation service, which only
need ``generate_text(prompt, temperature=...)``.
"""

import asyncio
import logging
import time
from typing import Optional

from google import genai
from google.genai import types

from ..core.config import Config

logger = logging.getLogger(__name__)


class GeminiService:
    """
    Service for Gemini AI API calls with intelligent rate limiting.

    Features:
    - Automatic rate limiting (configurable req/min)
    - Exponential backoff on rate limit errors
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        requests_per_minute: Optional[int] = None,
    ):
        """
        Initialize Gemini service.

        Args:
            api_key: Gemini API key (if None, uses Config.GEMINI_API_KEY)
            model: Gemini model to use (if None, uses Config.DEFAULT_MODEL)
            requests_per_minute: Rate limit (if None, uses Config.GEMINI_REQUESTS_PER_MINUTE)

        Raises:
            ValueError: If API key not found
        """
        self.api_key = api_key or Config.GEMINI_API_KEY
        if not self.api_key:
            raise ValueError("GEMINI_API_KEY not found in environment")

        self.model_name = model or Config.DEFAULT_MODEL
        self.client = genai.Client(api_key=self.api_key)

        # Rate limiting
        self._last_call_time = 0.0
        self._lock = asyncio.Lock()
        self.set_rate_limit(requests_per_minute or Config.GEMINI_REQUESTS_PER_MINUTE)

        logger.info(
            f"GeminiService initialized with model: {self.model_name}, "
            f"rate limit: {self._requests_per_minute} req/min"
        )

    def set_rate_limit(self, requests_per_minute: int) -> None:
        """
        Set rate limit for API calls.

        Args:
            requests_per_minute: Maximum requests per minute
        """
        self._requests_per_minute = max(1, requests_per_minute)
        self._min_delay = 60.0 / self._requests_per_minute
        logger.debug(f"Rate limit set to {self._requests_per_minute} req/min (delay: {self._min_delay:.1f}s)")

    async def generate_text(self, prompt: str, temperature: float = 0.2, max_retries: int = 3) -> str:
        """
        Generate text for a prompt.

        Args:
            prompt: Full prompt text
            temperature: Sampling temperature
            max_retries: Maximum retries on rate limit errors

        Returns:
            Response text (may be empty)

        Raises:
            Exception: If all retries fail or non-rate-limit error occurs
        """
        config = types.GenerateContentConfig(temperature=temperature)
        retry_count = 0

        while True:
            await self._rate_limit()
            try:
                response = await self.client.aio.models.generate_content(
                    model=self.model_name,
                    contents=prompt,
                    config=config,
                )
                return response.text or ""

            except Exception as e:
                if not _is_rate_limit_error(e):
                    logger.error(f"Gemini request failed: {type(e).__name__}: {e}")
                    raise

                retry_count += 1
                if retry_count > max_retries:
                    logger.error(f"Max retries exceeded for Gemini request ({self.model_name})")
                    raise Exception(f"Rate limit exceeded after {max_retries} retries: {e}") from e

                # Exponential backoff: 15s, 30s, 60s
                retry_delay = 15 * (2 ** (retry_count - 1))
                logger.warning(f"Rate limit hit. Retry {retry_count}/{max_retries} after {retry_delay}s...")
                await asyncio.sleep(retry_delay)

    async def _rate_limit(self) -> None:
        """Wait until the minimum delay since the previous call has elapsed."""
        async with self._lock:
            elapsed = time.monotonic() - self._last_call_time
            if self._last_call_time and elapsed < self._min_delay:
                wait = self._min_delay - elapsed
                logger.debug(f"Rate limiting: waiting {wait:.1f}s")
                await asyncio.sleep(wait)
            self._last_call_time = time.monotonic()


def _is_rate_limit_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in ("429", "quota", "rate limit", "resource_exhausted"))
