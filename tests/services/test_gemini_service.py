"""
Tests for GeminiService — text generation, rate-limit retries and errors.
"""

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from adspy.services.gemini_service import GeminiService


def _service(*responses):
    service = GeminiService(api_key="test-key", model="gemini-test", requests_per_minute=6000)
    service.client = MagicMock()
    service.client.aio.models.generate_content = AsyncMock(side_effect=list(responses))
    return service


class TestGeminiService:

    def test_requires_api_key(self):
        with patch("adspy.services.gemini_service.Config.GEMINI_API_KEY", ""):
            with pytest.raises(ValueError, match="GEMINI_API_KEY"):
                GeminiService()

    @pytest.mark.asyncio
    async def test_generate_text(self):
        service = _service(MagicMock(text="[]"))

        assert await service.generate_text("classify", temperature=0.3) == "[]"

        kwargs = service.client.aio.models.generate_content.await_args.kwargs
        assert kwargs["model"] == "gemini-test"
        assert kwargs["contents"] == "classify"
        assert kwargs["config"].temperature == 0.3

    @pytest.mark.asyncio
    async def test_empty_text_becomes_empty_string(self):
        service = _service(MagicMock(text=None))
        assert await service.generate_text("x") == ""

    @pytest.mark.asyncio
    async def test_retries_rate_limit_errors(self):
        service = _service(Exception("429 RESOURCE_EXHAUSTED"), MagicMock(text="ok"))

        with patch("adspy.services.gemini_service.asyncio.sleep", new=AsyncMock()) as sleep:
            assert await service.generate_text("x") == "ok"

        sleep.assert_any_await(15)
        assert service.client.aio.models.generate_content.await_count == 2

    @pytest.mark.asyncio
    async def test_gives_up_after_max_retries(self):
        service = _service(*[Exception("quota exceeded")] * 3)

        with patch("adspy.services.gemini_service.asyncio.sleep", new=AsyncMock()):
            with pytest.raises(Exception, match="Rate limit exceeded after 2 retries"):
                await service.generate_text("x", max_retries=2)

    @pytest.mark.asyncio
    async def test_other_errors_not_retried(self):
        service = _service(ValueError("bad request"))

        with pytest.raises(ValueError, match="bad request"):
            await service.generate_text("x")
        assert service.client.aio.models.generate_content.await_count == 1
