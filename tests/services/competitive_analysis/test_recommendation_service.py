"""
Tests for RecommendationService — response validation, fallback and prompt.
"""

import asyncio
import json

import pytest
from unittest.mock import AsyncMock

from adspy.services.competitive_analysis.exceptions import RecommendationResponseError
from adspy.services.competitive_analysis.models import (
    AdClassification,
    AdCreative,
    BrandProfile,
    GapSet,
    HookType,
    MarketInsights,
    RecommendationPriority,
)
from adspy.services.competitive_analysis.recommendation_service import (
    RecommendationService,
    fallback_report,
)


def _response(**overrides):
    payload = {
        "whySubjectIsLosing": "Competitors lead with urgency offers.",
        "bestCompetitor": "Bugs Away",
        "winningCreativeFormat": "video",
        "recommendations": [
            {"priority": "HIGH", "action": "Add a limited-time offer", "example": "Bugs Away: 20% off",
             "implementation": "Launch one urgency ad this week"},
            {"priority": "medium", "action": "Show reviews", "example": "5-star rated",
             "implementation": "Add review count to copy"},
        ],
    }
    payload.update(overrides)
    return json.dumps(payload)


def _client(*responses):
    client = AsyncMock()
    client.generate_text.side_effect = list(responses)
    return client


class TestParseResponse:

    def setup_method(self):
        self.service = RecommendationService(AsyncMock())

    def test_valid_response(self):
        report = self.service.parse_response(_response())

        assert report.is_fallback is False
        assert report.narrative.why_subject_is_losing == "Competitors lead with urgency offers."
        assert report.narrative.best_competitor == "Bugs Away"
        assert report.narrative.winning_creative_format == "video"
        assert [r.priority for r in report.recommendations] == [
            RecommendationPriority.HIGH, RecommendationPriority.MEDIUM,
        ]

    def test_wrapped_in_fences(self):
        report = self.service.parse_response("```json\n" + _response() + "\n```")
        assert len(report.recommendations) == 2

    def test_malformed_recommendations_dropped(self):
        text = _response(recommendations=[
            {"priority": "urgent", "action": "x", "example": "y", "implementation": "z"},
            {"priority": "low", "action": "  ", "example": "y", "implementation": "z"},
            "not an object",
            {"priority": "low", "action": "Test video", "example": "A runs 3 videos", "implementation": "Film one"},
        ])
        report = self.service.parse_response(text)

        assert len(report.recommendations) == 1
        assert report.recommendations[0].action == "Test video"

    def test_no_valid_recommendations_raises(self):
        with pytest.raises(RecommendationResponseError):
            self.service.parse_response(_response(recommendations=[{"priority": "high"}]))

    def test_empty_recommendations_raises(self):
        with pytest.raises(RecommendationResponseError):
            self.service.parse_response(_response(recommendations=[]))

    def test_missing_narrative_raises(self):
        with pytest.raises(RecommendationResponseError):
            self.service.parse_response(_response(whySubjectIsLosing=""))

    def test_not_json_raises(self):
        with pytest.raises(RecommendationResponseError):
            self.service.parse_response("I think you should run more ads.")


class TestRecommend:

    @pytest.mark.asyncio
    async def test_returns_parsed_report(self):
        client = _client(_response())
        report = await RecommendationService(client).recommend("prompt")

        assert not report.is_fallback
        sent, = client.generate_text.await_args.args
        assert sent.endswith("prompt")
        assert client.generate_text.await_args.kwargs["temperature"] == RecommendationService.TEMPERATURE

    @pytest.mark.asyncio
    async def test_service_error_yields_fallback(self):
        report = await RecommendationService(_client(RuntimeError("quota"))).recommend("prompt")

        assert report.is_fallback
        assert len(report.recommendations) == 1
        assert report.recommendations[0].priority == RecommendationPriority.LOW

    @pytest.mark.asyncio
    async def test_malformed_response_yields_fallback(self):
        report = await RecommendationService(_client("{}")).recommend("prompt")
        assert report == fallback_report()

    @pytest.mark.asyncio
    async def test_timeout_yields_fallback(self):
        async def slow(prompt, temperature=0.4):
            await asyncio.sleep(1)
            return _response()

        client = AsyncMock()
        client.generate_text.side_effect = slow

        report = await RecommendationService(client, timeout_sec=0.01).recommend("prompt")
        assert report.is_fallback


class TestBuildPrompt:

    def test_describes_subject_competitors_and_gaps(self):
        subject = BrandProfile(name="Acme Pest", ad_count=2, hook_distribution={"Social Proof": 2})
        competitors = [
            BrandProfile(name="Bugs Away", ad_count=3, hook_distribution={"Discount/Urgency": 3},
                         offers_used=["20% off"]),
            BrandProfile(name="Empty Co", ad_count=0),
        ]
        gaps = GapSet(missing_hooks=["Discount/Urgency"], competitor_offers=["20% off"])
        market = MarketInsights(
            dominant_hook_type="Discount/Urgency", dominant_format="video", dominant_tone="Urgent",
            average_competitor_ad_count=2, most_common_cta="Call Now", most_common_trust_signal="None",
        )
        creative = AdCreative(id="1", brand_name="Acme Pest", text="Trusted by 500 families")
        samples = {"Acme Pest": [(creative, AdClassification(hook_type=HookType.SOCIAL_PROOF))]}

        prompt = RecommendationService(AsyncMock()).build_prompt(subject, competitors, gaps, market, samples)

        assert "**CLIENT: Acme Pest**" in prompt
        assert "**Bugs Away**" in prompt
        assert "Discount/Urgency (3)" in prompt
        assert "**Empty Co**\nNo ads retrieved." in prompt
        assert "Missing hooks: Discount/Urgency" in prompt
        assert "Competitor offers: 20% off" in prompt
        assert "Missing CTAs: None" in prompt
        assert "[Client Ad 1] Trusted by 500 families" in prompt
        assert "Dominant hook: Discount/Urgency" in prompt
        assert "whySubjectIsLosing" in prompt
