"""RecommendationService — strategic recommendations from the computed gaps.

Builds one prompt describing the subject, each competitor and the gap set,
calls the text-generation client once, and validates the JSON it returns.
Any failure (transport, timeout, malformed or empty response) yields a
single low-priority fallback recommendation instead of an error.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from pydantic import ValidationError

from .exceptions import RecommendationResponseError
from .helpers import extract_json_object
from .models import (
    AdClassification,
    AdCreative,
    BrandProfile,
    GapSet,
    MarketInsights,
    Recommendation,
    RecommendationPriority,
    RecommendationReport,
    StrategyNarrative,
)

logger = logging.getLogger(__name__)

SUBJECT_SAMPLE_ADS = 3
COMPETITOR_SAMPLE_ADS = 2

SYSTEM_PREAMBLE = (
    "You are an Elite Media Buyer and competitive intelligence expert. Analyze competitor "
    "strategies and provide actionable recommendations. Always respond with valid JSON only, "
    "no markdown formatting."
)

RESPONSE_INSTRUCTIONS = """**DELIVER:**
1. Why is the client losing? (2-3 sentences)
2. Which competitor has the best ads and why?
3. 3 prioritized recommendations — each must have a specific action, real example from competitor ads, and immediate implementation step.

Return ONLY valid JSON, no markdown fences:
{
  "whySubjectIsLosing": "...",
  "bestCompetitor": "...",
  "winningCreativeFormat": "video|image",
  "recommendations": [
    {
      "priority": "high|medium|low",
      "action": "...",
      "example": "...",
      "implementation": "..."
    }
  ]
}"""

SampleAds = Sequence[Tuple[AdCreative, Optional[AdClassification]]]


def fallback_report() -> RecommendationReport:
    """Single low-confidence recommendation used when generation fails."""
    return RecommendationReport(
        narrative=StrategyNarrative(
            why_subject_is_losing="Analysis failed - please review competitor ads manually.",
            best_competitor="Unable to determine",
            winning_creative_format=None,
        ),
        recommendations=[
            Recommendation(
                priority=RecommendationPriority.LOW,
                action="Review competitor ads manually",
                example="Manual analysis required",
                implementation="Conduct manual competitive audit",
            )
        ],
        is_fallback=True,
    )


class RecommendationService:
    """Generates the narrative + ranked recommendations for an analysis."""

    TEMPERATURE = 0.4

    def __init__(self, client, timeout_sec: float = 120.0):
        """
        Args:
            client: Object exposing ``async generate_text(prompt, temperature=...)``.
            timeout_sec: Deadline for the single generation call.
        """
        self.client = client
        self.timeout_sec = timeout_sec

    async def recommend(self, prompt: str) -> RecommendationReport:
        """Request recommendations for a prepared prompt. Never raises."""
        try:
            text = await asyncio.wait_for(
                self.client.generate_text(f"{SYSTEM_PREAMBLE}\n\n{prompt}", temperature=self.TEMPERATURE),
                timeout=self.timeout_sec,
            )
            report = self.parse_response(text)
        except Exception as e:
            logger.error(f"Recommendation generation failed, using fallback: {type(e).__name__}: {e}")
            return fallback_report()

        logger.info(f"Generated {len(report.recommendations)} recommendations")
        return report

    def parse_response(self, text: Optional[str]) -> RecommendationReport:
        """Validate a raw recommendation response.

        Individual malformed recommendations are dropped; the response is
        rejected only when the narrative is missing or nothing valid remains.

        Raises:
            RecommendationResponseError: If the response cannot be accepted.
        """
        try:
            data = extract_json_object(text)
        except ValueError as e:
            raise RecommendationResponseError(str(e)) from e

        why = data.get("whySubjectIsLosing")
        if not isinstance(why, str) or not why.strip():
            raise RecommendationResponseError("Response has no whySubjectIsLosing narrative")

        raw_recommendations = data.get("recommendations")
        if not isinstance(raw_recommendations, list):
            raise RecommendationResponseError("Response has no recommendations array")

        recommendations: List[Recommendation] = []
        for raw in raw_recommendations:
            try:
                recommendations.append(Recommendation.model_validate(raw))
            except ValidationError as e:
                logger.warning(f"Dropping malformed recommendation: {e.error_count()} errors")

        if not recommendations:
            raise RecommendationResponseError("Response contained no valid recommendations")

        return RecommendationReport(
            narrative=StrategyNarrative(
                why_subject_is_losing=why.strip(),
                best_competitor=_text(data.get("bestCompetitor")),
                winning_creative_format=_text(data.get("winningCreativeFormat")) or None,
            ),
            recommendations=recommendations,
        )

    # =========================================================================
    # Prompt
    # =========================================================================

    def build_prompt(
        self,
        subject: BrandProfile,
        competitors: Sequence[BrandProfile],
        gaps: GapSet,
        market_insights: Optional[MarketInsights] = None,
        samples: Optional[Mapping[str, SampleAds]] = None,
    ) -> str:
        """Describe subject, competitors and gaps for the recommendation service.

        Args:
            subject: Subject brand profile.
            competitors: All competitor profiles (empty ones included).
            gaps: Computed gap set.
            market_insights: Optional market snapshot.
            samples: Optional brand name -> [(creative, classification)] sample ads.
        """
        samples = samples or {}
        parts = [
            "Analyze why the client is losing market share and give 3 razor-sharp recommendations.",
            "",
            f"**CLIENT: {subject.name}**",
            _profile_summary(subject),
        ]
        for i, (creative, classification) in enumerate(samples.get(subject.name, [])[:SUBJECT_SAMPLE_ADS], start=1):
            parts.append(_sample_block(f"Client Ad {i}", creative, classification, 300))

        parts += ["", "**COMPETITORS**"]
        for competitor in competitors:
            parts += ["", f"**{competitor.name}**"]
            if competitor.ad_count == 0:
                parts.append("No ads retrieved.")
                continue
            parts.append(_profile_summary(competitor))
            for i, (creative, classification) in enumerate(
                samples.get(competitor.name, [])[:COMPETITOR_SAMPLE_ADS], start=1
            ):
                parts.append(_sample_block(f"Ad {i}", creative, classification, 200))

        parts += [
            "",
            "**GAPS IDENTIFIED:**",
            f"Missing hooks: {_join(gaps.missing_hooks)}",
            f"Missing CTAs: {_join(gaps.missing_ctas)}",
            f"Missing trust signals: {_join(gaps.missing_trust_signals)}",
            f"Competitor offers: {_join(gaps.competitor_offers)}",
            f"Tone gaps: {_join(gaps.tone_gaps)}",
            f"Underutilized formats: {_join(gaps.underutilized_formats)}",
            f"Competitors running more ads: {_join(gaps.winning_competitors)}",
        ]

        if market_insights is not None:
            parts += [
                "",
                "**MARKET PATTERNS:**",
                f"Dominant hook: {market_insights.dominant_hook_type} | "
                f"Format: {market_insights.dominant_format} | Tone: {market_insights.dominant_tone}",
                f"Most common CTA: {market_insights.most_common_cta} | "
                f"Trust signal: {market_insights.most_common_trust_signal} | "
                f"Avg competitor ads: {market_insights.average_competitor_ad_count}",
            ]

        parts += ["", RESPONSE_INSTRUCTIONS]
        return "\n".join(parts)


def _profile_summary(profile: BrandProfile) -> str:
    return (
        f"Ads: {profile.ad_count} | Hooks: {_counts(profile.hook_distribution)} | "
        f"Tones: {_counts(profile.tone_distribution)} | CTAs: {_counts(profile.cta_distribution)}\n"
        f"Formats: video {profile.format_distribution.video}, image {profile.format_distribution.image}\n"
        f"Offers: {_join(profile.offers_used)} | Trust signals: {_join(profile.trust_signals_used)}\n"
        f"Pain points: {_join(profile.pain_points_addressed)} | USPs: {_join(profile.usps)}"
    )


def _sample_block(
    label: str,
    creative: AdCreative,
    classification: Optional[AdClassification],
    max_chars: int,
) -> str:
    text = (creative.text or "")[:max_chars]
    if classification is None:
        return f"[{label}] {text}"
    return (
        f"[{label}] {text}\n"
        f"  Hook: {classification.hook_type.value} | Tone: {classification.tone.value} | "
        f"CTA: {classification.cta} | Offer: {classification.offer or 'None'} | "
        f"Trust: {_join(classification.trust_signals)}"
    )


def _counts(counts: Dict[str, int]) -> str:
    if not counts:
        return "None"
    ranked = sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
    return ", ".join(f"{key} ({count})" for key, count in ranked)


def _join(values: Sequence[str]) -> str:
    return ", ".join(values) if values else "None"


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""
