"""GapAnalyzer — consensus gaps between the subject and its competitors.

A gap is something a consensus of competitors does that the subject does
not. Each category is computed independently:

- missing_hooks: hook used by >= 2 competitors, zero subject ads
- missing_ctas / missing_trust_signals / tone_gaps: normalized value seen
  in >= 2 distinct competitors, absent from the subject's set
- underutilized_formats: competitor average share > 20% and subject share
  below half of that average
- winning_competitors: competitors running more ads than the subject
- competitor_offers: every distinct competitor offer (no threshold)
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Sequence

from .helpers import dedupe, normalize_key
from .models import BrandProfile, CreativeFormat, GapSet

logger = logging.getLogger(__name__)


class GapAnalyzer:
    """Computes the GapSet for one subject against its competitors."""

    def __init__(
        self,
        consensus: int = 2,
        format_share_threshold: float = 0.2,
        format_underuse_ratio: float = 0.5,
    ):
        self.consensus = consensus
        self.format_share_threshold = format_share_threshold
        self.format_underuse_ratio = format_underuse_ratio

    def compute_gaps(self, subject: BrandProfile, competitors: Sequence[BrandProfile]) -> GapSet:
        gaps = GapSet(
            missing_hooks=self.hook_gaps(subject, competitors),
            underutilized_formats=self.format_gaps(subject, competitors),
            winning_competitors=[c.name for c in competitors if c.ad_count > subject.ad_count],
            missing_ctas=self.string_gaps(
                subject.cta_distribution.keys(),
                [c.cta_distribution.keys() for c in competitors],
            ),
            missing_trust_signals=self.string_gaps(
                subject.trust_signals_used,
                [c.trust_signals_used for c in competitors],
            ),
            competitor_offers=dedupe(offer for c in competitors for offer in c.offers_used),
            tone_gaps=self.string_gaps(
                subject.tone_distribution.keys(),
                [c.tone_distribution.keys() for c in competitors],
            ),
        )
        logger.info(
            f"Gaps for {subject.name}: {len(gaps.missing_hooks)} hooks, "
            f"{len(gaps.underutilized_formats)} formats, {len(gaps.missing_ctas)} CTAs, "
            f"{len(gaps.missing_trust_signals)} trust signals, {len(gaps.tone_gaps)} tones"
        )
        return gaps

    def hook_gaps(self, subject: BrandProfile, competitors: Sequence[BrandProfile]) -> List[str]:
        """Hooks used by at least `consensus` competitors and never by the subject."""
        usage: Dict[str, int] = {}
        for competitor in competitors:
            for hook, count in competitor.hook_distribution.items():
                if count > 0:
                    usage[hook] = usage.get(hook, 0) + 1
        return [
            hook for hook, brands in usage.items()
            if brands >= self.consensus and subject.hook_distribution.get(hook, 0) == 0
        ]

    def string_gaps(
        self,
        subject_items: Iterable[str],
        competitor_items: Sequence[Iterable[str]],
    ) -> List[str]:
        """Normalized values shared by >= `consensus` competitors but not the subject.

        Each competitor counts at most once per value. Returned values are
        normalized (trimmed, lowercase), in first-seen order.
        """
        subject_keys = {normalize_key(item) for item in subject_items if item and item.strip()}
        usage: Dict[str, int] = {}
        for items in competitor_items:
            seen = set()
            for item in items:
                if not item or not item.strip():
                    continue
                key = normalize_key(item)
                if key not in seen:
                    usage[key] = usage.get(key, 0) + 1
                    seen.add(key)
        return [
            key for key, brands in usage.items()
            if brands >= self.consensus and key not in subject_keys
        ]

    def format_gaps(self, subject: BrandProfile, competitors: Sequence[BrandProfile]) -> List[str]:
        """Formats competitors lean on (avg share > threshold) that the subject underuses.

        Competitors with no ads contribute a zero share but still count in
        the denominator, which is the number of competitor profiles.
        """
        if not competitors:
            return []
        gaps = []
        for creative_format in CreativeFormat:
            name = creative_format.value
            average = sum(
                c.format_distribution.share(name, c.ad_count) for c in competitors
            ) / len(competitors)
            subject_share = subject.format_distribution.share(name, subject.ad_count)
            if average > self.format_share_threshold and subject_share < average * self.format_underuse_ratio:
                gaps.append(name)
        return gaps
