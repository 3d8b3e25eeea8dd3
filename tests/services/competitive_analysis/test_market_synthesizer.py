"""
Tests for MarketSynthesizer — pooled plurality and deterministic ties.
"""

import pytest

from adspy.services.competitive_analysis.market_synthesizer import MarketSynthesizer
from adspy.services.competitive_analysis.models import BrandProfile, FormatDistribution


def _profile(name, ad_count=0, hooks=None, tones=None, ctas=None, trust=None, video=0):
    return BrandProfile(
        name=name,
        ad_count=ad_count,
        hook_distribution=hooks or {},
        tone_distribution=tones or {},
        cta_distribution=ctas or {},
        trust_signals_used=trust or [],
        format_distribution=FormatDistribution(video=video, image=ad_count - video),
    )


class TestSynthesize:

    def test_pooled_plurality(self):
        competitors = [
            _profile("A", 3, hooks={"Social Proof": 2, "Authority": 1}, tones={"Friendly": 3},
                     ctas={"Free Quote": 3}, trust=["Licensed"], video=3),
            _profile("B", 2, hooks={"Authority": 2}, tones={"Urgent": 2},
                     ctas={"Call Now": 2}, trust=["licensed", "Insured"], video=2),
            _profile("C", 1, hooks={"Authority": 1}, tones={"Friendly": 1},
                     ctas={"Call Now": 1}, video=0),
            _profile("D"),
            _profile("E"),
        ]

        insights = MarketSynthesizer().synthesize(competitors)

        assert insights.dominant_hook_type == "Authority"
        assert insights.dominant_tone == "Friendly"
        # 3 vs 3: alphabetical
        assert insights.most_common_cta == "Call Now"
        assert insights.dominant_format == "video"
        # counted per competitor, first-seen spelling kept
        assert insights.most_common_trust_signal == "Licensed"
        assert insights.average_competitor_ad_count == 1

    def test_ties_are_order_independent(self):
        a = _profile("A", 2, hooks={"Social Proof": 2}, tones={"Urgent": 2}, video=1)
        b = _profile("B", 2, hooks={"Authority": 2}, tones={"Friendly": 2}, video=1)
        rest = [_profile(n) for n in "CDE"]

        forward = MarketSynthesizer().synthesize([a, b] + rest)
        backward = MarketSynthesizer().synthesize([b, a] + rest)

        assert forward == backward
        assert forward.dominant_hook_type == "Authority"
        assert forward.dominant_tone == "Friendly"
        assert forward.dominant_format == "image"

    def test_all_empty_competitors(self):
        insights = MarketSynthesizer().synthesize([_profile(n) for n in "ABCDE"])

        assert insights.average_competitor_ad_count == 0
        assert insights.dominant_hook_type == "Other"
        assert insights.dominant_format == "image"
        assert insights.dominant_tone == "Professional"
        assert insights.most_common_cta == "Other"
        assert insights.most_common_trust_signal == "None"

    @pytest.mark.parametrize("counts,expected", [
        ([3, 3, 2, 2, 2], 2),   # 2.4
        ([5, 5, 2, 1, 0], 3),   # 2.6
        ([5, 5, 5, 5, 5], 5),
        ([1, 2], 2),            # 1.5 rounds up
        ([], 0),
    ])
    def test_average_ad_count(self, counts, expected):
        profiles = [_profile(str(i), c) for i, c in enumerate(counts)]
        assert MarketSynthesizer().synthesize(profiles).average_competitor_ad_count == expected
