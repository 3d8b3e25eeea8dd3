"""
Tests for GapAnalyzer — consensus thresholds and no false-positive gaps.
"""

import pytest

from adspy.services.competitive_analysis.gap_analyzer import GapAnalyzer
from adspy.services.competitive_analysis.models import BrandProfile, FormatDistribution


def _profile(name, ad_count=0, hooks=None, ctas=None, tones=None, trust=None, offers=None, video=0, image=None):
    return BrandProfile(
        name=name,
        ad_count=ad_count,
        hook_distribution=hooks or {},
        cta_distribution=ctas or {},
        tone_distribution=tones or {},
        trust_signals_used=trust or [],
        offers_used=offers or [],
        format_distribution=FormatDistribution(
            video=video,
            image=ad_count - video if image is None else image,
        ),
    )


def _empty_competitors(count):
    return [_profile(f"Empty {i}") for i in range(count)]


class TestHookGaps:

    def test_urgency_scenario(self):
        subject = _profile("Subject", 3, hooks={"Social Proof": 3})
        competitors = [
            _profile("A", 4, hooks={"Urgency": 2, "Social Proof": 2}),
            _profile("B", 2, hooks={"Urgency": 1, "Social Proof": 1}),
            _profile("C", 2, hooks={"Social Proof": 2}),
            _profile("D", 1, hooks={"Social Proof": 1}),
            _profile("E", 5, hooks={"Social Proof": 5}),
        ]

        gaps = GapAnalyzer().compute_gaps(subject, competitors)

        assert "Urgency" in gaps.missing_hooks
        assert "Social Proof" not in gaps.missing_hooks

    def test_single_competitor_hook_excluded(self):
        subject = _profile("Subject", 1, hooks={"Other": 1})
        competitors = [_profile("A", 3, hooks={"Authority": 3})] + _empty_competitors(4)

        assert GapAnalyzer().hook_gaps(subject, competitors) == []

    def test_zero_counts_do_not_count_as_usage(self):
        subject = _profile("Subject", 1, hooks={"Other": 1})
        competitors = [
            _profile("A", 1, hooks={"Authority": 1}),
            _profile("B", 1, hooks={"Authority": 0, "Other": 1}),
        ] + _empty_competitors(3)

        assert GapAnalyzer().hook_gaps(subject, competitors) == []

    def test_consensus_is_configurable(self):
        subject = _profile("Subject", 1, hooks={"Other": 1})
        competitors = [_profile("A", 1, hooks={"Authority": 1})] + _empty_competitors(4)

        assert GapAnalyzer(consensus=1).hook_gaps(subject, competitors) == ["Authority"]


class TestStringGaps:

    def test_normalized_consensus(self):
        analyzer = GapAnalyzer()
        result = analyzer.string_gaps(
            ["Call Now"],
            [["Free Quote", " free quote"], ["FREE QUOTE"], ["call now"], ["Book Online"], []],
        )
        assert result == ["free quote"]

    def test_competitor_counted_once(self):
        result = GapAnalyzer().string_gaps([], [["Licensed", "licensed", "LICENSED"], []])
        assert result == []

    def test_subject_values_never_reported(self):
        subject_trust = ["Licensed", "Insured"]
        competitors = [
            ["licensed", "insured", "5-star rated"],
            [" LICENSED", "5-Star Rated"],
            ["Insured"],
        ]
        result = GapAnalyzer().string_gaps(subject_trust, competitors)

        assert result == ["5-star rated"]
        assert all(value not in {"licensed", "insured"} for value in result)

    def test_blank_values_ignored(self):
        assert GapAnalyzer().string_gaps([], [["", "  "], ["  "]]) == []

    def test_ctas_tones_and_trust_in_gap_set(self):
        subject = _profile("Subject", 2, ctas={"Call Now": 2}, tones={"Professional": 2}, trust=["licensed"])
        competitors = [
            _profile("A", 2, ctas={"Free Quote": 2}, tones={"Urgent": 2}, trust=["Licensed", "Family owned"]),
            _profile("B", 1, ctas={"Free Quote": 1}, tones={"Urgent": 1}, trust=["family owned"]),
        ] + _empty_competitors(3)

        gaps = GapAnalyzer().compute_gaps(subject, competitors)

        assert gaps.missing_ctas == ("free quote",)
        assert gaps.tone_gaps == ("urgent",)
        assert gaps.missing_trust_signals == ("family owned",)


class TestFormatGaps:

    def test_video_underutilized(self):
        subject = _profile("Subject", 4, video=0)
        competitors = [
            _profile("A", 4, video=2),
            _profile("B", 2, video=1),
            _profile("C", 5, video=0),
            _profile("D", 1, video=1),
            _profile("E", 3, video=0),
        ]

        # avg video share = (0.5 + 0.5 + 0 + 1 + 0) / 5 = 0.4
        assert GapAnalyzer().format_gaps(subject, competitors) == ["video"]

    def test_subject_share_above_half_of_average_is_not_a_gap(self):
        subject = _profile("Subject", 4, video=1)
        competitors = [_profile(n, 2, video=1) for n in "ABCDE"]

        # avg 0.5, subject 0.25 is not < 0.25
        assert "video" not in GapAnalyzer().format_gaps(subject, competitors)

    def test_average_below_threshold(self):
        subject = _profile("Subject", 4, video=0)
        competitors = [_profile("A", 1, video=1)] + [_profile(n, 3, video=0) for n in "BCDE"]

        # avg video share 0.2 is not > 0.2
        assert "video" not in GapAnalyzer().format_gaps(subject, competitors)

    def test_empty_competitors_contribute_zero_share(self):
        subject = _profile("Subject", 2, video=0)
        competitors = [_profile("A", 1, video=1), _profile("B", 1, video=1)] + _empty_competitors(3)

        # avg = 2 / 5 = 0.4
        assert GapAnalyzer().format_gaps(subject, competitors) == ["video"]

    def test_no_competitors(self):
        assert GapAnalyzer().format_gaps(_profile("Subject", 1), []) == []


class TestWinningAndOffers:

    def test_winning_competitors_by_volume(self):
        subject = _profile("Subject", 3)
        competitors = [_profile("A", 5), _profile("B", 3), _profile("C", 4), _profile("D", 0), _profile("E", 1)]

        assert GapAnalyzer().compute_gaps(subject, competitors).winning_competitors == ("A", "C")

    def test_offers_union_without_threshold(self):
        subject = _profile("Subject", 1, offers=["10% off"])
        competitors = [
            _profile("A", 1, offers=["Free inspection", "10% off"]),
            _profile("B", 1, offers=["free inspection", "$50 off"]),
        ] + _empty_competitors(3)

        offers = GapAnalyzer().compute_gaps(subject, competitors).competitor_offers
        assert offers == ("Free inspection", "10% off", "$50 off")

    def test_all_empty_competitors(self):
        subject = _profile("Subject", 2, hooks={"Other": 2})
        gaps = GapAnalyzer().compute_gaps(subject, _empty_competitors(5))

        assert gaps.missing_hooks == ()
        assert gaps.underutilized_formats == ()
        assert gaps.winning_competitors == ()
        assert gaps.competitor_offers == ()

    def test_gap_lists_are_immutable(self):
        subject = _profile("Subject", 1, hooks={"Other": 1})
        competitors = [_profile(n, 2, hooks={"Authority": 2}) for n in "ABCDE"]

        gaps = GapAnalyzer().compute_gaps(subject, competitors)

        assert gaps.missing_hooks == ("Authority",)
        with pytest.raises(AttributeError):
            gaps.missing_hooks.append("Urgency")
