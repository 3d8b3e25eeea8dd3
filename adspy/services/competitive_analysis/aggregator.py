"""BrandAggregator — folds one brand's classified creatives into a BrandProfile."""

from __future__ import annotations

import logging
from typing import Dict, List, Mapping, Optional, Sequence

from .classifier_service import fallback_classification
from .helpers import append_unique
from .models import (
    AdClassification,
    AdCreative,
    AdLengthDistribution,
    BrandProfile,
    CreativeFormat,
    FormatDistribution,
)

logger = logging.getLogger(__name__)


def detect_creative_format(creative: AdCreative) -> CreativeFormat:
    """Video if the creative carries a video reference, otherwise image.

    ugc_video and carousel are never returned; retrievers do not expose
    enough signal to tell them apart.
    """
    if creative.video_ref:
        return CreativeFormat.VIDEO
    return CreativeFormat.IMAGE


class BrandAggregator:
    """Builds per-brand statistical profiles."""

    def aggregate(
        self,
        brand_name: str,
        creatives: Sequence[AdCreative],
        classifications: Mapping[str, AdClassification],
    ) -> BrandProfile:
        """Aggregate a brand's creatives in list order.

        A creative with no entry in classifications is counted with the
        fallback classification, so ad_count always equals len(creatives)
        and every distribution sums to ad_count.

        Args:
            brand_name: Brand display name.
            creatives: The brand's creatives (may be empty).
            classifications: Classification map from CreativeClassifier.

        Returns:
            Immutable BrandProfile.
        """
        hook_distribution: Dict[str, int] = {}
        cta_distribution: Dict[str, int] = {}
        tone_distribution: Dict[str, int] = {}
        format_counts = {f.value: 0 for f in CreativeFormat}
        length_counts = {"short": 0, "medium": 0, "long": 0}
        offers_used: List[str] = []
        trust_signals_used: List[str] = []
        pain_points_addressed: List[str] = []
        usps: List[str] = []

        missing = 0
        for creative in creatives:
            classification: Optional[AdClassification] = classifications.get(creative.id)
            if classification is None:
                classification = fallback_classification(creative)
                missing += 1

            _increment(hook_distribution, classification.hook_type.value)
            _increment(cta_distribution, classification.cta)
            _increment(tone_distribution, classification.tone.value)
            length_counts[classification.ad_length.value] += 1
            format_counts[detect_creative_format(creative).value] += 1

            append_unique(offers_used, classification.offer)
            for signal in classification.trust_signals:
                append_unique(trust_signals_used, signal)
            append_unique(pain_points_addressed, classification.pain_point)
            append_unique(usps, classification.unique_selling_point)

        if missing:
            logger.warning(f"{brand_name}: {missing} creatives had no classification, used fallback")

        return BrandProfile(
            name=brand_name,
            ad_count=len(creatives),
            hook_distribution=hook_distribution,
            format_distribution=FormatDistribution(**format_counts),
            cta_distribution=cta_distribution,
            tone_distribution=tone_distribution,
            ad_length_distribution=AdLengthDistribution(**length_counts),
            offers_used=offers_used,
            trust_signals_used=trust_signals_used,
            pain_points_addressed=pain_points_addressed,
            usps=usps,
        )


def _increment(counts: Dict[str, int], key: str) -> None:
    counts[key] = counts.get(key, 0) + 1
