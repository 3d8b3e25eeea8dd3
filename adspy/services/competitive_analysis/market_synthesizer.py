"""MarketSynthesizer — what the competitor market does most."""

from __future__ import annotations

import math
from typing import Dict, Sequence

from .helpers import add_counts, normalize_key, top_of
from .models import BrandProfile, CreativeFormat, HookType, MarketInsights, Tone


class MarketSynthesizer:
    """Pools competitor distributions and takes a plurality vote per dimension.

    Ties resolve alphabetically through helpers.top_of, so the result does
    not depend on competitor order.
    """

    def synthesize(self, competitors: Sequence[BrandProfile]) -> MarketInsights:
        hooks: Dict[str, int] = {}
        tones: Dict[str, int] = {}
        ctas: Dict[str, int] = {}
        formats: Dict[str, int] = {f.value: 0 for f in CreativeFormat}
        trust_signals: Dict[str, int] = {}
        trust_display: Dict[str, str] = {}

        for competitor in competitors:
            add_counts(hooks, competitor.hook_distribution)
            add_counts(tones, competitor.tone_distribution)
            add_counts(ctas, competitor.cta_distribution)
            add_counts(formats, competitor.format_distribution.model_dump())
            # Trust signals have no per-ad counts: count competitors using each one
            for signal in competitor.trust_signals_used:
                key = normalize_key(signal)
                trust_display.setdefault(key, signal)
                trust_signals[key] = trust_signals.get(key, 0) + 1

        top_signal = top_of(trust_signals, "")

        return MarketInsights(
            dominant_hook_type=top_of(hooks, HookType.OTHER.value),
            dominant_format=top_of(formats, CreativeFormat.IMAGE.value),
            dominant_tone=top_of(tones, Tone.PROFESSIONAL.value),
            average_competitor_ad_count=_average_ad_count(competitors),
            most_common_cta=top_of(ctas, "Other"),
            most_common_trust_signal=trust_display.get(top_signal, "None"),
        )


def _average_ad_count(competitors: Sequence[BrandProfile]) -> int:
    """Mean ad count rounded half-up (0 for no competitors)."""
    if not competitors:
        return 0
    mean = sum(c.ad_count for c in competitors) / len(competitors)
    return int(math.floor(mean + 0.5))
