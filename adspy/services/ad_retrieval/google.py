"""
Google Ads Transparency Center retrieval via silva95gustavo/google-ads-scraper.

Needs the competitor's Transparency Center URL, e.g.
https://adstransparency.google.com/?region=US&domain=example.com
"""

import logging
from datetime import date
from typing import Any, Dict, List

from ..competitive_analysis.models import AdCreative, CompetitorEntity, Platform
from .base import AdRetriever

logger = logging.getLogger(__name__)

GOOGLE_ACTOR_ID = "silva95gustavo/google-ads-scraper"
CREATIVE_URL = "https://adstransparency.google.com/advertiser/{advertiser_id}/creative/{creative_id}"


class GoogleAdRetriever(AdRetriever):
    """Scrapes a brand's ads from the Google Ads Transparency Center."""

    platform = Platform.GOOGLE

    def retrieve(self, competitor: CompetitorEntity, max_ads: int, days_back: int) -> List[AdCreative]:
        """
        Raises:
            ValueError: If the competitor has no ad_transparency_url
        """
        if not competitor.ad_transparency_url:
            raise ValueError(
                f"Ad Transparency URL required for {competitor.name}. "
                f"Expected format: https://adstransparency.google.com/?region=US&domain=example.com"
            )

        logger.info(f"[Google] Scraping ads for: {competitor.name}")
        result = self.apify.run_actor(
            actor_id=GOOGLE_ACTOR_ID,
            run_input={
                "startUrls": [{"url": competitor.ad_transparency_url}],
                "maxItems": max_ads,
                "shouldDownloadAssets": False,
                "shouldDownloadPreviews": False,
                "ocr": False,
                "skipDetails": False,
            },
            timeout=self.timeout,
        )

        creatives = []
        seen = set()
        for item in result.items[:max_ads]:
            if not item.get("creativeId"):
                continue
            creative = normalize_google_ad(item, competitor.name)
            if creative.id not in seen:
                seen.add(creative.id)
                creatives.append(creative)

        logger.info(f"[Google] {competitor.name}: {len(creatives)} creatives")
        return creatives


def normalize_google_ad(ad: Dict[str, Any], brand_name: str) -> AdCreative:
    """
    Convert one Transparency Center item to an AdCreative.

    TEXT ads use headline + body; IMAGE and VIDEO ads use the variation
    description, with the preview URL standing in for missing media.
    """
    variations = ad.get("variations") or []
    variation = variations[0] if variations else {}
    ad_format = ad.get("format")

    title = ""
    text = ""
    image_ref = None
    video_ref = None

    if ad_format == "TEXT":
        title = variation.get("headline") or ""
        text = "\n".join(part for part in (variation.get("headline"), variation.get("body")) if part)
        image_urls = variation.get("imageUrls") or []
        if image_urls:
            image_ref = image_urls[0]
    elif ad_format == "IMAGE":
        title = variation.get("headline") or variation.get("description") or ""
        text = variation.get("description") or ""
        image_ref = variation.get("imageUrl") or ad.get("previewUrl")
    elif ad_format == "VIDEO":
        title = variation.get("headline") or variation.get("description") or ""
        text = variation.get("description") or ""
        video_ref = variation.get("videoUrl") or ad.get("previewUrl")

    first_shown, last_shown = _shown_dates(ad)

    return AdCreative(
        id=f"google-{ad.get('creativeId')}",
        brand_name=brand_name,
        text=text,
        title=title or None,
        image_ref=image_ref,
        video_ref=video_ref,
        platform=Platform.GOOGLE,
        link_url=variation.get("clickUrl"),
        ad_url=ad.get("adLibraryUrl") or CREATIVE_URL.format(
            advertiser_id=ad.get("advertiserId"), creative_id=ad.get("creativeId")
        ),
        start_date=first_shown,
        end_date=last_shown,
    )


def _shown_dates(ad: Dict[str, Any]):
    """(first, last) shown as YYYY-MM-DD, falling back to region stats then today."""
    if ad.get("firstShown") and ad.get("lastShown"):
        return ad["firstShown"].split("T")[0], ad["lastShown"].split("T")[0]
    region_stats = ad.get("regionStats") or []
    region_date = (region_stats[0].get("lastShown") if region_stats else None) or date.today().isoformat()
    return region_date, region_date
