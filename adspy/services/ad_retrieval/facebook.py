"""
Facebook Ad Library retrieval via the apify/facebook-ads-scraper actor.

Converts raw scraper items into AdCreative records:
- text: snapshot body text, then primary card body, then caption
- image/video: first entry of the images/videos arrays, then primary card
- title: primary card title, then snapshot title
- ad_url: Ad Library permalink built from the archive id
"""

import logging
from datetime import date, timedelta
from typing import Any, Dict, Iterable, List, Optional

from ..competitive_analysis.models import AdCreative, CompetitorEntity, Platform
from .base import AdRetriever

logger = logging.getLogger(__name__)

FACEBOOK_ACTOR_ID = "apify/facebook-ads-scraper"
AD_LIBRARY_URL = "https://www.facebook.com/ads/library/?id={ad_id}"


class FacebookAdRetriever(AdRetriever):
    """Scrapes a brand's Facebook page through the Ad Library."""

    platform = Platform.FACEBOOK

    def retrieve(self, competitor: CompetitorEntity, max_ads: int, days_back: int) -> List[AdCreative]:
        logger.info(f"[Facebook] Scraping ads for: {competitor.domain}")
        result = self.apify.run_actor(
            actor_id=FACEBOOK_ACTOR_ID,
            run_input=self.build_input(competitor.domain, max_ads, days_back),
            timeout=self.timeout,
        )
        creatives = normalize_facebook_ads(result.items, competitor.name)
        logger.info(f"[Facebook] {competitor.name}: {len(creatives)} creatives")
        return creatives[:max_ads]

    @staticmethod
    def build_input(page_url: str, max_ads: int, days_back: Optional[int] = None) -> Dict[str, Any]:
        """Actor input for one page, optionally limited to the last N days."""
        run_input: Dict[str, Any] = {
            "isDetailsPerAd": False,
            "onlyTotal": False,
            "resultsLimit": max_ads,
            "startUrls": [{"url": page_url}],
            "proxyConfiguration": {"useApifyProxy": True},
        }
        if days_back:
            run_input["startDate"] = (date.today() - timedelta(days=days_back)).isoformat()
        return run_input


def normalize_facebook_ad(item: Dict[str, Any], brand_name: Optional[str] = None) -> Optional[AdCreative]:
    """
    Convert one scraper item to an AdCreative.

    Args:
        item: Raw dataset item
        brand_name: Display name to use instead of the page name

    Returns:
        AdCreative, or None when the item carries no usable id
    """
    snapshot = item.get("snapshot") or {}
    cards = snapshot.get("cards") or []
    card = cards[0] if cards else {}

    archive_id = item.get("adArchiveId") or item.get("adArchiveID")
    ad_id = archive_id or item.get("pageId") or item.get("pageID")
    if not ad_id:
        return None

    body = snapshot.get("body") or {}
    text = (
        _clean(body.get("text") if isinstance(body, dict) else None)
        or _clean(card.get("body"))
        or _clean(snapshot.get("caption"))
        or ""
    )

    images = snapshot.get("images") or []
    first_image = images[0] if images else {}
    image_ref = (
        first_image.get("resizedImageUrl")
        or first_image.get("originalImageUrl")
        or card.get("resizedImageUrl")
        or card.get("originalImageUrl")
    )

    videos = snapshot.get("videos") or []
    first_video = videos[0] if videos else {}
    video_ref = (
        first_video.get("videoHdUrl")
        or first_video.get("videoSdUrl")
        or card.get("videoHdUrl")
        or card.get("videoSdUrl")
    )

    if archive_id:
        ad_url = AD_LIBRARY_URL.format(ad_id=archive_id)
    else:
        ad_url = item.get("inputUrl")

    return AdCreative(
        id=str(ad_id),
        brand_name=brand_name or snapshot.get("pageName") or item.get("pageName") or "",
        text=text,
        title=card.get("title") or snapshot.get("title"),
        image_ref=image_ref,
        video_ref=video_ref,
        platform=Platform.FACEBOOK,
        link_url=card.get("linkUrl") or snapshot.get("linkUrl"),
        ad_url=ad_url,
        start_date=item.get("startDateFormatted"),
        end_date=item.get("endDateFormatted"),
    )


def normalize_facebook_ads(items: Iterable[Dict[str, Any]], brand_name: Optional[str] = None) -> List[AdCreative]:
    """Normalize a dataset, dropping items without an id and duplicate ids."""
    seen = set()
    creatives = []
    for item in items:
        creative = normalize_facebook_ad(item, brand_name)
        if creative is None or creative.id in seen:
            continue
        seen.add(creative.id)
        creatives.append(creative)
    return creatives


def _clean(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None
