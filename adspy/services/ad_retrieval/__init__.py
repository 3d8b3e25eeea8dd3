"""
Ad retrieval - platform adapters that turn scraped ads into AdCreative records.

Components:
- FacebookAdRetriever: Facebook Ad Library via Apify
- GoogleAdRetriever: Google Ads Transparency Center via Apify
- get_retriever / detect_platform: platform selection
"""

from .base import AdRetriever
from .facebook import FacebookAdRetriever, normalize_facebook_ad, normalize_facebook_ads
from .factory import detect_platform, get_retriever
from .google import GoogleAdRetriever, normalize_google_ad

__all__ = [
    "AdRetriever",
    "FacebookAdRetriever",
    "GoogleAdRetriever",
    "detect_platform",
    "get_retriever",
    "normalize_facebook_ad",
    "normalize_facebook_ads",
    "normalize_google_ad",
]
