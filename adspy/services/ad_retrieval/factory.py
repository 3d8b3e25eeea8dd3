"""Retriever selection by platform."""

from typing import Optional, Union

from ..apify_service import ApifyService
from ..competitive_analysis.models import Platform
from .base import AdRetriever
from .facebook import FacebookAdRetriever
from .google import GoogleAdRetriever

_RETRIEVERS = {
    Platform.FACEBOOK: FacebookAdRetriever,
    Platform.GOOGLE: GoogleAdRetriever,
}


def get_retriever(
    platform: Union[Platform, str],
    apify: Optional[ApifyService] = None,
    timeout: int = 300,
) -> AdRetriever:
    """
    Create the retriever for a platform.

    Raises:
        ValueError: If the platform is not supported
    """
    try:
        retriever_cls = _RETRIEVERS[Platform(platform)]
    except ValueError:
        raise ValueError(f"Unsupported platform: {platform}") from None
    return retriever_cls(apify=apify, timeout=timeout)


def detect_platform(domain: str) -> Platform:
    """Facebook for facebook.com / fb.com URLs, Google for any other domain."""
    lowered = domain.lower()
    if "facebook.com" in lowered or "fb.com" in lowered:
        return Platform.FACEBOOK
    return Platform.GOOGLE
