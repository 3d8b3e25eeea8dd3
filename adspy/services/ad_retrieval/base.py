"""Retriever contract shared by the Facebook and Google ad sources."""

from abc import ABC, abstractmethod
from typing import List, Optional

from ..apify_service import ApifyService
from ..competitive_analysis.models import AdCreative, CompetitorEntity, Platform


class AdRetriever(ABC):
    """Fetches recent creatives for one brand.

    ``retrieve`` is blocking; the analysis service runs it in an executor
    with its own deadline. Implementations may raise on transport errors
    and return an empty list when the brand has no ads.
    """

    platform: Platform

    def __init__(self, apify: Optional[ApifyService] = None, timeout: int = 300):
        self.apify = apify or ApifyService()
        self.timeout = timeout

    @abstractmethod
    def retrieve(self, competitor: CompetitorEntity, max_ads: int, days_back: int) -> List[AdCreative]:
        """Return at most ``max_ads`` creatives for ``competitor``."""
