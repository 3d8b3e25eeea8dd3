"""Errors raised by the competitive analysis engine.

Only InvalidCompetitorSetError and NoSubjectAdsError ever reach a caller;
the response errors are recovered inside the classifier and the
recommendation service.
"""


class CompetitiveAnalysisError(Exception):
    """Base class for competitive analysis errors."""


class InvalidCompetitorSetError(CompetitiveAnalysisError, ValueError):
    """Input set is not exactly 1 subject + 5 competitors."""


class NoSubjectAdsError(CompetitiveAnalysisError, RuntimeError):
    """Retrieval returned no creatives for the subject brand."""

    def __init__(self, brand_name: str):
        self.brand_name = brand_name
        super().__init__(f"No ads found for subject brand: {brand_name}")


class ClassificationResponseError(CompetitiveAnalysisError, ValueError):
    """Classification service response could not be parsed."""


class RecommendationResponseError(CompetitiveAnalysisError, ValueError):
    """Recommendation service response was missing or malformed."""
