"""Pydantic models for the competitive gap-analysis engine.

Enums, run config, per-ad classification, brand profiles, gap/market
summaries and the final analysis result.
No database or network access in this file -- pure type definitions.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...core.config import Config


# =============================================================================
# Enums
# =============================================================================

class HookType(str, Enum):
    DISCOUNT_URGENCY = "Discount/Urgency"
    SOCIAL_PROOF = "Social Proof"
    FEAR_OF_LOSS = "Fear of Loss"
    PROBLEM_AGITATE = "Problem-Agitate"
    CURIOSITY_GAP = "Curiosity Gap"
    AUTHORITY = "Authority"
    TRANSFORMATION = "Transformation"
    EDUCATIONAL = "Educational"
    OTHER = "Other"


class Tone(str, Enum):
    PROFESSIONAL = "Professional"
    URGENT = "Urgent"
    FRIENDLY = "Friendly"
    FEAR_BASED = "Fear-based"
    INSPIRATIONAL = "Inspirational"
    EDUCATIONAL = "Educational"


class AdLength(str, Enum):
    SHORT = "short"      # < 80 chars
    MEDIUM = "medium"    # 80-250 chars
    LONG = "long"        # > 250 chars


class CreativeFormat(str, Enum):
    VIDEO = "video"
    IMAGE = "image"
    # Not produced by format detection yet (image/video only)
    UGC_VIDEO = "ugc_video"
    CAROUSEL = "carousel"


class RecommendationPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class Platform(str, Enum):
    FACEBOOK = "facebook"
    GOOGLE = "google"


# =============================================================================
# Run Config
# =============================================================================

class AnalysisConfig(BaseModel):
    """Typed config for a single competitive analysis run.

    Passed into CompetitiveAnalysisService at construction; nothing in the
    engine reads global settings once a run has started.
    """

    platform: Platform = Platform.FACEBOOK
    max_ads: int = Field(5, ge=1)
    days_back: int = Field(30, ge=1)

    # Retrieval
    retrieval_concurrency: int = Field(6, ge=1)
    retrieval_timeout_sec: float = Field(300.0, gt=0)
    min_competitors_with_ads: int = Field(3, ge=0, le=5)

    # Classification
    batch_size: int = Field(8, ge=1)
    max_text_chars: int = Field(400, ge=1)
    classification_concurrency: int = Field(1, ge=1, le=2)
    classification_timeout_sec: float = Field(120.0, gt=0)

    # Recommendations
    recommendation_timeout_sec: float = Field(120.0, gt=0)

    # Gap thresholds
    hook_consensus: int = Field(2, ge=1)
    format_share_threshold: float = Field(0.2, ge=0, le=1)
    format_underuse_ratio: float = Field(0.5, ge=0, le=1)

    @classmethod
    def from_env(cls, **overrides) -> "AnalysisConfig":
        """Build a config from Config (environment) defaults plus overrides."""
        values = {
            "platform": Config.DEFAULT_PLATFORM,
            "max_ads": Config.DEFAULT_ADS_PER_BRAND,
            "days_back": Config.DEFAULT_DAYS_BACK,
            "retrieval_timeout_sec": Config.RETRIEVAL_TIMEOUT_SEC,
            "batch_size": Config.CLASSIFICATION_BATCH_SIZE,
            "max_text_chars": Config.CLASSIFICATION_MAX_TEXT_CHARS,
            "classification_concurrency": Config.CLASSIFICATION_CONCURRENCY,
            "classification_timeout_sec": Config.CLASSIFICATION_TIMEOUT_SEC,
            "recommendation_timeout_sec": Config.RECOMMENDATION_TIMEOUT_SEC,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


# =============================================================================
# Inputs
# =============================================================================

class CompetitorEntity(BaseModel):
    """One brand in the 1-vs-5 input set."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    domain: str
    is_subject: bool = False
    # Google Ads Transparency Center URL (google platform only)
    ad_transparency_url: Optional[str] = None


class AdCreative(BaseModel):
    """A raw ad creative as returned by a retriever. Read-only to the engine."""

    model_config = ConfigDict(frozen=True)

    id: str
    brand_name: str
    text: str = ""
    title: Optional[str] = None
    image_ref: Optional[str] = None
    video_ref: Optional[str] = None
    image_description: Optional[str] = None
    platform: Platform = Platform.FACEBOOK
    link_url: Optional[str] = None
    ad_url: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


# =============================================================================
# Classification
# =============================================================================

class AdClassification(BaseModel):
    """Eleven-dimension classification of one creative."""

    model_config = ConfigDict(frozen=True)

    hook_type: HookType = HookType.OTHER
    headline: str = ""
    cta: str = "Other"
    offer: Optional[str] = None
    pain_point: Optional[str] = None
    audience_signals: List[str] = Field(default_factory=list)
    tone: Tone = Tone.PROFESSIONAL
    ad_length: AdLength = AdLength.SHORT
    trust_signals: List[str] = Field(default_factory=list)
    unique_selling_point: Optional[str] = None
    # True when produced locally because the classification service failed
    is_fallback: bool = False


# =============================================================================
# Brand Profiles
# =============================================================================

class FormatDistribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    video: int = 0
    image: int = 0
    ugc_video: int = 0
    carousel: int = 0

    def share(self, creative_format: str, ad_count: int) -> float:
        """Fraction of ad_count in the given bucket (0.0 when ad_count is 0)."""
        if ad_count <= 0:
            return 0.0
        return getattr(self, creative_format) / ad_count


class AdLengthDistribution(BaseModel):
    model_config = ConfigDict(frozen=True)

    short: int = 0
    medium: int = 0
    long: int = 0


class BrandProfile(BaseModel):
    """Aggregated statistics for one brand's classified creatives.

    Every distribution sums to ad_count. The *_used lists are deduplicated
    (case-insensitive, trimmed) and keep first-seen order.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    ad_count: int = 0
    hook_distribution: Dict[str, int] = Field(default_factory=dict)
    format_distribution: FormatDistribution = Field(default_factory=FormatDistribution)
    cta_distribution: Dict[str, int] = Field(default_factory=dict)
    tone_distribution: Dict[str, int] = Field(default_factory=dict)
    ad_length_distribution: AdLengthDistribution = Field(default_factory=AdLengthDistribution)
    offers_used: List[str] = Field(default_factory=list)
    trust_signals_used: List[str] = Field(default_factory=list)
    pain_points_addressed: List[str] = Field(default_factory=list)
    usps: List[str] = Field(default_factory=list)

    def top_hooks(self, limit: int = 3) -> List[str]:
        """Most used hook categories, highest count first (ties alphabetical)."""
        ranked = sorted(self.hook_distribution.items(), key=lambda kv: (-kv[1], kv[0]))
        return [hook for hook, count in ranked[:limit] if count > 0]


# =============================================================================
# Gaps and Market Insights
# =============================================================================

class GapSet(BaseModel):
    model_config = ConfigDict(frozen=True)

    missing_hooks: Tuple[str, ...] = ()
    underutilized_formats: Tuple[str, ...] = ()
    winning_competitors: Tuple[str, ...] = ()
    missing_ctas: Tuple[str, ...] = ()
    missing_trust_signals: Tuple[str, ...] = ()
    competitor_offers: Tuple[str, ...] = ()
    tone_gaps: Tuple[str, ...] = ()


class MarketInsights(BaseModel):
    model_config = ConfigDict(frozen=True)

    dominant_hook_type: str
    dominant_format: str
    dominant_tone: str
    average_competitor_ad_count: int
    most_common_cta: str
    most_common_trust_signal: str


# =============================================================================
# Recommendations
# =============================================================================

class Recommendation(BaseModel):
    """A single strategic recommendation from the recommendation service."""

    model_config = ConfigDict(frozen=True)

    priority: RecommendationPriority
    action: str = Field(min_length=1)
    example: str = Field(min_length=1)
    implementation: str = Field(min_length=1)

    @field_validator("priority", mode="before")
    @classmethod
    def _lower_priority(cls, value):
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @field_validator("action", "example", "implementation", mode="before")
    @classmethod
    def _strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class StrategyNarrative(BaseModel):
    model_config = ConfigDict(frozen=True)

    why_subject_is_losing: str
    best_competitor: str = ""
    winning_creative_format: Optional[str] = None


class RecommendationReport(BaseModel):
    """What the recommendation service returns for one analysis."""

    model_config = ConfigDict(frozen=True)

    narrative: StrategyNarrative
    recommendations: List[Recommendation] = Field(min_length=1)
    is_fallback: bool = False


# =============================================================================
# Analysis Result & Persistence
# =============================================================================

class AnalysisResult(BaseModel):
    """Root aggregate of one run. Built once, persisted once."""

    model_config = ConfigDict(frozen=True)

    analysis_id: UUID
    subject: BrandProfile
    competitors: Tuple[BrandProfile, ...] = Field(min_length=5, max_length=5)
    gaps: GapSet
    recommendations: Tuple[Recommendation, ...] = Field(min_length=1)
    market_insights: MarketInsights
    narrative: StrategyNarrative
    platform: Platform = Platform.FACEBOOK
    subject_domain: str = ""
    created_at: Optional[datetime] = None

    @property
    def total_competitor_ads(self) -> int:
        return sum(c.ad_count for c in self.competitors)


class AdLink(BaseModel):
    """Represents a competitor_analysis_ads row (one classified ad in a run)."""

    ad_id: str
    brand_name: str
    is_subject: bool
    hook_category: str
    creative_format: str


class AnalysisSummary(BaseModel):
    """Lightweight listing row for recent analyses."""

    analysis_id: UUID
    subject_brand_name: str
    platform: str
    total_subject_ads: int = 0
    total_competitor_ads: int = 0
    analyzed_at: Optional[datetime] = None
