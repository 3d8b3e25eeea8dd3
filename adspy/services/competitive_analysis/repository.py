"""CompetitiveAnalysisRepository — Supabase persistence for analysis runs.

Tables:
- competitor_analyses: one row per run; the full AnalysisResult is kept
  in the ``result`` JSON column next to denormalized summary columns.
- competitor_analysis_ads: one row per classified ad, unique on
  (analysis_id, ad_id).
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence
from uuid import UUID

from ...core.database import get_supabase_client
from .models import AdLink, AnalysisResult, AnalysisSummary

logger = logging.getLogger(__name__)

ANALYSES_TABLE = "competitor_analyses"
ANALYSIS_ADS_TABLE = "competitor_analysis_ads"


class CompetitiveAnalysisRepository:
    """Stores and reads back AnalysisResult records."""

    def __init__(self, supabase_client=None):
        self.supabase = supabase_client or get_supabase_client()

    def store(self, result: AnalysisResult, ad_links: Sequence[AdLink]) -> UUID:
        """Persist one analysis and its ad links.

        The main record is required: any failure writing it propagates.
        A failing ad link is logged and skipped.

        Args:
            result: Completed analysis.
            ad_links: One link per classified ad (subject and competitors).

        Returns:
            The analysis id.
        """
        record = self._analysis_record(result)
        self.supabase.table(ANALYSES_TABLE).insert(record).execute()

        stored = 0
        for link in ad_links:
            try:
                self.supabase.table(ANALYSIS_ADS_TABLE).upsert(
                    {
                        "analysis_id": str(result.analysis_id),
                        "ad_id": link.ad_id,
                        "brand_name": link.brand_name,
                        "is_subject": link.is_subject,
                        "hook_category": link.hook_category,
                        "creative_format": link.creative_format,
                    },
                    on_conflict="analysis_id,ad_id",
                ).execute()
                stored += 1
            except Exception as e:
                logger.warning(f"Failed to store ad link {link.ad_id} for {result.analysis_id}: {e}")

        logger.info(f"Stored competitive analysis {result.analysis_id} ({stored}/{len(ad_links)} ad links)")
        return result.analysis_id

    def fetch(self, analysis_id: UUID) -> Optional[AnalysisResult]:
        """Load a stored analysis, or None if it does not exist."""
        response = self.supabase.table(ANALYSES_TABLE).select("result").eq(
            "id", str(analysis_id)
        ).limit(1).execute()

        if not response.data:
            return None
        return AnalysisResult.model_validate(response.data[0]["result"])

    def fetch_ad_links(self, analysis_id: UUID) -> List[AdLink]:
        """Ad links of one analysis, subject ads first."""
        response = self.supabase.table(ANALYSIS_ADS_TABLE).select("*").eq(
            "analysis_id", str(analysis_id)
        ).order("is_subject", desc=True).order("brand_name").execute()

        return [AdLink.model_validate(row) for row in response.data or []]

    def list_recent(self, limit: int = 20) -> List[AnalysisSummary]:
        """Most recent analyses first."""
        response = self.supabase.table(ANALYSES_TABLE).select(
            "id, subject_brand_name, platform, total_subject_ads, total_competitor_ads, analyzed_at"
        ).order("analyzed_at", desc=True).limit(limit).execute()

        return [
            AnalysisSummary(
                analysis_id=row["id"],
                subject_brand_name=row["subject_brand_name"],
                platform=row.get("platform") or "facebook",
                total_subject_ads=row.get("total_subject_ads") or 0,
                total_competitor_ads=row.get("total_competitor_ads") or 0,
                analyzed_at=row.get("analyzed_at"),
            )
            for row in response.data or []
        ]

    @staticmethod
    def _analysis_record(result: AnalysisResult) -> Dict[str, Any]:
        analyzed_at = result.created_at or datetime.now(timezone.utc)
        return {
            "id": str(result.analysis_id),
            "subject_brand_name": result.subject.name,
            "subject_domain": result.subject_domain,
            "platform": result.platform.value,
            "competitors": [
                {
                    "name": c.name,
                    "ad_count": c.ad_count,
                    "top_hooks": c.top_hooks(),
                    "format_distribution": c.format_distribution.model_dump(),
                }
                for c in result.competitors
            ],
            "hook_gap_analysis": {
                "missing_hooks": list(result.gaps.missing_hooks),
                "subject_hooks": result.subject.hook_distribution,
            },
            "format_gap_analysis": {
                "underutilized_formats": list(result.gaps.underutilized_formats),
                "subject_formats": result.subject.format_distribution.model_dump(),
            },
            "dominant_patterns": result.market_insights.model_dump(),
            "recommendations": [
                f"[{r.priority.value.upper()}] {r.action}: {r.example}" for r in result.recommendations
            ],
            "total_subject_ads": result.subject.ad_count,
            "total_competitor_ads": result.total_competitor_ads,
            "result": result.model_dump(mode="json"),
            "analyzed_at": analyzed_at.isoformat(),
        }
