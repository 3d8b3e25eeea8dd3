"""CompetitiveAnalysisService: 1-vs-5 ad dominance run.

Wires together retrieval, classification, aggregation, gap analysis,
market synthesis, recommendation and persistence:

1. Validate: exactly 1 subject + 5 competitors
2. Retrieve all 6 brands concurrently, each fault-isolated
3. Fail if the subject has no ads
4. Classify every creative
5. Aggregate, compute gaps, synthesize market insights
6. Generate recommendations (fallback on failure)
7. Persist the result and its ad links
"""

from __future__ import annotations

import asyncio
import logging
from concurrent.futures import Executor, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence, Tuple
from uuid import uuid4

from ...core.observability import get_logfire
from .aggregator import BrandAggregator, detect_creative_format
from .classifier_service import CreativeClassifier
from .exceptions import InvalidCompetitorSetError, NoSubjectAdsError
from .helpers import normalize_key
from .gap_analyzer import GapAnalyzer
from .market_synthesizer import MarketSynthesizer
from .models import (
    AdClassification,
    AdCreative,
    AdLink,
    AnalysisConfig,
    AnalysisResult,
    CompetitorEntity,
)
from .recommendation_service import RecommendationService

logger = logging.getLogger(__name__)

COMPETITOR_COUNT = 5


def validate_competitor_set(
    entities: Sequence[CompetitorEntity],
) -> Tuple[CompetitorEntity, List[CompetitorEntity]]:
    """Split an input set into (subject, competitors).

    Raises:
        InvalidCompetitorSetError: Unless there is exactly one subject and
            exactly five competitors, all with distinct names.
    """
    subjects = [e for e in entities if e.is_subject]
    competitors = [e for e in entities if not e.is_subject]

    if len(subjects) != 1:
        raise InvalidCompetitorSetError(f"Expected exactly 1 subject, got {len(subjects)}")
    if len(competitors) != COMPETITOR_COUNT:
        raise InvalidCompetitorSetError(
            f"Expected exactly {COMPETITOR_COUNT} competitors, got {len(competitors)}"
        )

    seen = set()
    for entity in entities:
        key = normalize_key(entity.name)
        if key in seen:
            raise InvalidCompetitorSetError(f"Duplicate brand name: {entity.name}")
        seen.add(key)

    return subjects[0], competitors


class CompetitiveAnalysisService:
    """Orchestration facade for the competitive gap analysis."""

    def __init__(
        self,
        retriever,
        classification_client,
        recommendation_client=None,
        repository=None,
        config: Optional[AnalysisConfig] = None,
    ):
        """Initialize all sub-services.

        Args:
            retriever: AdRetriever with a blocking
                ``retrieve(competitor, max_ads, days_back)``.
            classification_client: Client exposing ``async generate_text``,
                used by the creative classifier.
            recommendation_client: Client for recommendations (defaults to
                classification_client).
            repository: Optional CompetitiveAnalysisRepository; when None the
                result is returned without being persisted.
            config: Run configuration (defaults provided).
        """
        self.config = config or AnalysisConfig()
        self.retriever = retriever
        self.repository = repository

        self.classifier = CreativeClassifier.from_config(classification_client, self.config)
        self.aggregator = BrandAggregator()
        self.gap_analyzer = GapAnalyzer(
            consensus=self.config.hook_consensus,
            format_share_threshold=self.config.format_share_threshold,
            format_underuse_ratio=self.config.format_underuse_ratio,
        )
        self.market_synthesizer = MarketSynthesizer()
        self.recommendations = RecommendationService(
            recommendation_client or classification_client,
            timeout_sec=self.config.recommendation_timeout_sec,
        )

    async def analyze(self, entities: Sequence[CompetitorEntity]) -> AnalysisResult:
        """Run one full analysis.

        Args:
            entities: 1 subject + 5 competitors.

        Returns:
            Immutable AnalysisResult (persisted when a repository is set).

        Raises:
            InvalidCompetitorSetError: Input set has the wrong shape.
            NoSubjectAdsError: No creatives were retrieved for the subject.
        """
        subject, competitors = validate_competitor_set(entities)
        lf = get_logfire()

        with lf.span("competitive_analysis", subject=subject.name, platform=self.config.platform.value):
            logger.info(
                f"Starting competitive analysis for {subject.name} vs "
                f"{', '.join(c.name for c in competitors)}"
            )

            # Step 1: Retrieval (one slot per entity, subject first)
            with lf.span("retrieve_ads", brands=len(competitors) + 1):
                creative_lists = await self.retrieve_all([subject] + competitors)
            subject_creatives = creative_lists[0]
            competitor_creatives = creative_lists[1:]

            if not subject_creatives:
                raise NoSubjectAdsError(subject.name)

            with_ads = sum(1 for creatives in competitor_creatives if creatives)
            if with_ads < self.config.min_competitors_with_ads:
                logger.warning(
                    f"Only {with_ads}/{len(competitors)} competitors returned ads; "
                    f"gap analysis will be less reliable"
                )

            # Step 2: Classification
            all_creatives = [c for creatives in creative_lists for c in creatives]
            with lf.span("classify_creatives", creative_count=len(all_creatives)):
                classifications = await self.classifier.classify(all_creatives)

            # Step 3: Profiles, gaps, market
            subject_profile = self.aggregator.aggregate(subject.name, subject_creatives, classifications)
            competitor_profiles = [
                self.aggregator.aggregate(entity.name, creatives, classifications)
                for entity, creatives in zip(competitors, competitor_creatives)
            ]
            gaps = self.gap_analyzer.compute_gaps(subject_profile, competitor_profiles)
            market_insights = self.market_synthesizer.synthesize(competitor_profiles)

            # Step 4: Recommendations
            samples = {
                entity.name: [(c, classifications.get(c.id)) for c in creatives]
                for entity, creatives in zip([subject] + competitors, creative_lists)
            }
            prompt = self.recommendations.build_prompt(
                subject_profile, competitor_profiles, gaps, market_insights, samples
            )
            with lf.span("generate_recommendations"):
                report = await self.recommendations.recommend(prompt)

            result = AnalysisResult(
                analysis_id=uuid4(),
                subject=subject_profile,
                competitors=competitor_profiles,
                gaps=gaps,
                recommendations=report.recommendations,
                market_insights=market_insights,
                narrative=report.narrative,
                platform=self.config.platform,
                subject_domain=subject.domain,
                created_at=datetime.now(timezone.utc),
            )

            # Step 5: Persistence
            if self.repository is not None:
                links = build_ad_links(
                    [(subject, subject_creatives)] + list(zip(competitors, competitor_creatives)),
                    classifications,
                )
                with lf.span("persist_analysis", analysis_id=str(result.analysis_id)):
                    self.repository.store(result, links)

            logger.info(
                f"Competitive analysis {result.analysis_id} complete: "
                f"{subject_profile.ad_count} subject ads, {result.total_competitor_ads} competitor ads, "
                f"{len(gaps.missing_hooks)} missing hooks, {len(result.recommendations)} recommendations"
            )
            return result

    async def retrieve_all(self, entities: Sequence[CompetitorEntity]) -> List[List[AdCreative]]:
        """Retrieve creatives for every entity, bounded by retrieval_concurrency.

        The returned list is index-aligned with ``entities``; a failed or
        timed-out retrieval leaves an empty list in its slot.

        Retrievers run on a pool owned by this call. Threads still blocked
        past their deadline are abandoned on return, so a hung scraper never
        holds up event loop shutdown.
        """
        semaphore = asyncio.Semaphore(self.config.retrieval_concurrency)
        executor = ThreadPoolExecutor(
            max_workers=self.config.retrieval_concurrency,
            thread_name_prefix="ad-retrieval",
        )

        async def bounded(entity: CompetitorEntity) -> List[AdCreative]:
            async with semaphore:
                return await self._retrieve_safely(entity, executor)

        try:
            return list(await asyncio.gather(*(bounded(e) for e in entities)))
        finally:
            executor.shutdown(wait=False, cancel_futures=True)

    async def _retrieve_safely(self, entity: CompetitorEntity, executor: Executor) -> List[AdCreative]:
        loop = asyncio.get_running_loop()
        try:
            creatives = await asyncio.wait_for(
                loop.run_in_executor(
                    executor,
                    lambda: self.retriever.retrieve(entity, self.config.max_ads, self.config.days_back),
                ),
                timeout=self.config.retrieval_timeout_sec,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Retrieval timed out for {entity.name} after {self.config.retrieval_timeout_sec}s"
            )
            return []
        except Exception as e:
            logger.warning(f"Retrieval failed for {entity.name}: {type(e).__name__}: {e}")
            return []

        creatives = list(creatives or [])
        if not creatives:
            logger.warning(f"No ads found for {entity.name}")
        else:
            logger.info(f"Retrieved {len(creatives)} ads for {entity.name}")
        return creatives


def build_ad_links(
    brands: Sequence[Tuple[CompetitorEntity, Sequence[AdCreative]]],
    classifications: Dict[str, AdClassification],
) -> List[AdLink]:
    """One AdLink per retrieved creative, subject first."""
    links = []
    for entity, creatives in brands:
        for creative in creatives:
            classification = classifications.get(creative.id)
            links.append(
                AdLink(
                    ad_id=creative.id,
                    brand_name=entity.name,
                    is_subject=entity.is_subject,
                    hook_category=classification.hook_type.value if classification else "Other",
                    creative_format=detect_creative_format(creative).value,
                )
            )
    return links
