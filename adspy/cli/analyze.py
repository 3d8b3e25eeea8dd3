"""
Competitive Analysis CLI Commands

Run a 1-vs-5 ad gap analysis and read back stored results.
"""

import asyncio
import logging
from typing import Optional, Tuple
from urllib.parse import quote
from uuid import UUID

import click

from ..core.config import Config
from ..services.ad_retrieval import detect_platform, get_retriever
from ..services.competitive_analysis.competitive_analysis_service import (
    CompetitiveAnalysisService,
    validate_competitor_set,
)
from ..services.competitive_analysis.exceptions import InvalidCompetitorSetError, NoSubjectAdsError
from ..services.competitive_analysis.models import (
    AnalysisConfig,
    AnalysisResult,
    CompetitorEntity,
    Platform,
)
from ..services.competitive_analysis.repository import CompetitiveAnalysisRepository
from ..services.gemini_service import GeminiService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="[%(asctime)s] %(levelname)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S"
)

logger = logging.getLogger(__name__)

EXIT_INVALID_INPUT = 2
EXIT_NO_SUBJECT_ADS = 3

TRANSPARENCY_URL = "https://adstransparency.google.com/?region={region}&domain={domain}"


def parse_brand(value: str, is_subject: bool, platform: Platform, region: str = "US") -> CompetitorEntity:
    """
    Parse a NAME=DOMAIN option into a CompetitorEntity.

    For Google the Transparency Center URL is built from the domain.

    Raises:
        click.BadParameter: If the value is not NAME=DOMAIN
    """
    name, sep, domain = value.partition("=")
    if not sep or not name.strip() or not domain.strip():
        raise click.BadParameter(f"Expected NAME=DOMAIN, got '{value}'")

    domain = domain.strip()
    transparency_url = None
    if platform == Platform.GOOGLE:
        transparency_url = TRANSPARENCY_URL.format(region=region, domain=quote(domain, safe=""))

    return CompetitorEntity(
        name=name.strip(),
        domain=domain,
        is_subject=is_subject,
        ad_transparency_url=transparency_url,
    )


def build_service(config: AnalysisConfig) -> CompetitiveAnalysisService:
    """Wire the analysis service against Apify, Gemini and Supabase."""
    classifier_client = GeminiService(model=Config.get_model("classifier"))
    recommendation_client = GeminiService(model=Config.get_model("recommendation"))
    return CompetitiveAnalysisService(
        retriever=get_retriever(config.platform, timeout=int(config.retrieval_timeout_sec)),
        classification_client=classifier_client,
        recommendation_client=recommendation_client,
        repository=CompetitiveAnalysisRepository(),
        config=config,
    )


@click.command('analyze')
@click.option('--subject', '-s', required=True, help='Subject brand as NAME=DOMAIN')
@click.option('--competitor', '-c', 'competitors', multiple=True, required=True,
              help='Competitor brand as NAME=DOMAIN (repeat 5 times)')
@click.option('--platform', type=click.Choice(['facebook', 'google']), default=None,
              help='Ad platform (default: detected from subject domain)')
@click.option('--region', default='US', help='Region for Google Ads Transparency Center')
@click.option('--max-ads', type=int, default=None, help='Max ads per brand')
@click.option('--days-back', type=int, default=None, help='Only ads from the last N days')
@click.option('--json', 'as_json', is_flag=True, help='Print the full result as JSON')
def analyze_command(
    subject: str,
    competitors: Tuple[str, ...],
    platform: Optional[str],
    region: str,
    max_ads: Optional[int],
    days_back: Optional[int],
    as_json: bool
):
    """
    Run a 1-vs-5 competitive ad gap analysis

    Example:
        adspy analyze -s "Acme=facebook.com/acme" -c "A=facebook.com/a" -c "B=facebook.com/b" ...
    """
    subject_domain = subject.partition("=")[2].strip()
    resolved = Platform(platform) if platform else detect_platform(subject_domain)

    entities = [parse_brand(subject, True, resolved, region)]
    entities += [parse_brand(value, False, resolved, region) for value in competitors]

    config = AnalysisConfig.from_env(platform=resolved, max_ads=max_ads, days_back=days_back)

    if not as_json:
        click.echo(f"Analyzing {entities[0].name} vs {len(competitors)} competitors on {resolved.value}...")
        click.echo()

    try:
        validate_competitor_set(entities)
        service = build_service(config)
        result = asyncio.run(service.analyze(entities))
    except InvalidCompetitorSetError as e:
        click.echo(f"❌ Invalid competitor set: {e}", err=True)
        raise SystemExit(EXIT_INVALID_INPUT)
    except NoSubjectAdsError as e:
        click.echo(f"❌ {e}", err=True)
        raise SystemExit(EXIT_NO_SUBJECT_ADS)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
    else:
        _print_result(result)


@click.command('show')
@click.argument('analysis_id', type=click.UUID)
@click.option('--json', 'as_json', is_flag=True, help='Print the full result as JSON')
def show_command(analysis_id: UUID, as_json: bool):
    """Show a stored analysis"""
    result = CompetitiveAnalysisRepository().fetch(analysis_id)
    if result is None:
        click.echo(f"❌ Analysis not found: {analysis_id}", err=True)
        raise SystemExit(1)

    if as_json:
        click.echo(result.model_dump_json(indent=2))
    else:
        _print_result(result)


@click.command('recent')
@click.option('--limit', type=int, default=20, help='Number of analyses to list')
def recent_command(limit: int):
    """List recent analyses"""
    summaries = CompetitiveAnalysisRepository().list_recent(limit=limit)
    if not summaries:
        click.echo("No analyses found")
        return

    for summary in summaries:
        analyzed = summary.analyzed_at.strftime("%Y-%m-%d %H:%M") if summary.analyzed_at else "-"
        click.echo(
            f"{summary.analysis_id}  {analyzed}  {summary.subject_brand_name} "
            f"[{summary.platform}]  subject ads: {summary.total_subject_ads}, "
            f"competitor ads: {summary.total_competitor_ads}"
        )


def _print_result(result: AnalysisResult) -> None:
    subject = result.subject
    click.echo("=" * 80)
    click.echo(f"Analysis {result.analysis_id}")
    click.echo("=" * 80)
    click.echo(f"Subject: {subject.name} ({subject.ad_count} ads)")
    click.echo(f"  Top hooks: {', '.join(subject.top_hooks()) or 'None'}")
    click.echo()

    click.echo("Competitors:")
    for competitor in result.competitors:
        hooks = ', '.join(competitor.top_hooks()) or 'None'
        click.echo(f"  {competitor.name}: {competitor.ad_count} ads | top hooks: {hooks}")
    click.echo()

    gaps = result.gaps
    click.echo("Gaps:")
    for label, values in (
        ("Missing hooks", gaps.missing_hooks),
        ("Underutilized formats", gaps.underutilized_formats),
        ("Missing CTAs", gaps.missing_ctas),
        ("Missing trust signals", gaps.missing_trust_signals),
        ("Tone gaps", gaps.tone_gaps),
        ("Competitor offers", gaps.competitor_offers),
        ("Out-running competitors", gaps.winning_competitors),
    ):
        click.echo(f"  {label}: {', '.join(values) or 'None'}")
    click.echo()

    market = result.market_insights
    click.echo("Market:")
    click.echo(
        f"  Hook: {market.dominant_hook_type} | Format: {market.dominant_format} | "
        f"Tone: {market.dominant_tone} | CTA: {market.most_common_cta}"
    )
    click.echo(
        f"  Trust signal: {market.most_common_trust_signal} | "
        f"Avg competitor ads: {market.average_competitor_ad_count}"
    )
    click.echo()

    click.echo(f"Why {subject.name} is losing: {result.narrative.why_subject_is_losing}")
    if result.narrative.best_competitor:
        click.echo(f"Best competitor: {result.narrative.best_competitor}")
    click.echo()

    click.echo("Recommendations:")
    for i, rec in enumerate(result.recommendations, start=1):
        click.echo(f"  {i}. [{rec.priority.value.upper()}] {rec.action}")
        click.echo(f"     Example: {rec.example}")
        click.echo(f"     Do now: {rec.implementation}")

