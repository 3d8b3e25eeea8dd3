"""CreativeClassifier — eleven-dimension classification of ad creatives.

Creatives are sent to the classification service in fixed-size batches
(8 by default). Batches run one at a time unless the run config allows a
second worker.

Each batch response is expected to be a JSON array of items keyed by their
in-batch "index". Parsing is lenient:
- markdown fences and surrounding prose are ignored
- items with an unknown / out-of-range index are dropped
- every field is validated on its own and replaced by its fallback value
  when missing or outside its closed set

A batch that fails outright (transport error, timeout, unparsable text)
gets a locally computed fallback classification for every creative, so
the returned map always covers every input creative.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional, Sequence

from ...core.observability import get_logfire
from .exceptions import ClassificationResponseError
from .helpers import ad_length_for_text, extract_json_array, normalize_key
from .models import (
    AdClassification,
    AdCreative,
    AdLength,
    AnalysisConfig,
    HookType,
    Tone,
)

logger = logging.getLogger(__name__)

FALLBACK_HEADLINE_CHARS = 60

_EMPTY_MARKERS = {"", "null", "none", "n/a", "na"}

_HOOK_ALIASES = {
    "discount": HookType.DISCOUNT_URGENCY,
    "urgency": HookType.DISCOUNT_URGENCY,
    "scarcity": HookType.DISCOUNT_URGENCY,
    "fomo": HookType.FEAR_OF_LOSS,
    "problemagitatesolution": HookType.PROBLEM_AGITATE,
    "curiosity": HookType.CURIOSITY_GAP,
    "education": HookType.EDUCATIONAL,
}

CLASSIFICATION_PROMPT = """You are an expert media buyer analyzing ads across 11 dimensions.

For each ad, extract:
1. hookType — one of: {hook_types}
2. headline — core value proposition in 1 sentence (max 15 words)
3. cta — call-to-action type (e.g. "Free Quote", "Call Now", "Book Online", "Learn More", "Schedule Service", "Other")
4. offer — specific offer/discount/guarantee mentioned, or null
5. painPoint — the problem being solved, or null
6. audienceSignals — array of strings describing who this targets (e.g. ["homeowners", "new customers"])
7. tone — one of: {tones}
8. adLength — "short" (<80 chars), "medium" (80-250 chars), or "long" (>250 chars)
9. trustSignals — array of trust indicators found (e.g. ["satisfaction guarantee", "licensed", "5-star rated"]), empty array if none
10. uniqueSellingPoint — what makes this brand different, or null

**Ads to Analyze:**

{ads}
Return ONLY a valid JSON array, no markdown fences, no extra text.
One object per ad, with "index" set to the ad's number:
[
  {{
    "index": 0,
    "hookType": "Social Proof",
    "headline": "...",
    "cta": "Free Quote",
    "offer": "10% off first service",
    "painPoint": "pest infestation",
    "audienceSignals": ["homeowners", "families"],
    "tone": "Friendly",
    "adLength": "short",
    "trustSignals": ["licensed", "5-star rated"],
    "uniqueSellingPoint": "same-day service"
  }}
]"""


def fallback_headline(creative: AdCreative) -> str:
    """Headline used when the service gives none: title, else start of the copy."""
    if creative.title and creative.title.strip():
        return creative.title.strip()
    return (creative.text or "")[:FALLBACK_HEADLINE_CHARS].strip()


def fallback_classification(creative: AdCreative) -> AdClassification:
    """Deterministic local classification for a creative the service did not cover."""
    return AdClassification(
        hook_type=HookType.OTHER,
        headline=fallback_headline(creative),
        cta="Other",
        offer=None,
        pain_point=None,
        audience_signals=[],
        tone=Tone.PROFESSIONAL,
        ad_length=ad_length_for_text(creative.text),
        trust_signals=[],
        unique_selling_point=None,
        is_fallback=True,
    )


class CreativeClassifier:
    """Classifies creatives in sequential batches against a text-generation client.

    The client is anything exposing
    ``async generate_text(prompt: str, temperature: float = ...) -> str``
    (GeminiService in production, AsyncMock in tests).
    """

    TEMPERATURE = 0.2

    def __init__(
        self,
        client,
        batch_size: int = 8,
        max_text_chars: int = 400,
        concurrency: int = 1,
        timeout_sec: float = 120.0,
    ):
        """Initialize the classifier.

        Args:
            client: Text-generation client (see class docstring).
            batch_size: Creatives per service call.
            max_text_chars: Ad copy prefix embedded per creative.
            concurrency: Batches in flight at once (1 = strictly sequential).
            timeout_sec: Deadline per batch call.
        """
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self.client = client
        self.batch_size = batch_size
        self.max_text_chars = max_text_chars
        self.concurrency = concurrency
        self.timeout_sec = timeout_sec

    @classmethod
    def from_config(cls, client, config: AnalysisConfig) -> "CreativeClassifier":
        return cls(
            client,
            batch_size=config.batch_size,
            max_text_chars=config.max_text_chars,
            concurrency=config.classification_concurrency,
            timeout_sec=config.classification_timeout_sec,
        )

    async def classify(self, creatives: Sequence[AdCreative]) -> Dict[str, AdClassification]:
        """Classify every creative, keyed by creative id.

        Args:
            creatives: Creatives from all brands in the run.

        Returns:
            Map with exactly one classification per creative id.
        """
        creatives = list(creatives)
        if not creatives:
            return {}

        batches = [
            creatives[i:i + self.batch_size]
            for i in range(0, len(creatives), self.batch_size)
        ]
        semaphore = asyncio.Semaphore(self.concurrency)
        lf = get_logfire()

        logger.info(
            f"Classifying {len(creatives)} creatives in {len(batches)} batches "
            f"(batch_size={self.batch_size}, concurrency={self.concurrency})"
        )

        async def run_batch(batch_number: int, batch: List[AdCreative]) -> Dict[str, AdClassification]:
            async with semaphore:
                with lf.span("classify_batch", batch_number=batch_number, size=len(batch)):
                    return await self._classify_batch(batch_number, len(batches), batch)

        batch_results = await asyncio.gather(
            *(run_batch(n, batch) for n, batch in enumerate(batches, start=1))
        )

        classifications: Dict[str, AdClassification] = {}
        for result in batch_results:
            for creative_id, classification in result.items():
                classifications.setdefault(creative_id, classification)

        fallback_count = sum(1 for c in classifications.values() if c.is_fallback)
        logger.info(
            f"Classification complete: {len(classifications)} creatives, "
            f"{fallback_count} fallback"
        )
        return classifications

    async def _classify_batch(
        self,
        batch_number: int,
        batch_total: int,
        batch: List[AdCreative],
    ) -> Dict[str, AdClassification]:
        """Classify one batch; never raises."""
        logger.debug(f"Analyzing batch {batch_number}/{batch_total} ({len(batch)} ads)")
        try:
            prompt = self.build_prompt(batch)
            text = await asyncio.wait_for(
                self.client.generate_text(prompt, temperature=self.TEMPERATURE),
                timeout=self.timeout_sec,
            )
            parsed = self.parse_response(text, batch)
        except Exception as e:
            logger.error(
                f"Classification batch {batch_number}/{batch_total} failed, "
                f"using fallback for {len(batch)} ads: {type(e).__name__}: {e}"
            )
            return {creative.id: fallback_classification(creative) for creative in batch}

        missing = [creative for creative in batch if creative.id not in parsed]
        if missing:
            logger.warning(
                f"Batch {batch_number}/{batch_total}: {len(missing)} ads missing from "
                f"response, using fallback classification"
            )
            for creative in missing:
                parsed[creative.id] = fallback_classification(creative)
        return parsed

    # =========================================================================
    # Prompt
    # =========================================================================

    def build_prompt(self, batch: Sequence[AdCreative]) -> str:
        """Build the batch classification prompt (ads numbered by in-batch index)."""
        blocks = []
        for index, creative in enumerate(batch):
            text = creative.text or ""
            truncated = text[:self.max_text_chars]
            if len(text) > self.max_text_chars:
                truncated += "..."
            lines = [f"[Ad {index}]", f"Brand: {creative.brand_name}"]
            if creative.title:
                lines.append(f"Title: {creative.title}")
            if creative.image_ref:
                lines.append("[Has image]")
            if creative.video_ref:
                lines.append("[Has video]")
            if creative.image_description:
                lines.append(f"Image description: {creative.image_description}")
            lines.append(f"Ad text: {truncated}")
            blocks.append("\n".join(lines) + "\n")

        return CLASSIFICATION_PROMPT.format(
            hook_types=" | ".join(h.value for h in HookType),
            tones=" | ".join(t.value for t in Tone),
            ads="\n".join(blocks),
        )

    # =========================================================================
    # Response parsing
    # =========================================================================

    def parse_response(
        self,
        text: Optional[str],
        batch: Sequence[AdCreative],
    ) -> Dict[str, AdClassification]:
        """Map a batch response back to creative ids.

        Raises:
            ClassificationResponseError: If no JSON array can be extracted.
        """
        try:
            items = extract_json_array(text)
        except ValueError as e:
            raise ClassificationResponseError(str(e)) from e

        results: Dict[str, AdClassification] = {}
        for item in items:
            if not isinstance(item, dict):
                continue
            index = _coerce_index(item.get("index"))
            if index is None or not 0 <= index < len(batch):
                logger.debug(f"Discarding classification item with index {item.get('index')!r}")
                continue
            creative = batch[index]
            if creative.id in results:
                continue
            results[creative.id] = self._build_classification(item, creative)
        return results

    def _build_classification(self, item: Dict[str, Any], creative: AdCreative) -> AdClassification:
        headline = _optional_text(item.get("headline")) or fallback_headline(creative)
        return AdClassification(
            hook_type=normalize_hook_type(item.get("hookType")),
            headline=headline,
            cta=_optional_text(item.get("cta")) or "Other",
            offer=_optional_text(item.get("offer")),
            pain_point=_optional_text(item.get("painPoint")),
            audience_signals=_string_list(item.get("audienceSignals")),
            tone=normalize_tone(item.get("tone")),
            ad_length=_validated_ad_length(item.get("adLength"), creative),
            trust_signals=_string_list(item.get("trustSignals")),
            unique_selling_point=_optional_text(item.get("uniqueSellingPoint")),
        )


# =============================================================================
# Field normalizers
# =============================================================================

def _squash(value: str) -> str:
    return "".join(ch for ch in normalize_key(value) if ch.isalnum())


def normalize_hook_type(value: Any) -> HookType:
    """Map a raw hook label onto HookType, defaulting to OTHER."""
    if not isinstance(value, str) or not value.strip():
        return HookType.OTHER
    squashed = _squash(value)
    for hook in HookType:
        if _squash(hook.value) == squashed:
            return hook
    return _HOOK_ALIASES.get(squashed, HookType.OTHER)


def normalize_tone(value: Any) -> Tone:
    """Map a raw tone label onto Tone, defaulting to PROFESSIONAL."""
    if not isinstance(value, str) or not value.strip():
        return Tone.PROFESSIONAL
    squashed = _squash(value)
    for tone in Tone:
        if _squash(tone.value) == squashed:
            return tone
    return Tone.PROFESSIONAL


def _validated_ad_length(value: Any, creative: AdCreative) -> AdLength:
    if isinstance(value, str):
        try:
            return AdLength(value.strip().lower())
        except ValueError:
            pass
    return ad_length_for_text(creative.text)


def _coerce_index(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _optional_text(value: Any) -> Optional[str]:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    if cleaned.lower() in _EMPTY_MARKERS:
        return None
    return cleaned


def _string_list(value: Any) -> List[str]:
    if not isinstance(value, list):
        return []
    return [v.strip() for v in value if isinstance(v, str) and v.strip()]
