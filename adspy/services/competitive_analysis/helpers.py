"""Shared helpers for the competitive analysis engine.

Cross-cutting utilities used by the classifier, aggregator, gap analyzer
and market synthesizer:
- String normalization and order-preserving dedup
- Ad length bucketing (deterministic backstop for the classifier)
- Plurality vote over count maps with a deterministic tie-break
- JSON extraction from loosely formatted LLM responses
"""

from __future__ import annotations

import json
import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from .models import AdLength

SHORT_AD_MAX_CHARS = 80
MEDIUM_AD_MAX_CHARS = 250

_CODE_FENCE_RE = re.compile(r"```(?:json)?\s*", re.IGNORECASE)


# =============================================================================
# Strings
# =============================================================================

def normalize_key(value: str) -> str:
    """Trim + lowercase, used for all case-insensitive comparisons."""
    return value.strip().lower()


def append_unique(target: List[str], value: Optional[str]) -> bool:
    """Append value to target unless empty or already present.

    Membership is case-insensitive and ignores surrounding whitespace.
    The trimmed value is stored; order of first appearance is kept.

    Returns:
        True if the value was appended.
    """
    if not value or not isinstance(value, str):
        return False
    cleaned = value.strip()
    if not cleaned:
        return False
    key = normalize_key(cleaned)
    if any(normalize_key(existing) == key for existing in target):
        return False
    target.append(cleaned)
    return True


def dedupe(values: Iterable[Optional[str]]) -> List[str]:
    """Order-preserving, case-insensitive dedup of non-empty strings."""
    result: List[str] = []
    for value in values:
        append_unique(result, value)
    return result


# =============================================================================
# Ad Length
# =============================================================================

def ad_length_for_text(text: Optional[str]) -> AdLength:
    """Bucket ad copy by character count: <80 short, 80-250 medium, >250 long."""
    length = len(text or "")
    if length < SHORT_AD_MAX_CHARS:
        return AdLength.SHORT
    if length <= MEDIUM_AD_MAX_CHARS:
        return AdLength.MEDIUM
    return AdLength.LONG


# =============================================================================
# Plurality
# =============================================================================

def top_of(counts: Mapping[str, int], fallback: str) -> str:
    """Return the key with the highest positive count.

    Ties are broken alphabetically (case-insensitive, then exact) so the
    result never depends on insertion order. Keys with a count of zero
    are ignored; an empty or all-zero map returns fallback.
    """
    candidates = [(key, count) for key, count in counts.items() if count > 0]
    if not candidates:
        return fallback
    best_key, _ = min(candidates, key=lambda kv: (-kv[1], kv[0].lower(), kv[0]))
    return best_key


def add_counts(target: Dict[str, int], source: Mapping[str, int]) -> None:
    """Add every count in source into target (in place)."""
    for key, count in source.items():
        target[key] = target.get(key, 0) + count


# =============================================================================
# LLM response parsing
# =============================================================================

def strip_code_fences(text: str) -> str:
    """Remove markdown ``` / ```json fences anywhere in the text."""
    return _CODE_FENCE_RE.sub("", text).replace("```", "").strip()


def extract_json_array(text: Optional[str]) -> List[Any]:
    """Extract and parse the first JSON array embedded in a response.

    Tries every '[' as a start position and lets the JSON decoder find the
    matching end, so leading prose or trailing commentary is ignored.

    Raises:
        ValueError: If no well-formed array is present.
    """
    if not text:
        raise ValueError("Empty response")
    cleaned = strip_code_fences(text)
    decoder = json.JSONDecoder()
    start = cleaned.find("[")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            start = cleaned.find("[", start + 1)
            continue
        if isinstance(value, list):
            return value
        start = cleaned.find("[", start + 1)
    raise ValueError("No JSON array found in response")


def extract_json_object(text: Optional[str]) -> Dict[str, Any]:
    """Extract and parse the first JSON object embedded in a response.

    Raises:
        ValueError: If no well-formed object is present.
    """
    if not text:
        raise ValueError("Empty response")
    cleaned = strip_code_fences(text)
    decoder = json.JSONDecoder()
    start = cleaned.find("{")
    while start != -1:
        try:
            value, _ = decoder.raw_decode(cleaned, start)
        except json.JSONDecodeError:
            start = cleaned.find("{", start + 1)
            continue
        if isinstance(value, dict):
            return value
        start = cleaned.find("{", start + 1)
    raise ValueError("No JSON object found in response")
