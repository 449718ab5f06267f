"""Verdict normalizer.

Turns whatever the classifier returned into a complete
:class:`ModerationVerdict`.  It never raises: unparseable output becomes a
fail-closed verdict that routes the content to manual review.
"""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Optional

from streamcentives.moderation.models import (
    CATEGORIES,
    Action,
    ModerationVerdict,
    Severity,
)

logger = logging.getLogger(__name__)

PARSE_FAILURE_FLAG = "Unable to parse AI analysis - requires manual review"

# snake_case key -> accepted camelCase alias
_ALIASES = {
    "is_appropriate": "isAppropriate",
    "detected_language": "detectedLanguage",
    "recommended_action": "recommendedAction",
    "ai_analysis": "aiAnalysis",
}


def fail_closed_verdict(flag: str = PARSE_FAILURE_FLAG) -> ModerationVerdict:
    """The conservative verdict used when the classifier output is unusable."""
    return ModerationVerdict(
        is_appropriate=False,
        categories=frozenset({"community_standards"}),
        severity=Severity.MEDIUM,
        confidence=0.5,
        flags=[flag],
        detected_language="en",
        recommended_action=Action.MANUAL_REVIEW,
        ai_analysis={
            "reasoning": "AI analysis parsing failed, flagged for manual review",
            "context_notes": "Error in AI response parsing",
            "cultural_considerations": "N/A",
        },
    )


def _strip_fences(text: str) -> str:
    content = text.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content[: content.rfind("```")]
    return content.strip()


def _get(payload: dict[str, Any], key: str) -> Any:
    if key in payload:
        return payload[key]
    alias = _ALIASES.get(key)
    return payload.get(alias) if alias else None


def _as_bool(value: Any) -> bool:
    # Only a real boolean True counts as appropriate
    return value is True


def _as_severity(value: Any) -> Severity:
    if isinstance(value, str):
        try:
            return Severity(value.strip().lower())
        except ValueError:
            pass
    return Severity.MEDIUM


def _as_action(value: Any) -> Action:
    if isinstance(value, str):
        try:
            return Action(value.strip().lower())
        except ValueError:
            pass
    return Action.MANUAL_REVIEW


def _as_confidence(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.5
    try:
        value = float(value)
    except OverflowError:
        return 0.5
    if math.isnan(value):
        return 0.5
    return min(max(value, 0.0), 1.0)


def _as_categories(value: Any) -> frozenset[str]:
    if not isinstance(value, list):
        return frozenset()
    return frozenset(c for c in value if isinstance(c, str) and c in CATEGORIES)


def _as_flags(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [f for f in value if isinstance(f, str)]


def _as_language(value: Any) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return "en"


def normalize_verdict(raw: Optional[str | dict[str, Any]]) -> ModerationVerdict:
    """Build a well-formed verdict from a raw classifier payload.

    *raw* may be the classifier's text (optionally wrapped in markdown
    fences) or an already-decoded dict.  Missing or wrongly-typed fields are
    defaulted one by one.
    """
    payload: Any = raw
    if isinstance(raw, str):
        try:
            payload = json.loads(_strip_fences(raw))
        except (json.JSONDecodeError, ValueError):
            logger.warning("Failed to parse classifier response: %.200s", raw)
            return fail_closed_verdict()

    if not isinstance(payload, dict):
        logger.warning("Classifier response is not a JSON object: %r", type(payload))
        return fail_closed_verdict()

    ai_analysis = _get(payload, "ai_analysis")

    return ModerationVerdict(
        is_appropriate=_as_bool(_get(payload, "is_appropriate")),
        categories=_as_categories(_get(payload, "categories")),
        severity=_as_severity(_get(payload, "severity")),
        confidence=_as_confidence(_get(payload, "confidence")),
        flags=_as_flags(_get(payload, "flags")),
        detected_language=_as_language(_get(payload, "detected_language")),
        recommended_action=_as_action(_get(payload, "recommended_action")),
        ai_analysis=ai_analysis if isinstance(ai_analysis, dict) else {},
    )
