"""Threshold policy engine.

Maps a sanitized verdict to the action actually taken.  The rules form a
priority-ordered list; the first rule that matches wins, so stronger
interventions are preferred when several thresholds are met.

Thresholds are passed in explicitly.  They are normally built from the
settings rows in the store (see :meth:`ModerationThresholds.from_settings`)
layered over an optional YAML file (see :func:`load_thresholds`), with the
named defaults below filling anything that is missing.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml

from streamcentives.moderation.models import Action, ModerationVerdict, Severity

AUTO_REMOVE_SETTING = "auto_remove_threshold"
SHADOW_BAN_SETTING = "shadow_ban_threshold"
MANUAL_REVIEW_SETTING = "manual_review_threshold"
THRESHOLD_SETTINGS = (AUTO_REMOVE_SETTING, SHADOW_BAN_SETTING, MANUAL_REVIEW_SETTING)

DEFAULT_AUTO_REMOVE_CONFIDENCE = 0.9
DEFAULT_AUTO_REMOVE_SEVERITY = Severity.CRITICAL
DEFAULT_SHADOW_BAN_CONFIDENCE = 0.7
DEFAULT_SHADOW_BAN_SEVERITY = Severity.HIGH
DEFAULT_MANUAL_REVIEW_CONFIDENCE = 0.5

# Severities that rule 2 and rule 3 act on
AUTO_REMOVE_SEVERITIES = frozenset({Severity.CRITICAL, Severity.HIGH})
SHADOW_BAN_SEVERITIES = frozenset({Severity.HIGH})


@dataclass(frozen=True)
class Threshold:
    """A confidence gate with the severity it was configured for."""

    confidence: float
    severity: Severity | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"confidence": self.confidence}
        if self.severity is not None:
            data["severity"] = self.severity.value
        return data


def _threshold(value: Any, default: Threshold) -> Threshold:
    if not isinstance(value, Mapping):
        return default
    confidence = value.get("confidence", default.confidence)
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        confidence = default.confidence
    try:
        confidence = float(confidence)
    except OverflowError:
        confidence = default.confidence
    if math.isnan(confidence):
        confidence = default.confidence
    severity = default.severity
    raw_severity = value.get("severity")
    if isinstance(raw_severity, str):
        try:
            severity = Severity(raw_severity)
        except ValueError:
            pass
    return Threshold(confidence=min(max(confidence, 0.0), 1.0), severity=severity)


@dataclass(frozen=True)
class ModerationThresholds:
    """Read-only threshold configuration for one evaluation."""

    auto_remove: Threshold = field(
        default_factory=lambda: Threshold(
            DEFAULT_AUTO_REMOVE_CONFIDENCE, DEFAULT_AUTO_REMOVE_SEVERITY
        )
    )
    shadow_ban: Threshold = field(
        default_factory=lambda: Threshold(
            DEFAULT_SHADOW_BAN_CONFIDENCE, DEFAULT_SHADOW_BAN_SEVERITY
        )
    )
    manual_review: Threshold = field(
        default_factory=lambda: Threshold(DEFAULT_MANUAL_REVIEW_CONFIDENCE)
    )

    @classmethod
    def from_settings(
        cls,
        settings: Mapping[str, Any] | None,
        defaults: ModerationThresholds | None = None,
    ) -> ModerationThresholds:
        """Build thresholds from ``{setting_name: setting_value}`` rows.

        Each missing or malformed row falls back independently to the
        matching threshold in *defaults* (the built-in defaults when None).
        """
        settings = settings or {}
        defaults = defaults or cls()
        return cls(
            auto_remove=_threshold(settings.get(AUTO_REMOVE_SETTING), defaults.auto_remove),
            shadow_ban=_threshold(settings.get(SHADOW_BAN_SETTING), defaults.shadow_ban),
            manual_review=_threshold(
                settings.get(MANUAL_REVIEW_SETTING), defaults.manual_review
            ),
        )

    def to_settings(self) -> dict[str, dict[str, Any]]:
        return {
            AUTO_REMOVE_SETTING: self.auto_remove.to_dict(),
            SHADOW_BAN_SETTING: self.shadow_ban.to_dict(),
            MANUAL_REVIEW_SETTING: self.manual_review.to_dict(),
        }


def load_thresholds(path: str | Path) -> ModerationThresholds:
    """Load thresholds from a YAML file keyed by setting name."""
    with open(path) as f:
        data = yaml.safe_load(f)
    return ModerationThresholds.from_settings(data if isinstance(data, dict) else {})


@dataclass(frozen=True)
class PolicyDecision:
    """Result of evaluating a verdict."""

    final_action: Action
    requires_manual_review: bool = False
    rule: str = ""

    @property
    def penalizes(self) -> bool:
        return self.final_action != Action.APPROVED


def evaluate(
    verdict: ModerationVerdict,
    thresholds: ModerationThresholds | None = None,
) -> PolicyDecision:
    """Compute the final action for *verdict*.

    ``verdict.recommended_action`` is not consulted; the locally computed
    action is authoritative.
    """
    thresholds = thresholds or ModerationThresholds()

    if verdict.is_appropriate:
        return PolicyDecision(Action.APPROVED, rule="appropriate")

    if (
        verdict.confidence >= thresholds.auto_remove.confidence
        and verdict.severity in AUTO_REMOVE_SEVERITIES
    ):
        return PolicyDecision(Action.CONTENT_REMOVED, rule=AUTO_REMOVE_SETTING)

    if (
        verdict.confidence >= thresholds.shadow_ban.confidence
        and verdict.severity in SHADOW_BAN_SEVERITIES
    ):
        return PolicyDecision(Action.SHADOW_BAN, rule=SHADOW_BAN_SETTING)

    if verdict.confidence >= thresholds.manual_review.confidence:
        return PolicyDecision(
            Action.MANUAL_REVIEW,
            requires_manual_review=True,
            rule=MANUAL_REVIEW_SETTING,
        )

    return PolicyDecision(Action.WARNING, rule="below_thresholds")
