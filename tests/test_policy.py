"""Tests for the threshold policy engine."""

import tempfile

import yaml

from streamcentives.moderation.models import Action, ModerationVerdict, Severity
from streamcentives.moderation.policy import (
    ModerationThresholds,
    Threshold,
    evaluate,
    load_thresholds,
)


def _verdict(severity=Severity.MEDIUM, confidence=0.5, appropriate=False, recommended=Action.WARNING):
    return ModerationVerdict(
        is_appropriate=appropriate,
        severity=severity,
        confidence=confidence,
        recommended_action=recommended,
    )


def test_appropriate_is_always_approved():
    for severity in Severity:
        for confidence in (0.0, 0.5, 0.95, 1.0):
            decision = evaluate(_verdict(severity, confidence, appropriate=True))
            assert decision.final_action == Action.APPROVED
            assert not decision.requires_manual_review
            assert not decision.penalizes


def test_low_confidence_is_warning():
    for severity in Severity:
        for confidence in (0.0, 0.2, 0.49):
            decision = evaluate(_verdict(severity, confidence))
            assert decision.final_action == Action.WARNING
            assert not decision.requires_manual_review


def test_critical_high_confidence_is_removed():
    for confidence in (0.9, 0.95, 1.0):
        assert evaluate(_verdict(Severity.CRITICAL, confidence)).final_action == Action.CONTENT_REMOVED


def test_high_severity_auto_removal_beats_shadow_ban():
    # Both rule 2 and rule 3 match; the stronger intervention wins
    assert evaluate(_verdict(Severity.HIGH, 0.92)).final_action == Action.CONTENT_REMOVED


def test_high_severity_mid_confidence_is_shadow_ban():
    assert evaluate(_verdict(Severity.HIGH, 0.75)).final_action == Action.SHADOW_BAN


def test_critical_never_shadow_banned():
    # Critical at 0.75 misses auto-removal and shadow ban only applies to high
    decision = evaluate(_verdict(Severity.CRITICAL, 0.75))
    assert decision.final_action == Action.MANUAL_REVIEW


def test_severity_does_not_bypass_confidence_gate():
    decision = evaluate(_verdict(Severity.CRITICAL, 0.6))
    assert decision.final_action == Action.MANUAL_REVIEW
    assert decision.requires_manual_review


def test_medium_at_review_threshold():
    decision = evaluate(_verdict(Severity.MEDIUM, 0.55))
    assert decision.final_action == Action.MANUAL_REVIEW
    assert decision.requires_manual_review


def test_recommended_action_is_ignored():
    decision = evaluate(_verdict(Severity.LOW, 0.3, recommended=Action.CONTENT_REMOVED))
    assert decision.final_action == Action.WARNING


def test_custom_thresholds():
    thresholds = ModerationThresholds(
        auto_remove=Threshold(0.8, Severity.CRITICAL),
        shadow_ban=Threshold(0.6, Severity.HIGH),
        manual_review=Threshold(0.3),
    )
    assert evaluate(_verdict(Severity.CRITICAL, 0.85), thresholds).final_action == Action.CONTENT_REMOVED
    assert evaluate(_verdict(Severity.HIGH, 0.65), thresholds).final_action == Action.SHADOW_BAN
    assert evaluate(_verdict(Severity.LOW, 0.35), thresholds).final_action == Action.MANUAL_REVIEW


def test_thresholds_from_settings_fall_back_per_row():
    thresholds = ModerationThresholds.from_settings(
        {
            "auto_remove_threshold": {"confidence": 0.95, "severity": "critical"},
            "shadow_ban_threshold": "not a mapping",
        }
    )
    assert thresholds.auto_remove.confidence == 0.95
    assert thresholds.shadow_ban.confidence == 0.7
    assert thresholds.manual_review.confidence == 0.5


def test_thresholds_from_empty_settings_are_defaults():
    assert ModerationThresholds.from_settings(None) == ModerationThresholds()
    assert ModerationThresholds.from_settings({}) == ModerationThresholds()


def test_thresholds_settings_roundtrip():
    defaults = ModerationThresholds()
    assert ModerationThresholds.from_settings(defaults.to_settings()) == defaults


def test_load_thresholds_from_yaml():
    data = {
        "auto_remove_threshold": {"confidence": 0.85, "severity": "high"},
        "manual_review_threshold": {"confidence": 0.4},
    }
    with tempfile.NamedTemporaryFile(mode="w", suffix=".yaml", delete=False) as f:
        yaml.dump(data, f)
        f.flush()
        thresholds = load_thresholds(f.name)

    assert thresholds.auto_remove == Threshold(0.85, Severity.HIGH)
    assert thresholds.shadow_ban == Threshold(0.7, Severity.HIGH)
    assert thresholds.manual_review.confidence == 0.4


def test_decision_names_the_matching_rule():
    assert evaluate(_verdict(appropriate=True)).rule == "appropriate"
    assert evaluate(_verdict(Severity.CRITICAL, 0.95)).rule == "auto_remove_threshold"
    assert evaluate(_verdict(Severity.HIGH, 0.75)).rule == "shadow_ban_threshold"
    assert evaluate(_verdict(Severity.MEDIUM, 0.6)).rule == "manual_review_threshold"
    assert evaluate(_verdict(Severity.LOW, 0.1)).rule == "below_thresholds"


def test_severity_ordering():
    assert Severity.LOW < Severity.MEDIUM < Severity.HIGH < Severity.CRITICAL
    assert Severity.HIGH <= Severity.HIGH
    assert not Severity.CRITICAL < Severity.LOW
    assert max(Severity.MEDIUM, Severity.CRITICAL, Severity.LOW) == Severity.CRITICAL
    assert sorted([Severity.HIGH, Severity.LOW]) == [Severity.LOW, Severity.HIGH]


def test_oversized_setting_confidence_falls_back():
    thresholds = ModerationThresholds.from_settings(
        {"manual_review_threshold": {"confidence": 10**400}}
    )
    assert thresholds.manual_review.confidence == 0.5


def test_settings_override_base_thresholds_per_row():
    base = ModerationThresholds(
        shadow_ban=Threshold(0.6, Severity.HIGH),
        manual_review=Threshold(0.4),
    )
    thresholds = ModerationThresholds.from_settings(
        {"manual_review_threshold": {"confidence": 0.9}}, base
    )
    assert thresholds.auto_remove == ModerationThresholds().auto_remove
    assert thresholds.shadow_ban == Threshold(0.6, Severity.HIGH)
    assert thresholds.manual_review.confidence == 0.9
