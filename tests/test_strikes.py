"""Tests for the user strike ledger."""

from datetime import datetime, timedelta, timezone

from streamcentives.moderation.errors import PersistenceError
from streamcentives.moderation.models import Action, Severity
from streamcentives.moderation.strikes import StrikeLedger, build_strike

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_strike_count_by_severity():
    expected = {Severity.CRITICAL: 3, Severity.HIGH: 2, Severity.MEDIUM: 1, Severity.LOW: 1}
    for severity, count in expected.items():
        assert build_strike("u1", "m1", severity, Action.WARNING, NOW).strike_count == count


def test_strike_expires_after_30_days():
    strike = build_strike("u1", "m1", Severity.LOW, Action.WARNING, NOW)
    assert datetime.fromisoformat(strike.strike_expires_at) == NOW + timedelta(days=30)
    assert not strike.is_shadow_banned
    assert not strike.is_restricted
    assert strike.shadow_ban_expires_at is None
    assert strike.restriction_expires_at is None


def test_shadow_ban_sets_24h_window_only():
    strike = build_strike("u1", "m1", Severity.HIGH, Action.SHADOW_BAN, NOW)
    assert strike.is_shadow_banned
    assert datetime.fromisoformat(strike.shadow_ban_expires_at) == NOW + timedelta(hours=24)
    assert not strike.is_restricted
    assert strike.restriction_expires_at is None


def test_critical_removal_restricts_for_7_days():
    strike = build_strike("u1", "m1", Severity.CRITICAL, Action.CONTENT_REMOVED, NOW)
    assert strike.is_restricted
    assert datetime.fromisoformat(strike.restriction_expires_at) == NOW + timedelta(days=7)
    assert not strike.is_shadow_banned
    assert strike.shadow_ban_expires_at is None


def test_non_critical_removal_has_no_restriction():
    strike = build_strike("u1", "m1", Severity.HIGH, Action.CONTENT_REMOVED, NOW)
    assert strike.strike_count == 2
    assert not strike.is_restricted
    assert strike.restriction_expires_at is None


def test_record_appends_rows(store):
    ledger = StrikeLedger(store)
    ledger.record("u1", "m1", Severity.MEDIUM, Action.MANUAL_REVIEW, NOW)
    ledger.record("u1", "m2", Severity.HIGH, Action.SHADOW_BAN, NOW + timedelta(hours=1))
    ledger.record("u2", "m3", Severity.LOW, Action.WARNING, NOW)

    history = ledger.history("u1")
    assert [s.moderation_id for s in history] == ["m2", "m1"]
    assert len(ledger.history("u2")) == 1


def test_record_skips_approved(store):
    ledger = StrikeLedger(store)
    assert ledger.record("u1", "m1", Severity.CRITICAL, Action.APPROVED, NOW) is None
    assert ledger.history("u1") == []


def test_record_swallows_write_failure(store, monkeypatch):
    def fail(strike):
        raise PersistenceError("disk full")

    monkeypatch.setattr(store, "insert_strike", fail)
    ledger = StrikeLedger(store)
    assert ledger.record("u1", "m1", Severity.HIGH, Action.SHADOW_BAN, NOW) is None


def test_active_strike_count_ignores_expired(store):
    ledger = StrikeLedger(store)
    ledger.record("u1", "m1", Severity.CRITICAL, Action.CONTENT_REMOVED, NOW - timedelta(days=40))
    ledger.record("u1", "m2", Severity.HIGH, Action.SHADOW_BAN, NOW - timedelta(days=2))
    ledger.record("u1", "m3", Severity.LOW, Action.WARNING, NOW)
    assert ledger.active_strike_count("u1", NOW) == 3


def test_restriction_and_shadow_ban_windows(store):
    ledger = StrikeLedger(store)
    ledger.record("u1", "m1", Severity.CRITICAL, Action.CONTENT_REMOVED, NOW)
    ledger.record("u2", "m2", Severity.HIGH, Action.SHADOW_BAN, NOW)

    assert ledger.is_restricted("u1", NOW + timedelta(days=6))
    assert not ledger.is_restricted("u1", NOW + timedelta(days=8))
    assert not ledger.is_shadow_banned("u1", NOW)

    assert ledger.is_shadow_banned("u2", NOW + timedelta(hours=23))
    assert not ledger.is_shadow_banned("u2", NOW + timedelta(hours=25))
    assert not ledger.is_restricted("u2", NOW)
