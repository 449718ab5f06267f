"""User strike ledger.

Each penalized moderation decision appends one :class:`UserStrike` row.
Rows are never updated by the ledger itself, and a failed write never
fails the moderation decision that triggered it.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from streamcentives.moderation.errors import PersistenceError
from streamcentives.moderation.models import Action, Severity, UserStrike
from streamcentives.moderation.store import ModerationStore

logger = logging.getLogger(__name__)

STRIKE_TTL = timedelta(days=30)
SHADOW_BAN_TTL = timedelta(hours=24)
RESTRICTION_TTL = timedelta(days=7)

_STRIKES_BY_SEVERITY = {
    Severity.CRITICAL: 3,
    Severity.HIGH: 2,
    Severity.MEDIUM: 1,
    Severity.LOW: 1,
}


def strike_count_for(severity: Severity) -> int:
    return _STRIKES_BY_SEVERITY[severity]


def build_strike(
    user_id: str,
    moderation_id: str,
    severity: Severity,
    final_action: Action,
    now: Optional[datetime] = None,
) -> UserStrike:
    """Compute the strike row for one decision without persisting it.

    A shadow ban and a restriction are never set by the same decision.
    """
    now = now or datetime.now(timezone.utc)
    strike = UserStrike(
        user_id=user_id,
        moderation_id=moderation_id,
        strike_count=strike_count_for(severity),
        strike_severity=severity,
        strike_expires_at=(now + STRIKE_TTL).isoformat(),
        created_at=now.isoformat(),
    )
    if final_action == Action.SHADOW_BAN:
        strike.is_shadow_banned = True
        strike.shadow_ban_expires_at = (now + SHADOW_BAN_TTL).isoformat()
    elif final_action == Action.CONTENT_REMOVED and severity == Severity.CRITICAL:
        strike.is_restricted = True
        strike.restriction_expires_at = (now + RESTRICTION_TTL).isoformat()
    return strike


def _active(expires_at: Optional[str], now: datetime) -> bool:
    if not expires_at:
        return False
    return datetime.fromisoformat(expires_at) > now


class StrikeLedger:
    """Append-only strike bookkeeping on top of a :class:`ModerationStore`."""

    def __init__(self, store: ModerationStore) -> None:
        self._store = store

    def record(
        self,
        user_id: str,
        moderation_id: str,
        severity: Severity,
        final_action: Action,
        now: Optional[datetime] = None,
    ) -> Optional[UserStrike]:
        """Write a strike for a penalized decision.

        Returns the stored strike, or ``None`` when nothing was written
        (approved content, or a failed write which is logged).
        """
        if final_action == Action.APPROVED:
            return None

        strike = build_strike(user_id, moderation_id, severity, final_action, now)
        try:
            self._store.insert_strike(strike)
        except PersistenceError:
            logger.error(
                "Error recording strike for user %s (moderation %s)",
                user_id,
                moderation_id,
                exc_info=True,
            )
            return None

        logger.info(
            "Applied moderation action to user %s: action=%s strikes=%d shadow_banned=%s restricted=%s",
            user_id,
            final_action.value,
            strike.strike_count,
            strike.is_shadow_banned,
            strike.is_restricted,
        )
        return strike

    # -- queries -------------------------------------------------------------

    def active_strike_count(self, user_id: str, now: Optional[datetime] = None) -> int:
        """Sum of strike counts whose 30-day window has not elapsed."""
        now = now or datetime.now(timezone.utc)
        return sum(
            s.strike_count
            for s in self._store.list_strikes(user_id)
            if _active(s.strike_expires_at, now)
        )

    def is_restricted(self, user_id: str, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return any(
            s.is_restricted and _active(s.restriction_expires_at, now)
            for s in self._store.list_strikes(user_id)
        )

    def is_shadow_banned(self, user_id: str, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        return any(
            s.is_shadow_banned and _active(s.shadow_ban_expires_at, now)
            for s in self._store.list_strikes(user_id)
        )

    def history(self, user_id: str) -> list[UserStrike]:
        """All strikes for *user_id*, newest first."""
        strikes = self._store.list_strikes(user_id)
        strikes.sort(key=lambda s: s.created_at, reverse=True)
        return strikes
