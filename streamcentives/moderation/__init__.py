"""Content moderation pipeline: classify, normalize, decide, escalate."""

from streamcentives.moderation.errors import (
    ClassifierError,
    ClassifierUnavailable,
    InvalidRequest,
    ModerationError,
    PersistenceError,
)
from streamcentives.moderation.models import (
    Action,
    ModerationRecord,
    ModerationVerdict,
    ReviewQueueEntry,
    Severity,
    UserStrike,
)
from streamcentives.moderation.pipeline import (
    ModerationOutcome,
    ModerationPipeline,
    ModerationRequest,
    content_hash,
)
from streamcentives.moderation.policy import ModerationThresholds, evaluate

__all__ = [
    "Action",
    "ClassifierError",
    "ClassifierUnavailable",
    "InvalidRequest",
    "ModerationError",
    "ModerationOutcome",
    "ModerationPipeline",
    "ModerationRecord",
    "ModerationRequest",
    "ModerationThresholds",
    "ModerationVerdict",
    "PersistenceError",
    "ReviewQueueEntry",
    "Severity",
    "UserStrike",
    "content_hash",
    "evaluate",
]
