"""End-to-end moderation of one content item.

Flow: classify -> normalize -> persist record (placeholder action) ->
evaluate thresholds -> record final action -> post-commit hooks.

The moderation record is the source of truth.  Strike and review-queue
writes run as post-commit hooks: their failures are logged and never
change the response.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from streamcentives.config import ModerationConfig
from streamcentives.llm.client import LLMClient
from streamcentives.moderation.classifier import ModerationClassifier
from streamcentives.moderation.errors import InvalidRequest, ModerationError
from streamcentives.moderation.models import (
    ModerationRecord,
    ModerationVerdict,
    ReviewQueueEntry,
    UserStrike,
)
from streamcentives.moderation.normalizer import normalize_verdict
from streamcentives.moderation.policy import (
    THRESHOLD_SETTINGS,
    ModerationThresholds,
    PolicyDecision,
    evaluate,
    load_thresholds,
)
from streamcentives.moderation.review_queue import ReviewQueue
from streamcentives.moderation.store import ModerationStore
from streamcentives.moderation.strikes import StrikeLedger

logger = logging.getLogger(__name__)


def content_hash(content: str) -> str:
    """SHA-256 hex digest of the UTF-8 bytes of *content* (dedup key only)."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


# ---------------------------------------------------------------------------
# Request / outcome
# ---------------------------------------------------------------------------


def _field(body: dict[str, Any], camel: str, snake: str) -> Any:
    return body[camel] if camel in body else body.get(snake)


@dataclass
class ModerationRequest:
    content: str
    content_id: str
    content_type: str
    user_id: str
    media_urls: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, body: Any) -> ModerationRequest:
        """Parse a request body (camelCase or snake_case keys).

        Raises :class:`InvalidRequest` if any required field is missing or empty.
        """
        if not isinstance(body, dict):
            raise InvalidRequest("Request body must be a JSON object")

        content = _field(body, "content", "content")
        content_id = _field(body, "contentId", "content_id")
        content_type = _field(body, "contentType", "content_type")
        user_id = _field(body, "userId", "user_id")
        if not all(
            isinstance(v, str) and v for v in (content, content_id, content_type, user_id)
        ):
            raise InvalidRequest("Content, contentId, contentType, and userId are required")

        media_urls = _field(body, "mediaUrls", "media_urls") or []
        if not isinstance(media_urls, list) or not all(isinstance(u, str) for u in media_urls):
            raise InvalidRequest("mediaUrls must be a list of strings")

        return cls(
            content=content,
            content_id=content_id,
            content_type=content_type,
            user_id=user_id,
            media_urls=list(media_urls),
        )


@dataclass
class ModerationOutcome:
    record: ModerationRecord
    decision: PolicyDecision
    strike: Optional[UserStrike] = None
    queue_entry: Optional[ReviewQueueEntry] = None

    @property
    def verdict(self) -> ModerationVerdict:
        return self.record.verdict

    def to_response(self) -> dict[str, Any]:
        verdict = self.verdict
        return {
            "success": True,
            "contentId": self.record.content_id,
            "analysis": {
                "is_appropriate": verdict.is_appropriate,
                "severity": verdict.severity.value,
                "confidence": verdict.confidence,
                "action_taken": self.decision.final_action.value,
                "categories": sorted(verdict.categories),
                "flags": list(verdict.flags),
            },
            "moderation_id": self.record.id,
        }


def error_response(exc: Exception) -> dict[str, Any]:
    return {"success": False, "error": str(exc) or exc.__class__.__name__}


PostCommitHook = Callable[[ModerationOutcome], None]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------


class ModerationPipeline:
    """Stateless request/response moderation over a classifier and a store.

    Parameters
    ----------
    classifier : ModerationClassifier
        Produces the raw verdict text.
    store : ModerationStore
        Persists records, strikes, queue entries and threshold settings.
    thresholds : ModerationThresholds | None
        Base thresholds, typically loaded from a YAML file.  Settings rows in
        the store are read on every request and override them row by row;
        when *None* the built-in defaults are the base.
    """

    def __init__(
        self,
        classifier: ModerationClassifier,
        store: ModerationStore,
        thresholds: Optional[ModerationThresholds] = None,
        hooks: Sequence[PostCommitHook] = (),
    ) -> None:
        self._classifier = classifier
        self._store = store
        self._base_thresholds = thresholds
        self.strikes = StrikeLedger(store)
        self.review_queue = ReviewQueue(store)
        self._hooks = list(hooks)

    @classmethod
    def from_config(cls, config: ModerationConfig) -> ModerationPipeline:
        """Wire the Anthropic client, the JSON store and optional YAML thresholds."""
        client = LLMClient(
            model=config.model,
            api_key=config.api_key or None,
            timeout=config.classifier_timeout,
        )
        thresholds = load_thresholds(config.thresholds_file) if config.thresholds_file else None
        return cls(
            ModerationClassifier(client, max_tokens=config.max_tokens),
            ModerationStore(config.data_dir),
            thresholds=thresholds,
        )

    @property
    def store(self) -> ModerationStore:
        return self._store

    def load_thresholds(self) -> ModerationThresholds:
        """Return the thresholds the next evaluation will use."""
        return ModerationThresholds.from_settings(
            self._store.get_settings(THRESHOLD_SETTINGS), self._base_thresholds
        )

    def moderate(
        self,
        request: ModerationRequest,
        thresholds: Optional[ModerationThresholds] = None,
    ) -> ModerationOutcome:
        """Run the full pipeline for one request.

        Raises :class:`ClassifierUnavailable` / :class:`ClassifierError` before
        anything is stored, and :class:`PersistenceError` if the moderation
        record cannot be written.
        """
        logger.info(
            "Starting moderation for %s: %s", request.content_type, request.content_id
        )

        raw = self._classifier.classify(
            request.content, request.content_type, request.media_urls
        )
        verdict = normalize_verdict(raw)

        # Insert with the classifier's own suggestion, then record the
        # locally computed action in a single update.
        record = ModerationRecord(
            content_id=request.content_id,
            content_type=request.content_type,
            user_id=request.user_id,
            verdict=verdict,
            action_taken=verdict.recommended_action,
            auto_actioned=True,
            original_content=request.content,
            content_hash=content_hash(request.content),
            media_urls=list(request.media_urls),
        )
        self._store.insert_record(record)

        decision = evaluate(verdict, thresholds or self.load_thresholds())
        record = self._store.update_action(record.id, decision.final_action)

        if decision.final_action != verdict.recommended_action:
            logger.debug(
                "Classifier recommended %s, policy chose %s (rule %s)",
                verdict.recommended_action.value,
                decision.final_action.value,
                decision.rule,
            )

        outcome = ModerationOutcome(record=record, decision=decision)
        self._run_post_commit(outcome)

        logger.info(
            "Moderation completed for %s: appropriate=%s action=%s severity=%s confidence=%.2f",
            request.content_id,
            verdict.is_appropriate,
            decision.final_action.value,
            verdict.severity.value,
            verdict.confidence,
        )
        return outcome

    def _run_post_commit(self, outcome: ModerationOutcome) -> None:
        hooks: list[PostCommitHook] = [self._apply_strike, self._apply_review]
        hooks.extend(self._hooks)
        for hook in hooks:
            try:
                hook(outcome)
            except Exception:
                logger.error(
                    "Post-commit hook %s failed for moderation %s",
                    getattr(hook, "__name__", repr(hook)),
                    outcome.record.id,
                    exc_info=True,
                )

    def _apply_strike(self, outcome: ModerationOutcome) -> None:
        if not outcome.decision.penalizes:
            return
        outcome.strike = self.strikes.record(
            outcome.record.user_id,
            outcome.record.id,
            outcome.verdict.severity,
            outcome.decision.final_action,
        )

    def _apply_review(self, outcome: ModerationOutcome) -> None:
        if not outcome.decision.requires_manual_review:
            return
        outcome.queue_entry = self.review_queue.enqueue(
            outcome.record.id, outcome.verdict.severity
        )

    def handle(self, body: Any) -> tuple[int, dict[str, Any]]:
        """Request/response wrapper returning ``(http_status, json_body)``."""
        try:
            request = ModerationRequest.from_dict(body)
            outcome = self.moderate(request)
        except ModerationError as exc:
            logger.error("Moderation request failed: %s", exc)
            return exc.status_code, error_response(exc)
        return 200, outcome.to_response()
