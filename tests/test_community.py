"""Tests for community content triggers: inserts, reports and appeals."""

import pytest

from streamcentives.moderation.community import (
    CONTENT_TYPE_TABLES,
    SYSTEM_ERROR_FLAG,
    TABLE_CONTENT_TYPES,
    CommunityModerator,
    extract_content,
)
from streamcentives.moderation.errors import InvalidRequest
from streamcentives.moderation.models import Action, ContentType, QueueType


def test_extract_content_for_posts_and_comments():
    post = {"id": "p1", "title": "Giveaway", "content": "click here", "media_urls": ["a.png"], "author_id": "u1"}
    assert extract_content("community_posts", post) == ("Giveaway click here", ["a.png"], "u1")

    comment = {"id": "k1", "content": "nice", "user_id": "u2"}
    assert extract_content("post_comments", comment) == ("nice", [], "u2")
    assert extract_content("community_messages", comment) == ("nice", [], "u2")
    assert extract_content("campaigns", comment) is None


def test_insert_removes_content(pipeline, llm, store):
    llm.push({"is_appropriate": False, "severity": "critical", "confidence": 0.97})
    moderator = CommunityModerator(pipeline)
    outcome = moderator.dispatch(
        {
            "type": "INSERT",
            "table": "community_posts",
            "record": {"id": "p1", "title": "DM me", "content": "threat", "author_id": "u1"},
        }
    )
    assert outcome.decision.final_action == Action.CONTENT_REMOVED
    assert outcome.record.content_type == "community_post"
    assert outcome.record.original_content == "DM me threat"
    assert store.get_content_state("community_posts", "p1") == {"is_deleted": True}


def test_insert_shadow_bans_comment(pipeline, llm, store):
    llm.push({"is_appropriate": False, "severity": "high", "confidence": 0.75})
    CommunityModerator(pipeline).handle_insert(
        "post_comments", {"id": "k1", "content": "rude", "user_id": "u2"}
    )
    state = store.get_content_state("post_comments", "k1")
    assert state["is_shadow_banned"] is True
    assert state["shadow_banned_at"]


def test_insert_soft_deletes_messages_with_timestamp(pipeline, llm, store):
    llm.push({"is_appropriate": False, "severity": "high", "confidence": 0.95})
    CommunityModerator(pipeline).handle_insert(
        "community_messages", {"id": "m1", "content": "scam link", "user_id": "u3"}
    )
    assert store.get_content_state("community_messages", "m1")["deleted_at"]


def test_insert_skips_unsupported_and_empty(pipeline, llm, store):
    moderator = CommunityModerator(pipeline)
    assert moderator.handle_insert("campaigns", {"id": "x"}) is None
    assert moderator.handle_insert("post_comments", {"id": "k1", "content": "  ", "user_id": "u1"}) is None
    assert llm.prompts == []
    assert store.list_records() == []


def test_insert_failure_flags_for_manual_review(pipeline, llm, store):
    llm.configured = False
    moderator = CommunityModerator(pipeline)
    assert moderator.handle_insert("post_comments", {"id": "k1", "content": "hmm", "user_id": "u1"}) is None

    [record] = store.list_records()
    assert record.action_taken == Action.MANUAL_REVIEW
    assert not record.auto_actioned
    assert record.verdict.confidence == 0.1
    assert record.verdict.flags == [SYSTEM_ERROR_FLAG]

    [entry] = store.list_queue()
    assert entry.moderation_id == record.id
    assert entry.priority == 8
    assert entry.queue_type == QueueType.ESCALATED


def test_media_only_post_is_flagged(pipeline, llm, store):
    CommunityModerator(pipeline).handle_insert(
        "community_posts", {"id": "p9", "media_urls": ["a.png"], "author_id": "u1"}
    )
    [record] = store.list_records()
    assert record.original_content == "Content unavailable"
    assert store.list_queue()[0].priority == 8


def test_insert_without_owner_is_rejected(pipeline):
    with pytest.raises(InvalidRequest):
        CommunityModerator(pipeline).handle_insert("post_comments", {"id": "k1", "content": "hi"})


def test_report_escalates_existing_record(pipeline, llm, store):
    llm.push({"is_appropriate": True})
    moderator = CommunityModerator(pipeline)
    outcome = moderator.handle_insert("post_comments", {"id": "k1", "content": "hi", "user_id": "u1"})

    report = moderator.dispatch(
        {
            "type": "user_report",
            "reporter_id": "u9",
            "reported_content_id": "k1",
            "reported_content_type": "post_comment",
            "reported_user_id": "u1",
            "report_category": "harassment",
            "report_reason": "harassment: follows me around",
        }
    )
    assert report.status == "pending"
    assert len(store.list_reports()) == 1

    [entry] = store.list_queue()
    assert entry.moderation_id == outcome.record.id
    assert entry.priority == 9
    assert entry.queue_type == QueueType.ESCALATED
    assert entry.escalation_reason == "User report: harassment"


def test_report_without_record_runs_fresh_moderation(pipeline, llm, store):
    loaded = []

    def loader(content_id, content_type):
        loaded.append((content_id, content_type))
        return {"title": "Free crypto", "content": "send 1 BTC", "media_urls": []}

    llm.push({"is_appropriate": False, "severity": "high", "confidence": 0.92})
    moderator = CommunityModerator(pipeline, content_loader=loader)
    moderator.handle_report("u9", "p1", "community_post", "u1", "scam")

    assert loaded == [("p1", "community_post")]
    record = store.find_record("p1", "community_post")
    assert record.user_id == "u1"
    assert record.original_content == "Free crypto send 1 BTC"
    assert store.get_content_state("community_posts", "p1") == {"is_deleted": True}


def test_report_requires_fields(pipeline):
    with pytest.raises(InvalidRequest):
        CommunityModerator(pipeline).handle_report("", "p1", "community_post", "u1", "spam")


def test_appeal_queues_and_marks_strikes(pipeline, llm, store):
    llm.push({"is_appropriate": False, "severity": "high", "confidence": 0.75})
    moderator = CommunityModerator(pipeline)
    outcome = moderator.handle_insert("post_comments", {"id": "k1", "content": "rude", "user_id": "u1"})

    appeal = moderator.dispatch(
        {
            "type": "appeal",
            "user_id": "u1",
            "moderation_id": outcome.record.id,
            "appeal_reason": "It was a joke between friends",
        }
    )
    assert appeal.status == "pending"
    assert len(store.list_appeals()) == 1

    [entry] = store.list_queue()
    assert entry.priority == 7
    assert entry.queue_type == QueueType.APPEAL

    [strike] = store.list_strikes("u1")
    assert strike.appeal_submitted
    assert strike.appeal_status == "pending"


def test_unknown_event_is_ignored(pipeline, store):
    assert CommunityModerator(pipeline).dispatch({"type": "UPDATE"}) is None
    assert store.list_records() == []


def test_insert_record_must_be_an_object(pipeline, store):
    moderator = CommunityModerator(pipeline)
    with pytest.raises(InvalidRequest):
        moderator.dispatch({"type": "INSERT", "table": "community_posts", "record": ["p1"]})
    assert store.list_records() == []


def test_tables_map_to_content_types():
    assert TABLE_CONTENT_TYPES["community_posts"] == ContentType.COMMUNITY_POST.value
    assert CONTENT_TYPE_TABLES["post_comment"] == "post_comments"
    assert set(CONTENT_TYPE_TABLES) == {c.value for c in ContentType}
