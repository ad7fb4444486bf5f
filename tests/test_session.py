"""Tests for the interactive session state and handlers."""

import asyncio
import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from agents.analyst import PreferenceLearner
from agents.curator import CuratorAgent
from config import Config
from database import PreferenceStore
from errors import ClipboardError, DeliveryTransportError, FetchError
from models.news import NewsItem
from models.preferences import LearnedInterests, UserPreferences
from notifications import DeliveryOutcome, DeliveryResult
from session import DigestSession, LoadingState, NoticeLevel

WEBHOOK = "https://hooks.example/services/T000/B000/XXX"


class GatedCurator:
    """Curator stub that blocks until released."""

    def __init__(self, items: list[NewsItem] | None = None, error: Exception | None = None):
        self.items = items or []
        self.error = error
        self.release = asyncio.Event()
        self.calls = 0

    async def fetch_digest(self, preferences: UserPreferences) -> list[NewsItem]:
        self.calls += 1
        await self.release.wait()
        if self.error:
            raise self.error
        return self.items


class GatedLearner:
    def __init__(self, interests: LearnedInterests):
        self.interests = interests
        self.release = asyncio.Event()

    async def analyze(self, items: list[NewsItem]) -> LearnedInterests:
        await self.release.wait()
        return self.interests


def _session(config: Config, tmp_path: Path, text_model, curator_text: str = "[]", learner_text: str = "{}", **kwargs):
    store = PreferenceStore(tmp_path / "session.db")
    curator = kwargs.pop("curator", None) or CuratorAgent(config, model=text_model(curator_text))
    learner = kwargs.pop("learner", None) or PreferenceLearner(config, model=text_model(learner_text))
    return DigestSession(config, store, curator=curator, learner=learner)


def _articles_json(count: int) -> str:
    return json.dumps([{"title": f"Story {i}", "category": f"Cat {i}"} for i in range(count)])


# === Fetch ===


def test_initial_state(config: Config, tmp_path: Path, text_model) -> None:
    session = _session(config, tmp_path, text_model)
    assert session.preferences == UserPreferences.default()
    assert session.digest == []
    assert session.status is LoadingState.IDLE


def test_generate_digest_success(config: Config, tmp_path: Path, text_model) -> None:
    session = _session(config, tmp_path, text_model, curator_text=_articles_json(10))
    notice = asyncio.run(session.generate_digest())
    assert notice.level is NoticeLevel.SUCCESS
    assert session.status is LoadingState.SUCCESS
    assert len(session.digest) == 10
    assert session.item_at(1).title == "Story 0"


def test_generate_digest_replaces_digest_and_clears_feedback(config: Config, tmp_path: Path, text_model) -> None:
    session = _session(config, tmp_path, text_model, curator_text=_articles_json(3))
    asyncio.run(session.generate_digest())
    first_ids = {item.id for item in session.digest}
    session.like(session.digest[0].id)
    session.dislike(session.digest[1].id)

    asyncio.run(session.generate_digest())

    assert first_ids.isdisjoint({item.id for item in session.digest})
    assert session.feedback.liked == set()
    assert session.feedback.disliked == set()


def test_failed_fetch_keeps_previous_digest(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model, curator_text="not json")
    session.digest = list(digest)
    session.like(digest[0].id)

    notice = asyncio.run(session.generate_digest())

    assert notice.level is NoticeLevel.ERROR
    assert session.status is LoadingState.ERROR
    assert session.last_error
    assert session.digest == digest
    assert session.feedback.liked == {digest[0].id}


def test_second_fetch_refused_while_loading(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    curator = GatedCurator(items=digest)
    session = _session(config, tmp_path, text_model, curator=curator)

    async def scenario():
        first = asyncio.create_task(session.generate_digest())
        await asyncio.sleep(0)
        assert session.is_loading
        refused = await session.generate_digest()
        curator.release.set()
        return refused, await first

    refused, done = asyncio.run(scenario())
    assert refused.level is NoticeLevel.WARNING
    assert done.level is NoticeLevel.SUCCESS
    assert curator.calls == 1


def test_fetch_error_from_curator_sets_error(config: Config, tmp_path: Path, text_model) -> None:
    curator = GatedCurator(error=FetchError("boom"))
    curator.release.set()
    session = _session(config, tmp_path, text_model, curator=curator)
    asyncio.run(session.generate_digest())
    assert session.status is LoadingState.ERROR
    assert session.last_error == "boom"


def test_item_at_out_of_range(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model)
    session.digest = list(digest)
    with pytest.raises(IndexError):
        session.item_at(4)
    with pytest.raises(IndexError):
        session.item_at(0)


# === Preferences and Learn ===


def test_save_preferences_persists(config: Config, tmp_path: Path, text_model) -> None:
    session = _session(config, tmp_path, text_model)
    session.save_preferences(UserPreferences(keywords=["Oceans"], webhook_url=WEBHOOK))
    assert session.store.load().keywords == ["Oceans"]


def test_learn_without_likes(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model)
    session.digest = list(digest)
    notice = asyncio.run(session.learn())
    assert notice.level is NoticeLevel.INFO
    assert notice.message == "Like some articles first to learn!"
    assert session.preferences == UserPreferences.default()


def test_learn_merges_and_persists(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    response = json.dumps({"keywords": ["Space", "Astronomy"], "categories": ["Science"]})
    session = _session(config, tmp_path, text_model, learner_text=response)
    session.digest = list(digest)
    session.like(digest[1].id)

    notice = asyncio.run(session.learn())

    assert notice.level is NoticeLevel.SUCCESS
    assert session.preferences.keywords == ["Technology", "Global Economy", "Science", "Space", "Astronomy"]
    assert session.preferences.liked_categories == ["Science"]
    assert session.store.load() == session.preferences


def test_learn_failure_leaves_profile(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model, learner_text="no json here")
    session.digest = list(digest)
    session.like(digest[0].id)

    notice = asyncio.run(session.learn())

    assert notice.level is NoticeLevel.ERROR
    assert session.preferences == UserPreferences.default()
    assert session.store.load() == UserPreferences.default()


def test_learn_merges_into_profile_saved_meanwhile(
    config: Config, tmp_path: Path, text_model, digest: list[NewsItem]
) -> None:
    learner = GatedLearner(LearnedInterests(keywords=["Learned"], categories=["Economy"]))
    session = _session(config, tmp_path, text_model, learner=learner)
    session.digest = list(digest)
    session.like(digest[0].id)

    async def scenario():
        task = asyncio.create_task(session.learn())
        await asyncio.sleep(0)
        session.save_preferences(UserPreferences(keywords=["Edited"], webhook_url=WEBHOOK))
        learner.release.set()
        return await task

    asyncio.run(scenario())
    assert session.preferences.keywords == ["Edited", "Learned"]
    assert session.preferences.webhook_url == WEBHOOK


# === Delivery ===


def test_send_without_digest(config: Config, tmp_path: Path, text_model) -> None:
    session = _session(config, tmp_path, text_model)
    notice = asyncio.run(session.send_digest())
    assert notice.message == "Generate a digest first."


def test_send_without_webhook_needs_configuration(
    config: Config, tmp_path: Path, text_model, digest: list[NewsItem]
) -> None:
    session = _session(config, tmp_path, text_model)
    session.digest = list(digest)
    with patch("notifications.aiohttp.ClientSession") as session_cls:
        notice = asyncio.run(session.send_digest())
    session_cls.assert_not_called()
    assert notice.needs_configuration
    assert notice.message == "Please configure a Slack webhook URL first."


def test_send_success(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model)
    session.save_preferences(UserPreferences(webhook_url=WEBHOOK))
    session.digest = list(digest)
    sent = AsyncMock(return_value=DeliveryResult(DeliveryOutcome.SENT, status=200))

    with patch("session.send_to_webhook", sent), patch("session.copy_to_clipboard") as copy:
        notice = asyncio.run(session.send_digest())

    assert notice.message == "Sent to Slack!"
    copy.assert_not_called()
    url, payload = sent.await_args.args
    assert url == WEBHOOK
    assert len(payload.sections()) == 3
    assert sent.await_args.kwargs["strict"] is False


def test_send_failure_copies_payload(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model)
    session.save_preferences(UserPreferences(webhook_url=WEBHOOK))
    session.digest = list(digest)
    failed = DeliveryResult(DeliveryOutcome.TRANSPORT_FAILED, error=DeliveryTransportError("connection refused"))

    with patch("session.send_to_webhook", AsyncMock(return_value=failed)), patch("session.copy_to_clipboard") as copy:
        notice = asyncio.run(session.send_digest())

    assert notice.level is NoticeLevel.WARNING
    assert notice.message == "Webhook trigger failed (connection refused). Copied payload to clipboard!"
    copied = json.loads(copy.call_args.args[0])
    assert [block["type"] for block in copied["blocks"]][:2] == ["header", "divider"]


def test_strict_rejection_copies_payload(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    config.delivery_mode = "strict"
    session = _session(config, tmp_path, text_model)
    session.save_preferences(UserPreferences(webhook_url=WEBHOOK))
    session.digest = list(digest)
    rejected = AsyncMock(return_value=DeliveryResult(DeliveryOutcome.REJECTED, status=404))

    with patch("session.send_to_webhook", rejected), patch("session.copy_to_clipboard"):
        notice = asyncio.run(session.send_digest())

    assert "webhook answered 404" in notice.message
    assert rejected.await_args.kwargs["strict"] is True


def test_send_failure_and_clipboard_failure(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model)
    session.save_preferences(UserPreferences(webhook_url=WEBHOOK))
    session.digest = list(digest)
    failed = DeliveryResult(DeliveryOutcome.TRANSPORT_FAILED, error=DeliveryTransportError("timeout"))

    with patch("session.send_to_webhook", AsyncMock(return_value=failed)), patch(
        "session.copy_to_clipboard", side_effect=ClipboardError("no clipboard")
    ):
        notice = asyncio.run(session.send_digest())

    assert notice.level is NoticeLevel.ERROR


def test_copy_digest(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model)
    session.digest = list(digest)
    with patch("session.copy_to_clipboard") as copy:
        notice = session.copy_digest()
    assert notice.message == "Digest copied to clipboard!"
    assert copy.call_args.args[0].startswith("*1. ")


def test_copy_digest_failure(config: Config, tmp_path: Path, text_model, digest: list[NewsItem]) -> None:
    session = _session(config, tmp_path, text_model)
    session.digest = list(digest)
    with patch("session.copy_to_clipboard", side_effect=ClipboardError("no clipboard")):
        notice = session.copy_digest()
    assert notice.message == "Failed to copy."


def test_non_finite_score_does_not_break_fetch(config: Config, tmp_path: Path, text_model) -> None:
    session = _session(config, tmp_path, text_model, curator_text='[{"title": "A", "relevanceScore": Infinity}]')
    notice = asyncio.run(session.generate_digest())
    assert notice.level is NoticeLevel.SUCCESS
    assert session.digest[0].relevance_score == 50


def test_unexpected_curator_error_becomes_notice(
    config: Config, tmp_path: Path, text_model, digest: list[NewsItem]
) -> None:
    curator = GatedCurator(error=RuntimeError("unexpected"))
    curator.release.set()
    session = _session(config, tmp_path, text_model, curator=curator)
    session.digest = list(digest)

    notice = asyncio.run(session.generate_digest())

    assert notice.level is NoticeLevel.ERROR
    assert session.status is LoadingState.ERROR
    assert session.last_error == "RuntimeError: unexpected"
    assert session.digest == digest
    assert not session.is_loading
