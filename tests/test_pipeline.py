"""Tests for unattended digest runs."""

import asyncio
from unittest.mock import AsyncMock

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from config import Config
from database import PreferenceStore
from errors import FetchError
from models.news import NewsItem
from models.preferences import UserPreferences
from observability.logging import run_id_var
from pipeline import Pipeline, RunStats


def _curator(items: list[NewsItem] | None = None, error: Exception | None = None) -> AsyncMock:
    curator = AsyncMock()
    if error:
        curator.fetch_digest.side_effect = error
    else:
        curator.fetch_digest.return_value = items
    return curator


def _run_against_server(pipeline: Pipeline, status: int, received: list) -> RunStats:
    async def handler(request: web.Request) -> web.Response:
        received.append(await request.json())
        return web.Response(status=status)

    app = web.Application()
    app.router.add_post("/hook", handler)

    async def scenario():
        async with TestServer(app) as server:
            pipeline.config.webhook_url = str(server.make_url("/hook"))
            return await pipeline.run_once()

    return asyncio.run(scenario())


def test_run_once_delivers(config: Config, digest: list[NewsItem]) -> None:
    pipeline = Pipeline(config, curator=_curator(digest))
    received: list = []

    stats = _run_against_server(pipeline, 200, received)
    pipeline.close()

    assert stats.delivered
    assert stats.outcome == "sent"
    assert stats.items == 3
    assert stats.errors == 0
    assert len(stats.run_id) == 8
    assert len(received) == 1
    assert len(received[0]["blocks"]) == 6


def test_run_once_uses_saved_profile(config: Config, digest: list[NewsItem]) -> None:
    with PreferenceStore(config.db_path) as store:
        store.save(UserPreferences(keywords=["Saved keyword"]))
    curator = _curator(digest)
    pipeline = Pipeline(config, curator=curator)

    _run_against_server(pipeline, 200, [])
    pipeline.close()

    (prefs,) = curator.fetch_digest.await_args.args
    assert prefs.keywords == ["Saved keyword"]


def test_strict_rejection_counts_as_error(config: Config, digest: list[NewsItem]) -> None:
    config.delivery_mode = "strict"
    pipeline = Pipeline(config, curator=_curator(digest))

    stats = _run_against_server(pipeline, 410, [])
    pipeline.close()

    assert not stats.delivered
    assert stats.outcome == "rejected"
    assert stats.status == 410
    assert stats.errors == 1


def test_fetch_failure(config: Config) -> None:
    config.webhook_url = "http://127.0.0.1:1/hook"
    pipeline = Pipeline(config, curator=_curator(error=FetchError("bad response")))

    stats = asyncio.run(pipeline.run_once())
    pipeline.close()

    assert stats.outcome == "fetch_failed"
    assert stats.errors == 1
    assert not stats.delivered


def test_missing_webhook(config: Config, digest: list[NewsItem]) -> None:
    pipeline = Pipeline(config, curator=_curator(digest))

    stats = asyncio.run(pipeline.run_once())
    pipeline.close()

    assert stats.outcome == "not_configured"
    assert stats.items == 3


def test_profile_webhook_used_without_override(config: Config, digest: list[NewsItem]) -> None:
    with PreferenceStore(config.db_path) as store:
        store.save(UserPreferences(webhook_url="http://127.0.0.1:1/hook"))
    pipeline = Pipeline(config, curator=_curator(digest))

    stats = asyncio.run(pipeline.run_once())
    pipeline.close()

    assert stats.outcome == "transport_failed"


def test_stats_to_dict_rounds_duration() -> None:
    stats = RunStats(run_id="abc", duration=1.23456)
    assert stats.to_dict()["duration"] == 1.23


def test_run_context_cleared_after_unexpected_error(config: Config) -> None:
    pipeline = Pipeline(config, curator=_curator(error=RuntimeError("unexpected")))

    async def scenario():
        with pytest.raises(RuntimeError):
            await pipeline.run_once()
        return run_id_var.get()

    run_id = asyncio.run(scenario())
    pipeline.close()

    assert run_id == "-"
