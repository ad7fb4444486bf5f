"""Shared fixtures: stub AI models and sample digests."""

from pathlib import Path

import pytest
from pydantic_ai.messages import ModelMessage, ModelResponse, TextPart
from pydantic_ai.models.function import AgentInfo, FunctionModel

from config import Config
from models.news import NewsItem


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        gemini_api_key="test-key",
        search_grounding=False,
        db_path=tmp_path / "curator.db",
        log_dir=tmp_path / "log",
    )


@pytest.fixture
def text_model():
    """Factory for a FunctionModel that always answers with ``text``.

    Pass a list as ``calls`` to record the messages of every request.
    """

    def factory(text: str, calls: list | None = None) -> FunctionModel:
        def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
            if calls is not None:
                calls.append(messages)
            return ModelResponse(parts=[TextPart(text)])

        return FunctionModel(respond)

    return factory


@pytest.fixture
def failing_model() -> FunctionModel:
    def respond(messages: list[ModelMessage], info: AgentInfo) -> ModelResponse:
        raise ConnectionError("service unavailable")

    return FunctionModel(respond)


@pytest.fixture
def digest() -> list[NewsItem]:
    return [
        NewsItem(
            title="Central banks coordinate rate cut",
            summary="Several central banks cut rates together.",
            url="https://example.com/rates",
            source="Example Times",
            category="Economy",
            relevance_score=95,
            reason_for_selection="Global markets impact",
        ),
        NewsItem(
            title="New exoplanet found",
            summary="Astronomers found a rocky planet.",
            category="Science",
            relevance_score=50,
        ),
        NewsItem(
            title="Chip export rules change",
            summary="New export controls announced.",
            source="Tech Daily",
            category="Technology",
            relevance_score=81,
        ),
    ]
