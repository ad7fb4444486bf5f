"""Tests for model construction from model strings."""

from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIChatModel

from agents.factory import create_model, parse_local_model


def test_parse_local_model() -> None:
    assert parse_local_model("openai:qwen3@http://127.0.0.1:8080/v1") == ("qwen3", "http://127.0.0.1:8080/v1")


def test_parse_non_local_model() -> None:
    assert parse_local_model("openai:gpt-4o") is None
    assert parse_local_model("google-gla:gemini-2.5-flash") is None


def test_local_model_uses_openai_client() -> None:
    model = create_model("openai:qwen3@http://127.0.0.1:8080/v1")
    assert isinstance(model, OpenAIChatModel)
    assert model.model_name == "qwen3"


def test_gemini_model_with_key() -> None:
    model = create_model("google-gla:gemini-2.5-flash", api_key="test-key")
    assert isinstance(model, GoogleModel)
    assert model.model_name == "gemini-2.5-flash"


def test_gemini_without_key_passes_through() -> None:
    assert create_model("google-gla:gemini-2.5-flash") == "google-gla:gemini-2.5-flash"
