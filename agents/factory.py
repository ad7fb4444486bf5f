"""Model construction shared by the curator and analyst agents."""

import logging

from openai import AsyncOpenAI
from pydantic_ai.models import Model
from pydantic_ai.models.google import GoogleModel
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.profiles.openai import OpenAIModelProfile
from pydantic_ai.providers.google import GoogleProvider
from pydantic_ai.providers.openai import OpenAIProvider

logger = logging.getLogger(__name__)

GOOGLE_PREFIXES = ("google-gla:", "google:")


def parse_local_model(model_str: str) -> tuple[str, str] | None:
    """Parse local model string into (model_name, base_url) or None if not local."""
    if model_str.startswith("openai:") and "@" in model_str:
        rest = model_str[7:]  # Remove "openai:" prefix
        model_name, base_url = rest.split("@", 1)
        return model_name, base_url
    return None


def create_model(model_str: str, api_key: str = "") -> Model | str:
    """Create the appropriate model based on the model string.

    Supports:
    - Local OpenAI-compatible servers: 'openai:{model_name}@http://127.0.0.1:8080/v1'
    - Gemini with an explicit key: 'google-gla:gemini-2.5-flash'
    - Anything else is passed through for PydanticAI to resolve

    Args:
        model_str: Model identifier string
        api_key: Gemini API key (used for google-gla models)

    Returns:
        PydanticAI model instance or model string
    """
    parsed = parse_local_model(model_str)
    if parsed:
        model_name, base_url = parsed
        logger.info("Using local model | model=%s base_url=%s", model_name, base_url)
        # Local servers don't need authentication - use placeholder
        client = AsyncOpenAI(base_url=base_url, api_key="local-model")
        profile = OpenAIModelProfile(supports_json_object_output=False)
        return OpenAIChatModel(
            model_name,
            provider=OpenAIProvider(openai_client=client),
            profile=profile,
        )

    for prefix in GOOGLE_PREFIXES:
        if model_str.startswith(prefix) and api_key:
            return GoogleModel(model_str[len(prefix):], provider=GoogleProvider(api_key=api_key))

    return model_str
