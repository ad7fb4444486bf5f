"""Curator agent that selects the daily digest stories.

This module implements the CuratorAgent, the digest fetcher. One Gemini
call with Google Search grounding picks ten stories from the last 24 hours,
balancing global importance against the user's preference profile.

Design:
    - Grounding and structured output can't be combined on Gemini, so the
      agent returns plain text and JSON is extracted with agents.parsing
    - AI output is coerced into NewsItem at this boundary; nothing
      unvalidated reaches the session
    - Every failure surfaces as FetchError; the caller keeps its old digest
"""

import logging
from dataclasses import dataclass
from datetime import date

from pydantic_ai import Agent, RunContext, UsageLimits
from pydantic_ai.models import Model

from agents.factory import create_model
from agents.parsing import extract_json
from config import Config
from errors import FetchError
from models.news import NewsItem
from models.preferences import UserPreferences

logger = logging.getLogger(__name__)

# Number of stories requested per digest
DIGEST_SIZE = 10

LANGUAGE_NAMES = {
    "en": "English",
    "ja": "Japanese",
    "zh": "Chinese",
}

CURATOR_PROMPT = """You are an expert news editor for a daily digest.

Task:
1. Search for the most important global news stories happening right now (last 24 hours).
2. Select exactly {count} distinct news items.
3. Balance the selection based on two factors:
   - **Global Importance (70% weight)**: Major geopolitical, economic, scientific, or humanitarian events that everyone should know.
   - **User Preference (30% weight)**: News that aligns with the user's interests.

Output Format:
Return a strictly valid JSON array of objects. Do not wrap in markdown unless necessary for a code block.
Each object must have:
- title: string ({language})
- summary: string ({language}, concise 2-3 sentences)
- category: string
- relevanceScore: number (0-100, how well it matches criteria)
- reasonForSelection: string (Short explanation why this was picked)
- url: string (Source URL from search results if available)
- source: string (Source name)"""


@dataclass
class CuratorContext:
    """Runtime context passed to the curator agent.

    Attributes:
        language: Output language code ('en', 'ja' or 'zh')
    """

    language: str = "en"


def _joined(values: list[str]) -> str:
    return ", ".join(values) if values else "None"


def build_profile_message(preferences: UserPreferences) -> str:
    """Build the user message describing the preference profile."""
    return f"""User Profile:
- Interests/Keywords: {_joined(preferences.keywords)}
- Liked Categories: {_joined(preferences.liked_categories)}
- Disliked Categories: {_joined(preferences.disliked_categories)} (Try to avoid these unless critical)

Select today's {DIGEST_SIZE} stories for this user."""


def parse_news_response(text: str, today: date | None = None) -> list[NewsItem]:
    """Turn the curator's text response into validated news items.

    Elements that are not JSON objects are skipped.

    Raises:
        FetchError: On empty text, invalid JSON, a non-array, or no items
    """
    if not text or not text.strip():
        raise FetchError("No response from the AI service")

    try:
        parsed = extract_json(text)
    except ValueError as e:
        logger.warning("Curator response was not valid JSON | error=%s text=%s", e, text[:200])
        raise FetchError("Failed to parse news format.") from e

    if not isinstance(parsed, list):
        logger.warning("Curator response was not a JSON array | type=%s", type(parsed).__name__)
        raise FetchError("Failed to parse news format.")

    items: list[NewsItem] = []
    for index, element in enumerate(parsed):
        if not isinstance(element, dict):
            logger.debug("Skipping non-object element | index=%d", index)
            continue
        items.append(NewsItem.from_response(element, today=today))

    if not items:
        raise FetchError("The AI service returned no news items.")
    return items


def _create_agent(model: Model | str, search_grounding: bool) -> Agent[CuratorContext, str]:
    """Create the underlying PydanticAI agent for story selection.

    Args:
        model: PydanticAI model instance or model string
        search_grounding: Attach Google Search grounding (WebSearchTool)

    Returns:
        Configured PydanticAI Agent producing plain text
    """
    builtin_tools = []
    if search_grounding:
        from pydantic_ai import WebSearchTool

        builtin_tools.append(WebSearchTool())

    agent = Agent(
        model,
        output_type=str,
        deps_type=CuratorContext,
        builtin_tools=builtin_tools,
    )

    @agent.system_prompt
    def dynamic_prompt(ctx: RunContext[CuratorContext]) -> str:
        """Fill the editor prompt with the output language."""
        language = LANGUAGE_NAMES.get(ctx.deps.language, LANGUAGE_NAMES["en"])
        return CURATOR_PROMPT.format(count=DIGEST_SIZE, language=language)

    return agent


class CuratorAgent:
    """Fetches a fresh digest for a preference profile.

    Example:
        >>> curator = CuratorAgent(config)
        >>> items = await curator.fetch_digest(preferences)
        >>> len(items)
        10
    """

    def __init__(self, config: Config, model: Model | str | None = None):
        """Initialize the curator agent.

        Args:
            config: Application configuration with model and language settings
            model: Optional model override (used by tests and local runs)
        """
        self.config = config
        if model is None:
            model = create_model(config.curator_model, config.gemini_api_key)
        self._agent = _create_agent(model, config.search_grounding)
        self._context = CuratorContext(language=config.language)

    async def fetch_digest(self, preferences: UserPreferences) -> list[NewsItem]:
        """Ask the AI service for a new digest.

        Args:
            preferences: Profile snapshot used to weight the selection

        Returns:
            News items in the order the model returned them

        Raises:
            FetchError: If the service fails or its response is unusable
        """
        message = build_profile_message(preferences)
        try:
            result = await self._agent.run(
                message,
                deps=self._context,
                usage_limits=UsageLimits(request_limit=5),
            )
        except Exception as e:
            logger.error("Curator call failed | error=%s type=%s", e, type(e).__name__, exc_info=True)
            raise FetchError(f"AI service error ({type(e).__name__}): {e}") from e

        items = parse_news_response(result.output)
        usage = result.usage()
        logger.info(
            "Digest fetched | items=%d input_tokens=%d output_tokens=%d",
            len(items),
            usage.input_tokens or 0,
            usage.output_tokens or 0,
        )
        return items
