"""Analyst agent that learns interests from liked stories.

The analyst reads the titles and categories of the stories a user liked and
returns five keywords and three categories. PreferenceLearner merges those
into the profile: new entries are appended after existing ones, duplicates
are dropped and each list is capped at ten.
"""

import logging

from pydantic_ai import Agent, PromptedOutput, UsageLimits
from pydantic_ai.models import Model

from agents.factory import create_model
from config import Config
from errors import LearningServiceError, NoInputError
from models.news import NewsItem
from models.preferences import LearnedInterests, UserPreferences

logger = logging.getLogger(__name__)

ANALYST_PROMPT = """Analyze the list of news articles the user liked.
Extract 5 key topics/keywords and the top 3 categories that represent their interests.
Return strict JSON only: { "keywords": string[], "categories": string[] }"""


def build_liked_message(items: list[NewsItem]) -> str:
    """List liked stories as '{title} ({category})' lines."""
    lines = [f"{item.title} ({item.category})" for item in items]
    return "Articles:\n" + "\n".join(lines)


def _create_agent(model: Model | str) -> Agent[None, LearnedInterests]:
    """Create the underlying PydanticAI agent for interest extraction.

    Output is prompted JSON validated against LearnedInterests. Retries are
    disabled: a bad response fails the learn step instead of re-asking.
    """
    return Agent(
        model,
        output_type=PromptedOutput(LearnedInterests),
        system_prompt=ANALYST_PROMPT,
        retries=0,
    )


class PreferenceLearner:
    """Derives profile updates from liked stories.

    Example:
        >>> learner = PreferenceLearner(config)
        >>> updated = await learner.learn(liked_items, preferences)
    """

    def __init__(self, config: Config, model: Model | str | None = None):
        """Initialize the learner.

        Args:
            config: Application configuration with the analyst model
            model: Optional model override (used by tests and local runs)
        """
        self.config = config
        if model is None:
            model = create_model(config.analyst_model, config.gemini_api_key)
        self._agent = _create_agent(model)

    async def analyze(self, items: list[NewsItem]) -> LearnedInterests:
        """Ask the AI service which interests the liked stories share.

        Raises:
            NoInputError: If no items were liked
            LearningServiceError: If the call fails or returns invalid JSON
        """
        if not items:
            raise NoInputError()

        try:
            result = await self._agent.run(
                build_liked_message(items),
                usage_limits=UsageLimits(request_limit=2),
            )
        except Exception as e:
            logger.error("Preference analysis failed | error=%s type=%s", e, type(e).__name__, exc_info=True)
            raise LearningServiceError(f"Preference analysis failed ({type(e).__name__}): {e}") from e

        interests = result.output
        logger.info(
            "Interests learned | liked=%d keywords=%s categories=%s",
            len(items),
            interests.keywords,
            interests.categories,
        )
        return interests

    async def learn(self, items: list[NewsItem], preferences: UserPreferences) -> UserPreferences:
        """Merge interests learned from ``items`` into ``preferences``.

        The input profile is never modified; on failure it stays the
        caller's current profile.

        Returns:
            New profile with merged keywords and liked categories
        """
        interests = await self.analyze(items)
        return preferences.merged_with(interests)
