"""PydanticAI agents for the Global News Curator.

CuratorAgent:
    Selects ten stories with Gemini and Google Search grounding,
    weighted by the user's preference profile.

PreferenceLearner:
    Extracts keywords and categories from liked stories and merges
    them into the profile.

Example:
    >>> from agents import CuratorAgent, PreferenceLearner
    >>> curator = CuratorAgent(config)
    >>> learner = PreferenceLearner(config)
"""

from agents.curator import CuratorAgent
from agents.analyst import PreferenceLearner

__all__ = [
    "CuratorAgent",
    "PreferenceLearner",
]
