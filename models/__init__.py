"""Pydantic models for the Global News Curator.

This package contains all data models used by the curator:

NewsItem:
    One curated story, built from AI output with defaults for missing fields.

UserPreferences:
    The persisted interest profile (keywords, liked/disliked categories,
    webhook URL). Collections are ordered sets capped at 10 on merge.

LearnedInterests:
    Keywords and categories the analyst agent extracted from liked stories.

FeedbackState:
    Session-only like/dislike marks for the current digest.

ChatPayload:
    Slack Block Kit message built by the digest formatter.

Example:
    >>> from models import NewsItem, UserPreferences
    >>> item = NewsItem.from_response({"title": "...", "relevanceScore": 92})
    >>> prefs = UserPreferences.default()
"""

from models.news import NewsItem
from models.preferences import LearnedInterests, UserPreferences
from models.feedback import FeedbackState
from models.payload import ChatPayload

__all__ = [
    "NewsItem",
    "UserPreferences",
    "LearnedInterests",
    "FeedbackState",
    "ChatPayload",
]
