"""News item model for curated digest stories.

Each NewsItem is one story selected by the curator agent. Items are built
from untrusted AI output, so every field is coerced at the boundary in
``NewsItem.from_response`` and nothing unvalidated leaves the fetcher.

Wire and storage shapes use camelCase keys (``relevanceScore``); Python
code uses the snake_case attribute names.
"""

import math
import uuid
from datetime import date
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

# Scores above this are shown as high relevance
HIGH_RELEVANCE_THRESHOLD = 80

DEFAULT_TITLE = "No Title"
DEFAULT_SUMMARY = "No Summary"
DEFAULT_CATEGORY = "General"
DEFAULT_RELEVANCE = 50
DEFAULT_REASON = "Global Importance"


def new_item_id() -> str:
    """Generate a digest-unique item identifier."""
    return f"news-{uuid.uuid4().hex[:16]}"


def _text(value: Any, default: str) -> str:
    """Coerce a response value to non-empty text, else the default."""
    if value is None:
        return default
    text = str(value).strip()
    return text or default


def _optional_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _score(value: Any) -> int:
    """Coerce a relevance score to an int in [0, 100].

    Missing, zero, non-numeric and non-finite scores fall back to the
    default.
    """
    if isinstance(value, bool):
        return DEFAULT_RELEVANCE
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_RELEVANCE
    if not math.isfinite(number):
        return DEFAULT_RELEVANCE
    score = int(round(number))
    if score == 0:
        return DEFAULT_RELEVANCE
    return max(0, min(100, score))


class NewsItem(BaseModel):
    """A curated news story in the current digest.

    Attributes:
        id: Identifier generated at ingestion time (never from the AI)
        title: Headline
        summary: Short 2-3 sentence summary
        url: Article URL if the model supplied one
        source: Outlet name if the model supplied one
        category: Free-text topic label, also used for learning
        relevance_score: 0-100, above 80 is high relevance
        reason_for_selection: Why the curator picked this story
        published_date: Ingestion date (ISO format)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=new_item_id)
    title: str = DEFAULT_TITLE
    summary: str = DEFAULT_SUMMARY
    url: str | None = None
    source: str | None = None
    category: str = DEFAULT_CATEGORY
    relevance_score: int = Field(default=DEFAULT_RELEVANCE, ge=0, le=100)
    reason_for_selection: str = DEFAULT_REASON
    published_date: str | None = None

    @property
    def is_high_relevance(self) -> bool:
        return self.relevance_score > HIGH_RELEVANCE_THRESHOLD

    @classmethod
    def from_response(cls, data: dict[str, Any], today: date | None = None) -> "NewsItem":
        """Build an item from one element of the curator's JSON array.

        Missing or empty fields get their display defaults; a fresh id and
        today's date are always assigned.

        Args:
            data: Parsed JSON object from the AI response
            today: Date to stamp (defaults to the local date)

        Returns:
            Validated NewsItem
        """
        today = today or date.today()
        return cls(
            id=new_item_id(),
            title=_text(data.get("title"), DEFAULT_TITLE),
            summary=_text(data.get("summary"), DEFAULT_SUMMARY),
            url=_optional_text(data.get("url")),
            source=_optional_text(data.get("source")),
            category=_text(data.get("category"), DEFAULT_CATEGORY),
            relevance_score=_score(data.get("relevanceScore")),
            reason_for_selection=_text(data.get("reasonForSelection"), DEFAULT_REASON),
            published_date=today.isoformat(),
        )

    def __str__(self) -> str:
        """Human-readable representation for logging."""
        return f"NewsItem({self.id}, '{self.title[:50]}')"
