"""User preference profile and learned-interest models.

The profile is an adaptive set of keywords and liked/disliked categories
that steers the curator. Every collection is an ordered set: duplicates
are dropped on construction with the first occurrence winning, and merges
cap each collection at MAX_PROFILE_ENTRIES.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

MAX_PROFILE_ENTRIES = 10

DEFAULT_KEYWORDS = ["Technology", "Global Economy", "Science"]


def dedupe(values: list[str]) -> list[str]:
    """Remove duplicates preserving first-occurrence order."""
    return list(dict.fromkeys(values))


def merge_capped(existing: list[str], new: list[str], limit: int = MAX_PROFILE_ENTRIES) -> list[str]:
    """Append new entries to existing ones, dedupe, and keep the first ``limit``."""
    return dedupe([*existing, *new])[:limit]


def split_csv(text: str) -> list[str]:
    """Split comma-separated user input into trimmed, non-empty entries."""
    return [part.strip() for part in text.split(",") if part.strip()]


class LearnedInterests(BaseModel):
    """Interests extracted by the analyst agent from liked stories."""

    keywords: list[str] = Field(
        default_factory=list,
        description="Exactly 5 key topics or keywords",
    )
    categories: list[str] = Field(
        default_factory=list,
        description="Top 3 categories representing the user's interests",
    )

    @field_validator("keywords", "categories")
    @classmethod
    def _strip_entries(cls, values: list[str]) -> list[str]:
        return [v.strip() for v in values if v and v.strip()]


class UserPreferences(BaseModel):
    """The persisted interest profile.

    Attributes:
        keywords: Interests weighted into story selection
        liked_categories: Categories to favour
        disliked_categories: Categories to avoid unless critical
        webhook_url: Chat webhook for delivery (empty = not configured)
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    keywords: list[str] = Field(default_factory=lambda: DEFAULT_KEYWORDS.copy())
    liked_categories: list[str] = Field(default_factory=list)
    disliked_categories: list[str] = Field(default_factory=list)
    webhook_url: str = ""

    @field_validator("keywords", "liked_categories", "disliked_categories")
    @classmethod
    def _ordered_set(cls, values: list[str]) -> list[str]:
        return dedupe(values)

    @classmethod
    def default(cls) -> "UserPreferences":
        return cls()

    @classmethod
    def from_csv_fields(
        cls,
        keywords: str,
        liked: str = "",
        disliked: str = "",
        webhook_url: str = "",
    ) -> "UserPreferences":
        """Build a profile from comma-separated settings input."""
        return cls(
            keywords=split_csv(keywords),
            liked_categories=split_csv(liked),
            disliked_categories=split_csv(disliked),
            webhook_url=webhook_url.strip(),
        )

    def merged_with(self, interests: LearnedInterests) -> "UserPreferences":
        """Return a new profile with learned interests appended.

        Keywords and liked categories are extended and capped; disliked
        categories and the webhook pass through unchanged.
        """
        return self.model_copy(
            update={
                "keywords": merge_capped(self.keywords, interests.keywords),
                "liked_categories": merge_capped(self.liked_categories, interests.categories),
            }
        )

    def to_json(self) -> str:
        """Serialize with camelCase keys for storage and export."""
        return self.model_dump_json(by_alias=True)
