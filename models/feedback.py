"""Per-digest like/dislike feedback.

Feedback is session-only: it is never persisted and is cleared whenever a
new digest arrives. The liked and disliked sets are kept disjoint.
"""

from dataclasses import dataclass, field

from models.news import NewsItem


@dataclass
class FeedbackState:
    """Like/dislike marks keyed by NewsItem id."""

    liked: set[str] = field(default_factory=set)
    disliked: set[str] = field(default_factory=set)

    def like(self, item_id: str) -> None:
        """Toggle a like; a new like also removes any dislike."""
        if item_id in self.liked:
            self.liked.discard(item_id)
        else:
            self.liked.add(item_id)
            self.disliked.discard(item_id)

    def dislike(self, item_id: str) -> None:
        """Toggle a dislike; a new dislike also removes any like."""
        if item_id in self.disliked:
            self.disliked.discard(item_id)
        else:
            self.disliked.add(item_id)
            self.liked.discard(item_id)

    def clear(self) -> None:
        self.liked.clear()
        self.disliked.clear()

    def liked_items(self, digest: list[NewsItem]) -> list[NewsItem]:
        """Liked subset of a digest, in digest order."""
        return [item for item in digest if item.id in self.liked]

    def snapshot(self) -> tuple[frozenset[str], frozenset[str]]:
        return frozenset(self.liked), frozenset(self.disliked)
