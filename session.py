"""Interactive curator session: the application state and its transitions.

DigestSession owns the four pieces of state a user works with and is the
only writer of each:

    preferences  Save, Learn
    digest       Fetch (success only)
    feedback     Like/Dislike, cleared on Fetch success
    status       Fetch (idle -> loading -> success | error)

Every handler catches the curator errors it can hit and returns a Notice,
a short transient message for the user. No failure ends the session.

Concurrency:
    Only one fetch may run at a time; a second call while loading is
    refused. Learn and Send work on snapshots taken when they start. A learn
    result is merged into whatever profile is current when it completes
    (last write wins).
"""

import enum
import logging
from dataclasses import dataclass

from agents.analyst import PreferenceLearner
from agents.curator import CuratorAgent
from config import Config
from database import PreferenceStore
from errors import ClipboardError, FetchError, LearningServiceError, MissingWebhookError, NoInputError
from formatting import format_digest, to_plain_text
from models.feedback import FeedbackState
from models.news import NewsItem
from models.preferences import UserPreferences
from notifications import DeliveryOutcome, copy_to_clipboard, send_to_webhook
from observability.tracing import trace_operation

logger = logging.getLogger(__name__)


class LoadingState(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    ERROR = "error"


class NoticeLevel(str, enum.Enum):
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notice:
    """Transient, auto-dismissing message for the user.

    Attributes:
        message: Text to show
        level: Severity used for styling
        needs_configuration: The user should open the settings next
    """

    message: str
    level: NoticeLevel = NoticeLevel.INFO
    needs_configuration: bool = False


class DigestSession:
    """State container behind the interactive front end.

    Example:
        >>> with PreferenceStore(config.db_path) as store:
        ...     session = DigestSession(config, store)
        ...     notice = await session.generate_digest()
        ...     session.like(session.digest[0].id)
        ...     notice = await session.learn()
    """

    def __init__(
        self,
        config: Config,
        store: PreferenceStore,
        curator: CuratorAgent | None = None,
        learner: PreferenceLearner | None = None,
    ):
        """Load the saved profile and start with an empty digest.

        Args:
            config: Application configuration
            store: Preference persistence
            curator: Digest fetcher (created from config if omitted)
            learner: Preference learner (created from config if omitted)
        """
        self.config = config
        self.store = store
        self.curator = curator or CuratorAgent(config)
        self.learner = learner or PreferenceLearner(config)

        self.preferences: UserPreferences = store.load()
        self.digest: list[NewsItem] = []
        self.feedback = FeedbackState()
        self.status = LoadingState.IDLE
        self.last_error: str | None = None

    @property
    def is_loading(self) -> bool:
        return self.status is LoadingState.LOADING

    def item_at(self, number: int) -> NewsItem:
        """Return the digest item shown as ``number`` (1-indexed)."""
        if not 1 <= number <= len(self.digest):
            raise IndexError(f"No story #{number} in the current digest")
        return self.digest[number - 1]

    # === Preferences ===

    def save_preferences(self, preferences: UserPreferences) -> Notice:
        """Replace the profile and persist it."""
        self.preferences = preferences
        self.store.save(preferences)
        return Notice("Preferences saved.", NoticeLevel.SUCCESS)

    # === Fetch ===

    async def generate_digest(self) -> Notice:
        """Fetch a new digest for the current profile.

        On failure the previous digest and feedback are kept.
        """
        if self.is_loading:
            return Notice("A digest is already being generated.", NoticeLevel.WARNING)

        self.status = LoadingState.LOADING
        self.last_error = None
        snapshot = self.preferences
        try:
            with trace_operation("fetch_digest", {"keywords": len(snapshot.keywords)}) as attrs:
                items = await self.curator.fetch_digest(snapshot)
                attrs["items"] = len(items)
        except FetchError as e:
            self.status = LoadingState.ERROR
            self.last_error = str(e)
            logger.error("Digest fetch failed | error=%s", e)
            return Notice(
                "An error occurred while fetching news. Please check your API key and try again.",
                NoticeLevel.ERROR,
            )
        except Exception as e:
            self.status = LoadingState.ERROR
            self.last_error = f"{type(e).__name__}: {e}"
            logger.error("Digest fetch crashed | error=%s", self.last_error, exc_info=True)
            return Notice("Something went wrong while fetching news. Please try again.", NoticeLevel.ERROR)

        self.digest = items
        self.feedback.clear()
        self.status = LoadingState.SUCCESS
        return Notice(f"Fetched {len(items)} stories.", NoticeLevel.SUCCESS)

    # === Feedback ===

    def like(self, item_id: str) -> None:
        self.feedback.like(item_id)

    def dislike(self, item_id: str) -> None:
        self.feedback.dislike(item_id)

    # === Learn ===

    async def learn(self) -> Notice:
        """Learn from liked stories and merge the result into the profile."""
        liked = self.feedback.liked_items(self.digest)
        try:
            with trace_operation("learn_preferences", {"liked": len(liked)}):
                interests = await self.learner.analyze(liked)
        except NoInputError as e:
            return Notice(str(e), NoticeLevel.INFO)
        except LearningServiceError as e:
            logger.warning("Learn failed, profile unchanged | error=%s", e)
            return Notice("Could not analyze your preferences. Please try again.", NoticeLevel.ERROR)

        # Merge into the latest profile, which a concurrent save may have replaced
        self.preferences = self.preferences.merged_with(interests)
        self.store.save(self.preferences)
        return Notice("Preferences updated based on your feedback!", NoticeLevel.SUCCESS)

    # === Delivery ===

    async def send_digest(self) -> Notice:
        """Send the digest to the webhook, copying the payload on failure."""
        if not self.digest:
            return Notice("Generate a digest first.", NoticeLevel.INFO)

        webhook_url = self.preferences.webhook_url
        payload = format_digest(list(self.digest))
        try:
            with trace_operation("dispatch_digest", {"sections": len(payload.sections())}) as attrs:
                result = await send_to_webhook(
                    webhook_url,
                    payload,
                    strict=self.config.delivery_mode == "strict",
                    timeout=self.config.webhook_timeout_seconds,
                )
                attrs["outcome"] = result.outcome.value
        except MissingWebhookError as e:
            return Notice(str(e), NoticeLevel.WARNING, needs_configuration=True)

        if result.ok:
            return Notice("Sent to Slack!", NoticeLevel.SUCCESS)

        if result.outcome is DeliveryOutcome.REJECTED:
            reason = f"webhook answered {result.status}"
        else:
            reason = str(result.error)
        try:
            copy_to_clipboard(payload.to_json(indent=2))
        except ClipboardError:
            return Notice(
                f"Webhook trigger failed ({reason}) and the clipboard copy failed too.",
                NoticeLevel.ERROR,
            )
        return Notice(
            f"Webhook trigger failed ({reason}). Copied payload to clipboard!",
            NoticeLevel.WARNING,
        )

    def copy_digest(self) -> Notice:
        """Copy the plain-text digest to the clipboard."""
        if not self.digest:
            return Notice("Generate a digest first.", NoticeLevel.INFO)
        text = to_plain_text(format_digest(list(self.digest)))
        try:
            copy_to_clipboard(text)
        except ClipboardError:
            return Notice("Failed to copy.", NoticeLevel.ERROR)
        return Notice("Digest copied to clipboard!", NoticeLevel.SUCCESS)
