"""Unattended digest runs for scheduled delivery.

Pipeline Flow:
    1. LOAD: Read the saved preference profile
    2. FETCH: Curator agent selects ten stories (Gemini + grounding)
    3. FORMAT: Render the Slack Block Kit payload
    4. DISPATCH: POST to the webhook (NEWS_WEBHOOK_URL, else the profile's)

There is no clipboard when running headless, so a failed delivery is
logged and counted; the next scheduled run starts from scratch.
"""

import asyncio
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from typing import Any

from agents.curator import CuratorAgent
from config import Config
from database import PreferenceStore
from errors import FetchError, MissingWebhookError
from formatting import format_digest
from notifications import send_to_webhook
from observability.logging import clear_context, set_run_context
from observability.tracing import trace_operation

logger = logging.getLogger(__name__)


@dataclass
class RunStats:
    """Statistics from a single unattended run.

    Attributes:
        run_id: Short id attached to every log record of the run
        items: Stories fetched
        outcome: Delivery outcome ('sent', 'transport_failed', 'rejected',
            'not_configured'), or 'fetch_failed'
        status: Webhook HTTP status when a response was received
        errors: Count of errors at any stage
        duration: Run time in seconds
    """

    run_id: str = ""
    items: int = 0
    outcome: str = ""
    status: int | None = None
    errors: int = 0
    duration: float = 0.0

    @property
    def delivered(self) -> bool:
        return self.outcome == "sent"

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        d = asdict(self)
        d["duration"] = round(d["duration"], 2)
        return d


class Pipeline:
    """Fetch, format and dispatch a digest without user interaction.

    Example:
        >>> pipeline = Pipeline(config)
        >>> stats = await pipeline.run_once()
        >>> stats.delivered
        True
    """

    def __init__(self, config: Config, curator: CuratorAgent | None = None):
        """Initialize pipeline components.

        Args:
            config: Application configuration
            curator: Digest fetcher (created from config if omitted)
        """
        self.config = config
        self.store = PreferenceStore(config.db_path)
        self.curator = curator or CuratorAgent(config)

    async def run_once(self) -> RunStats:
        """Execute one complete run.

        Returns:
            RunStats with the delivery outcome
        """
        stats = RunStats(run_id=uuid.uuid4().hex[:8])
        set_run_context(stats.run_id)
        try:
            start = time.time()

            preferences = self.store.load()
            webhook_url = self.config.webhook_url or preferences.webhook_url
            logger.info(
                "Run started | keywords=%d webhook_override=%s",
                len(preferences.keywords),
                bool(self.config.webhook_url),
            )

            try:
                with trace_operation("digest_run", {"run_id": stats.run_id}) as attrs:
                    items = await self.curator.fetch_digest(preferences)
                    stats.items = len(items)

                    payload = format_digest(items)
                    result = await send_to_webhook(
                        webhook_url,
                        payload,
                        strict=self.config.delivery_mode == "strict",
                        timeout=self.config.webhook_timeout_seconds,
                    )
                    stats.outcome = result.outcome.value
                    stats.status = result.status
                    if not result.ok:
                        stats.errors += 1
                        logger.error(
                            "Delivery failed | outcome=%s status=%s error=%s",
                            result.outcome.value, result.status, result.error,
                        )
                    attrs.update(stats.to_dict())
            except FetchError as e:
                stats.outcome = "fetch_failed"
                stats.errors += 1
                logger.error("Fetch failed | error=%s", e)
            except MissingWebhookError:
                stats.outcome = "not_configured"
                stats.errors += 1
                logger.error("No webhook configured | set NEWS_WEBHOOK_URL or save one in the profile")

            stats.duration = time.time() - start
            logger.info(
                "Run done | duration=%.1fs items=%d outcome=%s errors=%d",
                stats.duration, stats.items, stats.outcome, stats.errors,
            )
        finally:
            clear_context()
        return stats

    async def run_continuous(self) -> None:
        """Run on a fixed interval until cancelled."""
        run_count = 0
        delivered = 0

        logger.info("Starting continuous mode | interval=%ds", self.config.poll_interval_seconds)
        try:
            while True:
                run_count += 1
                try:
                    stats = await self.run_once()
                    delivered += int(stats.delivered)
                except Exception as e:
                    logger.error("Run failed | run=%d error=%s", run_count, e, exc_info=True)

                logger.info("Run complete | run=%d delivered=%d", run_count, delivered)
                await asyncio.sleep(self.config.poll_interval_seconds)
        except asyncio.CancelledError:
            logger.info("Scheduler stopped | runs=%d delivered=%d", run_count, delivered)
            raise

    def close(self) -> None:
        """Clean up resources."""
        self.store.close()


async def run_once(config: Config) -> RunStats:
    """Run the pipeline once and return its stats."""
    pipeline = Pipeline(config)
    try:
        return await pipeline.run_once()
    finally:
        pipeline.close()


async def run_continuous(config: Config) -> None:
    """Run the pipeline continuously."""
    pipeline = Pipeline(config)
    try:
        await pipeline.run_continuous()
    finally:
        pipeline.close()
