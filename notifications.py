"""Digest delivery to a chat webhook, with a clipboard helper.

Delivery has three outcomes (DeliveryOutcome):
    SENT: The request went out and, in strict mode, got a 2xx answer
    TRANSPORT_FAILED: Connection error, invalid URL or timeout
    REJECTED: Strict mode only, the endpoint answered with a non-2xx status

A missing webhook URL is a precondition failure and raises
MissingWebhookError before any request is made.

Delivery Policy:
    lenient (default): Any response received without a transport error
        counts as sent. Browser webhook calls can't read the status, and
        the unattended bot never checked it either.
    strict: The response status must be 2xx.
"""

import asyncio
import enum
import logging
import ssl
from dataclasses import dataclass

import aiohttp
import certifi
import pyperclip

from errors import ClipboardError, DeliveryTransportError, MissingWebhookError
from models.payload import ChatPayload

logger = logging.getLogger(__name__)

USER_AGENT = "global-news-curator/1.0"


class DeliveryOutcome(str, enum.Enum):
    SENT = "sent"
    TRANSPORT_FAILED = "transport_failed"
    REJECTED = "rejected"


@dataclass
class DeliveryResult:
    """Result of one webhook POST.

    Attributes:
        outcome: Which of the three delivery outcomes happened
        status: HTTP status if a response was received
        error: Transport error for TRANSPORT_FAILED
    """

    outcome: DeliveryOutcome
    status: int | None = None
    error: DeliveryTransportError | None = None

    @property
    def ok(self) -> bool:
        return self.outcome is DeliveryOutcome.SENT


def create_ssl_context() -> ssl.SSLContext:
    """SSL context that verifies certificates against the certifi bundle."""
    return ssl.create_default_context(cafile=certifi.where())


async def send_to_webhook(
    url: str,
    payload: ChatPayload,
    strict: bool = False,
    timeout: float = 10.0,
) -> DeliveryResult:
    """POST a digest payload to a chat webhook.

    Args:
        url: Webhook URL (must be non-empty)
        payload: Formatted digest
        strict: Require a 2xx status to count as sent
        timeout: Total request timeout in seconds

    Returns:
        DeliveryResult describing the outcome

    Raises:
        MissingWebhookError: If url is empty (no request is made)
    """
    if not url or not url.strip():
        raise MissingWebhookError()

    body = payload.to_dict()
    try:
        connector = aiohttp.TCPConnector(ssl=create_ssl_context())
        async with aiohttp.ClientSession(
            connector=connector,
            headers={"User-Agent": USER_AGENT},
        ) as session:
            async with session.post(
                url.strip(), json=body, timeout=aiohttp.ClientTimeout(total=timeout)
            ) as resp:
                status = resp.status
    except asyncio.TimeoutError:
        logger.warning("Webhook timeout | url=%s", url[:50])
        return DeliveryResult(
            DeliveryOutcome.TRANSPORT_FAILED,
            error=DeliveryTransportError(f"Webhook timed out after {timeout:.0f}s"),
        )
    except (aiohttp.ClientError, ValueError) as e:
        logger.warning("Webhook transport error | url=%s error=%s (%s)", url[:50], e, type(e).__name__)
        return DeliveryResult(
            DeliveryOutcome.TRANSPORT_FAILED,
            error=DeliveryTransportError(f"{type(e).__name__}: {e}"),
        )

    if strict and not 200 <= status < 300:
        logger.warning("Webhook rejected | status=%d url=%s", status, url[:50])
        return DeliveryResult(DeliveryOutcome.REJECTED, status=status)

    logger.info("Webhook sent | status=%d sections=%d", status, len(payload.sections()))
    return DeliveryResult(DeliveryOutcome.SENT, status=status)


def copy_to_clipboard(text: str) -> None:
    """Copy text to the system clipboard.

    Raises:
        ClipboardError: If no clipboard is available or the copy fails
    """
    try:
        pyperclip.copy(text)
    except pyperclip.PyperclipException as e:
        logger.error("Clipboard copy failed: %s", e, exc_info=True)
        raise ClipboardError(str(e)) from e
    logger.debug("Copied to clipboard | chars=%d", len(text))
