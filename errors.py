"""Exception taxonomy for the curator.

Components raise these; the session handlers, the pipeline and the CLI
catch them and turn them into notices or logged failures.
"""


class CuratorError(Exception):
    """Base class for all curator errors."""


class FetchError(CuratorError):
    """The AI response was missing, malformed, not an array, or empty."""


class NoInputError(CuratorError):
    """Learn was invoked with no liked items."""

    def __init__(self, message: str = "Like some articles first to learn!"):
        super().__init__(message)


class LearningServiceError(CuratorError):
    """The AI service failed while learning preferences."""


class MissingWebhookError(CuratorError):
    """Delivery was attempted without a configured webhook URL."""

    def __init__(self, message: str = "Please configure a Slack webhook URL first."):
        super().__init__(message)


class DeliveryTransportError(CuratorError):
    """The webhook POST failed at the transport level."""


class ClipboardError(CuratorError):
    """Copying to the clipboard failed."""
