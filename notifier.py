"""Notification sinks for Voice Reminder Service.

The scheduler only knows ``sink.notify(text)``. Which channel is used is
decided here from the notification permission state:

- granted: platform notification (HTTP webhook, posted asynchronously)
- anything else: synchronous console fallback ("Reminder: <text>")
"""

import asyncio
import enum
import sys
from typing import Callable, Optional, Set

import httpx

from config import Settings
from logger_config import setup_logger

logger = setup_logger(__name__, 'notifier.log')


class PermissionState(enum.Enum):
    """Notification permission as reported by the surrounding surface"""
    GRANTED = "granted"
    DENIED = "denied"
    DEFAULT = "default"
    UNSUPPORTED = "unsupported"

    @classmethod
    def parse(cls, value: str) -> "PermissionState":
        try:
            return cls(value.strip().lower())
        except ValueError:
            logger.warning(f"Unknown notification permission {value!r}, using 'default'")
            return cls.DEFAULT


PERMISSION_NOTICES = {
    PermissionState.DENIED: (
        "blocked",
        "Notifications are blocked. Enable them to receive alerts when a reminder is due."
    ),
    PermissionState.UNSUPPORTED: (
        "unsupported",
        "Notifications are not supported here. You will still see reminders in your list."
    ),
}


def permission_notice(permission: PermissionState) -> Optional[tuple]:
    """User-visible (message_class, message) for a permission state, or None."""
    return PERMISSION_NOTICES.get(permission)


class NotificationError(Exception):
    """A platform notification could not be shown."""


class ConsoleNotifier:
    """Synchronous fallback: print the reminder where the user is looking."""

    def __init__(self, stream=None):
        self.stream = stream or sys.stdout

    def notify(self, text: str) -> None:
        self.stream.write(f"Reminder: {text}\n")
        self.stream.flush()
        logger.info(f"Console reminder shown: {text}")


class WebhookNotifier:
    """Platform notification delivered as an HTTP POST.

    Payload: {"title": ..., "body": text, "tag": text}. Same-tag
    notifications replace each other on the receiving side.

    ``notify`` must be called on a running event loop. It only schedules the
    POST, so a slow endpoint never blocks the loop. Failed posts are passed
    to ``on_failure(text, error)`` when set, and logged otherwise.
    """

    def __init__(
        self,
        url: str,
        title: str,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
        on_failure: Optional[Callable[[str, Exception], None]] = None
    ):
        self.url = url
        self.title = title
        self.on_failure = on_failure
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._pending: Set[asyncio.Task] = set()

    def notify(self, text: str) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            raise NotificationError("Webhook notifications need a running event loop") from e

        task = loop.create_task(self._post(text))
        self._pending.add(task)
        task.add_done_callback(lambda done: self._finished(text, done))

    async def _post(self, text: str) -> None:
        payload = {"title": self.title, "body": text, "tag": text}
        try:
            response = await self._client.post(self.url, json=payload)
        except httpx.TimeoutException as e:
            raise NotificationError(f"Timeout posting notification to {self.url}") from e
        except httpx.RequestError as e:
            raise NotificationError(f"Network error posting notification: {e}") from e

        if response.is_error:
            raise NotificationError(
                f"Notification endpoint returned {response.status_code}: {response.text}"
            )
        logger.info(f"Platform notification sent: {text}")

    def _finished(self, text: str, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            return
        if self.on_failure is not None:
            self.on_failure(text, error)
        else:
            logger.error(f"Platform notification failed: {error}")

    async def drain(self) -> None:
        """Wait for every scheduled POST to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        await self.drain()
        await self._client.aclose()


PLATFORM_FAILURE_NOTICE = (
    "unsupported",
    "Notifications could not be delivered. You will still see reminders in your list."
)


class PermissionAwareNotifier:
    """Route notifications by permission; report platform failures once.

    Args:
        permission: Current notification permission
        platform: Sink used when permission is granted (None = unsupported)
        fallback: Sink used otherwise, and for the message whose platform delivery failed
    """

    def __init__(self, permission: PermissionState, platform=None, fallback=None):
        self.permission = permission if platform is not None else PermissionState.UNSUPPORTED
        self.platform = platform
        self.fallback = fallback or ConsoleNotifier()
        self.failure_reported = False

    @property
    def notice(self) -> Optional[tuple]:
        if self.failure_reported:
            return PLATFORM_FAILURE_NOTICE
        return permission_notice(self.permission)

    def notify(self, text: str) -> None:
        if self.permission is not PermissionState.GRANTED:
            self.fallback.notify(text)
            return

        try:
            self.platform.notify(text)
        except Exception as e:
            self.report_failure(text, e)

    def report_failure(self, text: str, error: Exception) -> None:
        """Show the fallback for the first platform failure only. Nothing is retried."""
        if self.failure_reported:
            logger.debug(f"Platform notification failed again: {error}")
            return
        self.failure_reported = True
        logger.warning(f"Platform notification failed, showing fallback once: {error}")
        self.fallback.notify(text)

    async def aclose(self) -> None:
        closer = getattr(self.platform, "aclose", None)
        if closer is not None:
            await closer()


def build_notifier(settings: Settings) -> PermissionAwareNotifier:
    """Build the notification sink from configuration."""
    permission = PermissionState.parse(settings.NOTIFICATION_PERMISSION)
    platform = None
    if settings.NOTIFICATION_WEBHOOK_URL:
        platform = WebhookNotifier(settings.NOTIFICATION_WEBHOOK_URL, settings.NOTIFICATION_TITLE)
    notifier = PermissionAwareNotifier(permission, platform=platform)
    if platform is not None:
        platform.on_failure = notifier.report_failure

    notice = notifier.notice
    if notice:
        logger.warning(f"[{notice[0]}] {notice[1]}")
    return notifier
