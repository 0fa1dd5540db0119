"""Reminder delivery scheduler.

Keeps one asyncio timer per reminder that has a due instant and calls the
notification sink exactly once per reminder ID for the scheduler's lifetime.

The scheduler never mutates reminders. It is driven by full snapshots of
the reminder list: every ``reconcile`` cancels all timers and re-arms them
from the snapshot. Delivery is deduplicated by reminder ID, so re-arming a
reminder that is still present is harmless.

All methods must be called from the event loop thread. No locking is done.
"""

import asyncio
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, Optional, Set, Union

from pydantic import ValidationError

from logger_config import setup_logger
from schemas import ReminderResponse, to_utc

logger = setup_logger(__name__, 'scheduler.log')

ReminderLike = Union[ReminderResponse, dict]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ReminderScheduler:
    """Owns the timer map and the set of already-notified reminder IDs.

    Args:
        sink: Object with ``notify(text)``; decides how the user is alerted
        loop: Event loop used to arm timers (default: the running loop)
        clock: Returns the current time as an aware datetime
    """

    def __init__(
        self,
        sink,
        loop: Optional[asyncio.AbstractEventLoop] = None,
        clock: Callable[[], datetime] = utc_now
    ):
        self._sink = sink
        self._loop = loop
        self._clock = clock
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._notified: Set[str] = set()
        self._torn_down = False

    @property
    def scheduled_ids(self) -> Set[str]:
        return set(self._timers)

    @property
    def notified_ids(self) -> Set[str]:
        return set(self._notified)

    def reconcile(self, reminders: Iterable[ReminderLike]) -> None:
        """Re-derive all timers from the latest reminder snapshot.

        Reminders already due are delivered before this returns. Reminders
        without a due instant are ignored.
        """
        if self._torn_down:
            raise RuntimeError("reconcile() called after teardown()")

        self._cancel_all()

        for item in reminders:
            reminder = self._coerce(item)
            if reminder is None:
                continue

            due_at = to_utc(reminder.due_at)
            if due_at is None:
                continue

            delay = (due_at - self._clock()).total_seconds()
            if delay <= 0:
                self.deliver(reminder)
                continue

            # A snapshot may list the same ID twice; keep one timer per ID
            previous = self._timers.pop(reminder.id, None)
            if previous is not None:
                previous.cancel()

            loop = self._loop or asyncio.get_running_loop()
            self._timers[reminder.id] = loop.call_later(delay, self._on_timer, reminder)
            logger.info(f"Armed reminder {reminder.id} in {delay:.0f}s")

    def deliver(self, reminder: ReminderLike) -> bool:
        """Notify once per reminder ID.

        Returns:
            True if the sink was invoked, False if the ID was already notified
            or the scheduler has been torn down
        """
        if self._torn_down:
            return False
        reminder = self._coerce(reminder)
        if reminder is None or reminder.id in self._notified:
            return False

        self._notified.add(reminder.id)
        try:
            self._sink.notify(reminder.note)
        except Exception as e:
            # At-most-once: the ID stays notified, no retry
            logger.error(f"Notification failed for reminder {reminder.id}: {e}")
        else:
            logger.info(f"Delivered reminder {reminder.id}")
        return True

    def forget(self, reminder_id: str) -> None:
        """Drop a deleted reminder: cancel its timer and clear its notified flag."""
        handle = self._timers.pop(reminder_id, None)
        if handle is not None:
            handle.cancel()
        self._notified.discard(reminder_id)

    def teardown(self) -> None:
        """Cancel every armed timer. The scheduler cannot be reused afterwards."""
        self._cancel_all()
        self._torn_down = True
        logger.info("Scheduler torn down")

    def _on_timer(self, reminder: ReminderResponse) -> None:
        self._timers.pop(reminder.id, None)
        self.deliver(reminder)

    def _cancel_all(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers.clear()

    @staticmethod
    def _coerce(item: ReminderLike) -> Optional[ReminderResponse]:
        if isinstance(item, ReminderResponse):
            return item
        try:
            return ReminderResponse.model_validate(item)
        except ValidationError as e:
            logger.warning(f"Skipping malformed reminder {item!r}: {e}")
            return None
