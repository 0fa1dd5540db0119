"""Reminder session: the store, the current reminder list and the scheduler.

One session per active user surface (the worker process, a UI). The session
is the only caller of ``scheduler.reconcile`` and always passes the newest
snapshot it knows. Local state changes only after the store confirms:

- create: the store's returned reminder is prepended
- delete: the reminder is dropped only after the store call succeeds
- failures: ``error`` is set to a user-visible message, the list is untouched
"""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from pydantic import ValidationError

from config import settings
from extractor import extract
from logger_config import setup_logger
from scheduler import ReminderScheduler
from schemas import ReminderResponse, to_utc
from store_client import ReminderStoreClient, StoreError

logger = setup_logger(__name__, 'session.log')

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class DraftError(ValueError):
    """The reminder form cannot be submitted; message is user-visible."""


def quick_note_payload(note: str, now: Optional[datetime] = None) -> dict:
    """Payload for a note-only reminder due after the default offset."""
    if not note or not note.strip():
        raise DraftError("Please enter a reminder note.")
    now = now or datetime.now(timezone.utc)
    remind_at = now + timedelta(minutes=settings.DEFAULT_REMINDER_OFFSET_MINUTES)
    return {"note": note.strip(), "remindAt": to_utc(remind_at).isoformat()}


class ReminderDraft:
    """Payment reminder form filled by typing and/or dictation.

    ``due_date`` is a local "YYYY-MM-DDTHH:MM" string, the same format the
    extractor produces.
    """

    def __init__(self, payee: str = "", amount: str = "", due_date: str = "", note: str = ""):
        self.payee = payee
        self.amount = amount
        self.due_date = due_date
        self.note = note
        self.voice_preview = ""

    def apply_transcript(self, transcript: str, now: Optional[datetime] = None) -> None:
        """Merge dictated fields into the form.

        A note the user already typed is kept. Payee, amount and due date
        are replaced only when the transcript yields them.
        """
        if not transcript:
            return
        parsed = extract(transcript, now=now)
        if parsed.amount:
            self.amount = parsed.amount
        if parsed.due_date:
            self.due_date = parsed.due_date
        if parsed.payee:
            self.payee = parsed.payee
        self.note = self.note or parsed.note or transcript
        self.voice_preview = transcript

    def to_payload(self) -> dict:
        payee = self.payee.strip()
        if not payee:
            raise DraftError("Who should we remind you to pay?")

        amount = None
        if str(self.amount).strip():
            try:
                amount = float(str(self.amount).replace(",", ""))
            except ValueError:
                raise DraftError("Amount must be a number.")

        due_date = None
        if self.due_date:
            try:
                due_date = to_utc(datetime.fromisoformat(self.due_date)).isoformat()
            except ValueError:
                raise DraftError("Due date is not a valid date.")

        return {
            "payee": payee,
            "amount": amount,
            "note": self.note.strip() or self.voice_preview.strip() or payee,
            "dueDate": due_date,
            "rawTranscript": self.voice_preview or None,
            "source": "voice" if self.voice_preview else "dashboard",
        }

    def reset(self) -> None:
        self.payee = self.amount = self.due_date = self.note = ""
        self.voice_preview = ""


class ReminderSession:
    """Owns the reminder snapshot and keeps the scheduler in sync with it."""

    def __init__(self, store: ReminderStoreClient, scheduler: ReminderScheduler):
        self.store = store
        self.scheduler = scheduler
        self.reminders: List[ReminderResponse] = []
        self.error = ""
        self._version = 0

    async def load(self) -> bool:
        """Fetch the full list from the store and reconcile timers.

        A fetch that was overtaken by a local create/delete is discarded.
        """
        self.error = ""
        started_at = self._version
        try:
            items = await self.store.fetch_reminders()
        except StoreError as e:
            self.error = str(e)
            logger.error(f"Unable to fetch reminders: {e}")
            return False

        if started_at != self._version:
            logger.info("Discarding reminder fetch overtaken by a local change")
            return False

        self.reminders = self._parse(items)
        self._sync()
        return True

    async def create(self, payload: dict) -> Optional[ReminderResponse]:
        self.error = ""
        try:
            created = await self.store.create_reminder(payload)
        except StoreError as e:
            self.error = str(e)
            logger.error(f"Unable to save reminder: {e}")
            return None

        try:
            reminder = ReminderResponse.model_validate(created)
        except ValidationError as e:
            self.error = "Unable to save reminder."
            logger.error(f"Store returned a malformed reminder: {e}")
            return None

        self.reminders = [reminder] + self.reminders
        self._version += 1
        self._sync()
        return reminder

    async def delete(self, reminder_id: str) -> bool:
        self.error = ""
        try:
            await self.store.delete_reminder(reminder_id)
        except StoreError as e:
            self.error = str(e)
            logger.error(f"Unable to delete reminder {reminder_id}: {e}")
            return False

        self.reminders = [r for r in self.reminders if r.id != reminder_id]
        self._version += 1
        self.scheduler.forget(reminder_id)
        self._sync()
        return True

    def reminders_by_due(self) -> List[ReminderResponse]:
        """Display order: earliest due (or created) first."""
        return sorted(
            self.reminders,
            key=lambda r: to_utc(r.due_date or r.created_at) or _EPOCH
        )

    async def close(self) -> None:
        self.scheduler.teardown()
        await self.store.aclose()

    def _sync(self) -> None:
        self.scheduler.reconcile(self.reminders)

    @staticmethod
    def _parse(items) -> List[ReminderResponse]:
        reminders = []
        for item in items:
            try:
                reminders.append(ReminderResponse.model_validate(item))
            except ValidationError as e:
                logger.warning(f"Skipping malformed reminder from store: {e}")
        return reminders
