"""Pydantic schemas for Voice Reminder Service.

This module defines request and response schemas for API validation.
JSON field names are camelCase (``remindAt``, ``rawTranscript``); Python
attributes are snake_case. Pydantic parses ISO datetime strings to datetime objects.
"""

from pydantic import BaseModel, Field, field_serializer, field_validator
from datetime import datetime, timezone
from typing import List, Optional
from zoneinfo import ZoneInfo

from config import settings


def to_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Normalize a datetime to UTC.

    Naive values are local wall-clock times in ``settings.TIMEZONE``.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=ZoneInfo(settings.TIMEZONE))
    return value.astimezone(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    # SQLite drops tzinfo on read; stored values are always UTC
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


class ExtractedFields(BaseModel):
    """Structured fields pulled out of a transcript.

    Every field except ``note`` may be missing. ``note`` always carries the
    untouched transcript so nothing is lost when extraction finds nothing.
    """

    amount: Optional[str] = Field(None, description="First numeric token, commas stripped")
    payee: Optional[str] = Field(None, description="Title-cased payee name")
    due_date: Optional[str] = Field(
        None,
        alias="dueDate",
        description="Local date-time, minute precision (YYYY-MM-DDTHH:MM)"
    )
    note: str = Field(..., description="Original transcript")

    class Config:
        """Pydantic configuration"""
        populate_by_name = True
        frozen = True

    def present(self) -> dict:
        """Only the fields that were found, keyed by JSON name."""
        return self.model_dump(by_alias=True, exclude_none=True)


class ExtractRequest(BaseModel):
    """Schema for transcript extraction requests."""

    transcript: str = Field(
        ...,
        description="Final transcript from speech capture",
        examples=["Remind me to pay Rahul ₹2500 on Friday at 6 PM"]
    )


class ReminderCreate(BaseModel):
    """Schema for creating a new reminder.

    Either ``remindAt`` or ``dueDate`` (or neither) may be supplied.
    A reminder without either is stored but never scheduled.
    """

    note: str = Field(
        ...,
        min_length=1,
        max_length=1000,
        description="Reminder text shown in the notification",
        examples=["Pay Rahul rent"]
    )
    remind_at: Optional[datetime] = Field(
        None,
        alias="remindAt",
        description="When to deliver the notification (ISO 8601)"
    )
    due_date: Optional[datetime] = Field(
        None,
        alias="dueDate",
        description="Payment due date (ISO 8601)"
    )
    payee: Optional[str] = Field(None, max_length=200, description="Who to pay")
    amount: Optional[float] = Field(None, gt=0, description="Amount in rupees")
    raw_transcript: Optional[str] = Field(
        None,
        alias="rawTranscript",
        description="Transcript the reminder was dictated from"
    )
    source: Optional[str] = Field(
        None,
        max_length=50,
        description="Where the reminder came from: voice, dashboard, ..."
    )

    class Config:
        """Pydantic config"""
        populate_by_name = True

    @field_validator("note")
    @classmethod
    def note_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("note must not be blank")
        return value


class ReminderResponse(BaseModel):
    """A stored reminder as returned by the store.

    This is also the shape the scheduler consumes. ``due_at`` picks the
    instant used for delivery.
    """

    id: str = Field(..., description="Unique reminder ID")
    note: str = Field(..., description="Reminder text")
    remind_at: Optional[datetime] = Field(None, alias="remindAt")
    due_date: Optional[datetime] = Field(None, alias="dueDate")
    payee: Optional[str] = None
    amount: Optional[float] = None
    raw_transcript: Optional[str] = Field(None, alias="rawTranscript")
    source: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    class Config:
        """Pydantic configuration"""
        from_attributes = True  # ORM mode for SQLAlchemy models
        populate_by_name = True

        json_schema_extra = {
            "example": {
                "id": "abc-123-def-456",
                "note": "Remind me to pay Rahul ₹2500 on Friday at 6 PM",
                "remindAt": None,
                "dueDate": "2025-10-31T12:30:00+00:00",
                "payee": "Rahul",
                "amount": 2500,
                "rawTranscript": "Remind me to pay Rahul ₹2500 on Friday at 6 PM",
                "source": "voice",
                "createdAt": "2025-10-25T10:30:00+00:00"
            }
        }

    @field_serializer("remind_at", "due_date", "created_at")
    def serialize_datetime(self, value: Optional[datetime]) -> Optional[str]:
        return _iso(value)

    @property
    def due_at(self) -> Optional[datetime]:
        """Delivery instant: ``dueDate`` wins over ``remindAt``."""
        return self.due_date or self.remind_at


class ReminderList(BaseModel):
    """Response for GET /user/reminders."""

    reminders: List[ReminderResponse]


class ReminderEnvelope(BaseModel):
    """Response for POST /user/reminders."""

    reminder: ReminderResponse


class ErrorResponse(BaseModel):
    """Error body; clients display ``message`` as is."""

    message: str
