"""CRUD operations for Voice Reminder Service.

This module provides database operations for reminders.
All datetime parameters and return values are datetime objects, NOT strings.
"""

from sqlalchemy.orm import Session
from typing import List, Optional
import uuid
from datetime import datetime, timezone

from database import Reminder
from logger_config import setup_logger
from schemas import to_utc

logger = setup_logger(__name__, 'crud.log')


def create_reminder(db: Session, reminder_data: dict, user_id: str = "local") -> Reminder:
    """Create a new reminder in the database.

    Args:
        db: Database session
        reminder_data: Dictionary with reminder fields
            - note: str
            - remind_at: Optional[datetime]
            - due_date: Optional[datetime]
            - payee, amount, raw_transcript, source: optional
        user_id: Owner scope

    Returns:
        Reminder: Created reminder with canonical id and created_at

    Raises:
        SQLAlchemyError: On database errors
    """
    db_reminder = Reminder(
        id=str(uuid.uuid4()),
        user_id=user_id,
        note=reminder_data['note'],
        payee=reminder_data.get('payee'),
        amount=reminder_data.get('amount'),
        raw_transcript=reminder_data.get('raw_transcript'),
        source=reminder_data.get('source'),
        remind_at=to_utc(reminder_data.get('remind_at')),
        due_date=to_utc(reminder_data.get('due_date')),
        created_at=datetime.now(timezone.utc)
    )

    db.add(db_reminder)
    db.commit()
    db.refresh(db_reminder)
    logger.info(f"Created reminder {db_reminder.id} for {user_id} (source={db_reminder.source})")
    return db_reminder


def list_reminders(db: Session, user_id: str = "local", limit: int = 500) -> List[Reminder]:
    """Get reminders for a user, newest first."""
    return (
        db.query(Reminder)
        .filter(Reminder.user_id == user_id)
        .order_by(Reminder.created_at.desc())
        .limit(limit)
        .all()
    )


def get_reminder(db: Session, reminder_id: str, user_id: str = "local") -> Optional[Reminder]:
    """Get a specific reminder by ID.

    Returns:
        Optional[Reminder]: Reminder object if found, None otherwise
    """
    return db.query(Reminder).filter(
        Reminder.id == reminder_id,
        Reminder.user_id == user_id
    ).first()


def delete_reminder(db: Session, reminder_id: str, user_id: str = "local") -> bool:
    """Delete a reminder.

    Returns:
        bool: True if deleted, False if not found
    """
    reminder = get_reminder(db, reminder_id, user_id)
    if not reminder:
        return False

    db.delete(reminder)
    db.commit()
    logger.info(f"Deleted reminder {reminder_id} for {user_id}")
    return True
