"""Database module for Voice Reminder Service.

This module defines SQLAlchemy models and database session management.
All datetime columns hold UTC datetime objects, NOT strings.
"""

from sqlalchemy import create_engine, Column, String, DateTime, Float, Text, Index
from sqlalchemy.orm import declarative_base, sessionmaker

from config import settings

# SQLAlchemy Base
Base = declarative_base()


class Reminder(Base):
    """Reminder model - one row per saved reminder."""

    __tablename__ = "reminders"

    id = Column(String, primary_key=True, doc="Unique reminder ID (UUID)")

    # Owner scope (X-User-Id header, not authentication)
    user_id = Column(String, nullable=False, index=True, default="local")

    # Reminder Content
    note = Column(Text, nullable=False, doc="Notification text")
    payee = Column(String, nullable=True)
    amount = Column(Float, nullable=True)
    raw_transcript = Column(Text, nullable=True, doc="Transcript the reminder was dictated from")
    source = Column(String, nullable=True, doc="voice, dashboard, ...")

    # Delivery instants (timezone-aware UTC)
    remind_at = Column(DateTime(timezone=True), nullable=True)
    due_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index('idx_user_created', 'user_id', 'created_at'),
    )

    def __repr__(self):
        """String representation"""
        return (
            f"<Reminder(id={self.id}, user={self.user_id}, "
            f"note={self.note!r}, due={self.due_date or self.remind_at})>"
        )


# Database Engine Setup
engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {},
    echo=False  # Set to True for SQL debugging
)

# Session Factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """Database session dependency for FastAPI.

    Yields:
        Session: SQLAlchemy database session
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# Create all tables
Base.metadata.create_all(bind=engine)
