"""Reminder model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from app.database import Base


class Reminder(Base):
    """One delivery attempt of a renewal reminder for one document on one day.
    
    Rows are inserted unsent right before delivery and flipped to sent once the
    provider accepts the message. Unsent rows may pile up for a day when
    deliveries fail; the partial unique index only allows a single sent row per
    (document_id, reminder_date).
    """
    
    __tablename__ = "reminders"
    __table_args__ = (
        Index(
            "uq_reminders_sent_per_day",
            "document_id",
            "reminder_date",
            unique=True,
            sqlite_where=text("is_sent = 1"),
            postgresql_where=text("is_sent = 1"),
        ),
        Index("ix_reminders_user_date", "user_id", "reminder_date"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    document_id = Column(String(36), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    
    reminder_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    # expired, expires_today, expires_soon, expires_week, expires_two_weeks, expires_month
    reminder_type = Column(String(30), nullable=False)
    
    # Delivery
    is_sent = Column(Integer, nullable=False, default=0)  # SQLite boolean
    channel = Column(String(20))  # Channel that actually delivered
    provider_message_id = Column(String(255))
    
    # Timestamps
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    document = relationship("Document", back_populates="reminders")
