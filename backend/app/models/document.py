"""Document model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from app.database import Base

DOCUMENT_TYPES = (
    "Contract",
    "License",
    "Insurance",
    "Permit",
    "Lease",
    "Subscription",
    "Certification",
    "Other",
)


class Document(Base):
    """A tracked document with an expiration date."""
    
    __tablename__ = "documents"
    __table_args__ = (
        Index("ix_documents_user_expiry", "user_id", "expiration_date"),
        Index("ix_documents_status", "status"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    
    title = Column(String(255), nullable=False)
    description = Column(Text)
    document_type = Column(String(50))
    
    expiration_date = Column(String(10), nullable=False)  # YYYY-MM-DD
    renewal_period_days = Column(Integer)
    is_critical = Column(Integer, default=0)  # SQLite boolean
    
    # active, expired, renewed, cancelled
    status = Column(String(20), nullable=False, default="active")
    last_renewed_date = Column(String(10))  # YYYY-MM-DD
    
    # Timestamps
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
    updated_at = Column(String(26), default=lambda: datetime.utcnow().isoformat(), onupdate=lambda: datetime.utcnow().isoformat())
    
    # Relationships
    user = relationship("User", back_populates="documents")
    reminders = relationship("Reminder", back_populates="document", cascade="all, delete-orphan", passive_deletes=True)
