"""Activity log model."""
import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, Index, String, Text

from app.database import Base


class ActivityLog(Base):
    """Append-only audit trail entry."""
    
    __tablename__ = "activity_logs"
    __table_args__ = (
        Index("ix_activity_logs_user_created", "user_id", "created_at"),
    )
    
    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    
    # document_created, document_updated, document_renewed, document_deleted,
    # reminder_sent, profile_update
    action_type = Column(String(50), nullable=False)
    description = Column(Text, nullable=False)
    related_document_id = Column(String(36))  # Kept after the document is deleted
    
    created_at = Column(String(26), default=lambda: datetime.utcnow().isoformat())
