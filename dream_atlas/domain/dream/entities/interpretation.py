from datetime import datetime
from uuid import uuid4
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy import Column, DateTime, Text, ForeignKey
from dream_atlas.infrastructure.db.meta import Base


class DreamInterpretation(Base):
    """AI reading of a single dream. Regenerating replaces the row."""
    __tablename__ = "dream_summaries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    dream_id = Column(UUID(as_uuid=True), ForeignKey("dreams.id", ondelete="CASCADE"), nullable=False, index=True)
    summary_text = Column(Text, nullable=False)  # HTML fragment
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
