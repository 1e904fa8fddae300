"""Period-aggregate theme summary entity."""
from datetime import datetime
from uuid import uuid4
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy import Column, Date, DateTime, Text, Index, desc

from dream_atlas.infrastructure.db.meta import Base


class AggregateSummary(Base):
    """Themes across a user's dreams in [period_start, period_end].

    Rows are never replaced: every generation appends, and the most recently
    created row for an (owner, period) is the current one.
    """

    __tablename__ = "user_aggregate_summaries"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    period_start = Column(Date, nullable=False)
    period_end = Column(Date, nullable=False)
    summary_text = Column(Text, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        Index('ix_aggregate_user_period', 'user_id', 'period_start', 'period_end', desc('created_at')),
    )
