from datetime import datetime
from enum import Enum
from uuid import uuid4
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy import (
    Column, Date, DateTime, String, Text, Index, desc
)
from dream_atlas.infrastructure.db.meta import Base


class DreamVisibility(str, Enum):
    PRIVATE = "private"
    UNLISTED = "unlisted"   # reachable by slug, hidden from the profile page
    PUBLIC = "public"


class Dream(Base):
    __tablename__ = "dreams"
    id          = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id     = Column(UUID(as_uuid=True), nullable=False, index=True)
    slug        = Column(String(120), nullable=False, unique=True)
    title       = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    dream_date  = Column(Date, nullable=False)
    visibility  = Column(String(20), default=DreamVisibility.PRIVATE.value, nullable=False)
    created_at  = Column(DateTime, default=datetime.utcnow, index=True)

    # Media: image_url may be an external CDN link (untrusted) or an object in
    # our own bucket. thumbnail_url is always ours: a still frame cut from a
    # video image_url, written by the media normalizer.
    image_url     = Column(String(1000), nullable=True)
    thumbnail_url = Column(String(1000), nullable=True)

    __table_args__ = (
        # window queries: owner + date range
        Index('ix_dreams_user_dream_date', 'user_id', 'dream_date'),
        Index('ix_dreams_user_created', 'user_id', desc('created_at')),
    )

    @property
    def is_public(self) -> bool:
        return self.visibility == DreamVisibility.PUBLIC.value
