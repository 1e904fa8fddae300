"""Profile domain entity (SQLAlchemy model)."""
from __future__ import annotations

from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy import Boolean, Column, String, Text, DateTime, func

from dream_atlas.infrastructure.db.meta import Base

class Profile(Base):
    """Public face of an identity; the id is the identity provider's user id."""

    __tablename__ = "profiles"

    id           = Column(UUID(as_uuid=True), primary_key=True)
    username     = Column(String(64), unique=True, nullable=False)
    display_name = Column(String(255), nullable=True)
    email        = Column(String(255), nullable=True)
    bio          = Column(Text, nullable=True)
    is_public_profile = Column(Boolean, default=False, nullable=False)
    created      = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def journal_name(self) -> str:
        """Name printed on the exported journal."""
        if self.display_name:
            return self.display_name
        if self.email:
            return self.email.split("@")[0]
        return self.username or "User"
