# dream_atlas/domain/conversation/entities/conversation.py
from __future__ import annotations

from datetime import date, datetime
from enum import Enum
from uuid import uuid4, UUID as PYUUID
from sqlalchemy.dialects.postgresql import UUID

from sqlalchemy import (
    Date,
    DateTime,
    ForeignKey,
    Index,
    String,
    Text,
    desc,
)
from sqlalchemy.orm import Mapped, mapped_column

from dream_atlas.infrastructure.db.meta import Base


class MessageRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatSession(Base):
    """
    A chat about one owner's dreams over one fixed date window.
    The window is set at creation and never edited afterwards.
    """

    __tablename__ = "dream_chat_sessions"
    __table_args__ = (
        Index('ix_chat_sessions_user_period', 'user_id', 'period_start', 'period_end', desc('created_at')),
    )

    id: Mapped[PYUUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid4
    )
    user_id: Mapped[PYUUID] = mapped_column(
        UUID(as_uuid=True), index=True, nullable=False
    )
    period_start: Mapped[date] = mapped_column(Date, nullable=False)
    period_end: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )


class ChatMessage(Base):
    """Append-only turn inside a ChatSession, read back by created_at."""

    __tablename__ = "dream_chat_messages"

    id: Mapped[PYUUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid4
    )
    session_id: Mapped[PYUUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("dream_chat_sessions.id", ondelete="CASCADE"),
        index=True,
        nullable=False,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=datetime.utcnow, nullable=False, index=True
    )
