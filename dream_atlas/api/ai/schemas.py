from typing import List, Optional, Tuple
from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from dream_atlas.domain.errors import ValidationError


class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class SummaryRequest(_Camel):
    dream_id: Optional[UUID] = Field(default=None, alias="dreamId")


class SummaryResponse(_Camel):
    summary: str
    created_at: datetime = Field(alias="createdAt")


class PeriodRequest(_Camel):
    period_start: Optional[date] = Field(default=None, alias="from")
    period_end: Optional[date] = Field(default=None, alias="to")

    def require_period(self) -> Tuple[date, date]:
        if self.period_start is None or self.period_end is None:
            raise ValidationError("`from` and `to` (YYYY-MM-DD) are required")
        return self.period_start, self.period_end


class AggregateResponse(_Camel):
    summary: Optional[str] = None
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")


class ChatRequest(PeriodRequest):
    session_id: Optional[UUID] = Field(default=None, alias="sessionId")
    message: Optional[str] = None


class ChatResponse(_Camel):
    session_id: UUID = Field(alias="sessionId")
    assistant_message: str = Field(alias="assistantMessage")


class ChatMessageRead(BaseModel):
    role: str
    content: str

    model_config = ConfigDict(from_attributes=True)


class ChatHistoryResponse(_Camel):
    session_id: Optional[UUID] = Field(default=None, alias="sessionId")
    messages: List[ChatMessageRead] = []
