from typing import List, Optional
from datetime import date, datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field


class DreamBase(BaseModel):
    title: str
    description: Optional[str] = None
    dream_date: Optional[date] = None
    visibility: str = "private"
    image_url: Optional[str] = None


class DreamCreate(DreamBase):
    pass


class DreamUpdate(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    dream_date: Optional[date] = None
    visibility: Optional[str] = None
    image_url: Optional[str] = None


class DreamRead(BaseModel):
    id: UUID
    slug: str
    title: str
    description: Optional[str] = None
    dream_date: date
    visibility: str
    image_url: Optional[str] = None
    thumbnail_url: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class InterpretationRead(BaseModel):
    summary_text: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AuthorRead(BaseModel):
    username: str
    display_name: Optional[str] = None
    is_public_profile: bool = False

    model_config = ConfigDict(from_attributes=True)


class SharedDreamRead(BaseModel):
    dream: DreamRead
    interpretation: Optional[InterpretationRead] = None
    author: Optional[AuthorRead] = None


class PublicProfileRead(BaseModel):
    username: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    dreams: List[DreamRead] = []


class ImageImportRequest(BaseModel):
    image_url: Optional[str] = Field(default=None, alias="imageUrl")

    model_config = ConfigDict(populate_by_name=True)


class ImageImportResponse(BaseModel):
    stored_url: str = Field(alias="storedUrl")

    model_config = ConfigDict(populate_by_name=True)
