"""Profile API schemas."""
from __future__ import annotations

from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ProfileUpdate(BaseModel):
    """Fields the owner may set; omitted fields are left as they are."""
    username: Optional[str] = None
    display_name: Optional[str] = None
    bio: Optional[str] = None
    is_public_profile: Optional[bool] = None


class ProfileRead(BaseModel):
    id: UUID
    username: str
    display_name: Optional[str] = None
    bio: Optional[str] = None
    is_public_profile: bool = False

    model_config = ConfigDict(from_attributes=True)
