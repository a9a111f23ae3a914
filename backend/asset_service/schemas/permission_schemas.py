from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class PermissionCreate(BaseModel):
    name: str = Field(max_length=100)
    description: Optional[str] = None


class PermissionUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class PermissionResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str]

    class Config:
        from_attributes = True
