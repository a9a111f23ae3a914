from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    client_id: str
    username: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    profile_picture: Optional[str] = None
    is_active: bool
    is_admin: bool
    auto_accept_group_invites: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None  # Make this field optional

    class Config:
        from_attributes = True


class UserSettingsUpdate(BaseModel):
    auto_accept_group_invites: Optional[bool] = None
