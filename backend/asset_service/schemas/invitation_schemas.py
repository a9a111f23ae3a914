from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel


class InvitationResponse(BaseModel):
    id: UUID
    asset_group_id: UUID
    invited_user_id: UUID
    invited_by_user_id: UUID
    status: str
    message: Optional[str]
    invited_at: Optional[datetime]
    responded_at: Optional[datetime]
    expires_at: datetime

    class Config:
        from_attributes = True
