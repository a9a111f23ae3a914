from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field


# --- Схемы для групп ---
class GroupBase(BaseModel):
    name: str = Field(max_length=100)
    description: Optional[str] = None


class GroupCreate(GroupBase):
    pass


class GroupUpdate(BaseModel):
    name: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = None


class GroupResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    owner_user_id: UUID
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# --- Участники и права ---
class MemberPermission(BaseModel):
    permission_id: UUID
    permission_name: str


class GroupMemberResponse(BaseModel):
    user_id: UUID
    username: str
    full_name: Optional[str]
    profile_picture: Optional[str]
    permissions: List[MemberPermission] = []


class GroupDetailResponse(BaseModel):
    id: UUID
    name: str
    description: Optional[str]
    owner_user_id: UUID
    owner_name: Optional[str]
    invitation_token: Optional[str] = None
    max_uses: Optional[int] = None
    current_uses: Optional[int] = None
    members: List[GroupMemberResponse] = []


class GroupAssetResponse(BaseModel):
    asset_id: UUID
    name: str
    description: Optional[str]
    user_id: UUID
    owner_name: Optional[str]
    latest_quantity: Optional[int]


class GroupMemberInvite(BaseModel):
    user_id: UUID
    message: Optional[str] = None


class InviteResult(BaseModel):
    member_added: bool
    invitation_id: Optional[UUID] = None  # только для приглашения на подтверждение


class PermissionGrant(BaseModel):
    user_id: UUID
    permission_id: UUID


# --- Токен приглашения ---
class InvitationTokenResponse(BaseModel):
    invitation_token: str
    max_uses: int
    current_uses: int


class JoinGroupRequest(BaseModel):
    token: str = Field(min_length=1)
