from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from asset_service.core.security import UserContext, get_current_user
from asset_service.schemas.common_schemas import ApiResponse, success_response
from asset_service.schemas.group_schemas import (
    GroupAssetResponse,
    GroupCreate,
    GroupDetailResponse,
    GroupMemberInvite,
    GroupMemberResponse,
    GroupResponse,
    GroupUpdate,
    InvitationTokenResponse,
    InviteResult,
    JoinGroupRequest,
    PermissionGrant,
)
from asset_service.services.group_service import (
    create_group_service,
    delete_group_service,
    get_group_detail_service,
    get_my_group_service,
    grant_permission_service,
    invite_member_service,
    issue_invitation_token_service,
    join_group_by_token_service,
    list_group_assets_service,
    remove_member_service,
    rename_group_service,
    revoke_invitation_token_service,
    revoke_permission_service,
)
from asset_service.services.member_service import get_members_service, leave_group_service

router = APIRouter(prefix="/groups", tags=["Groups"])


@router.post("/", response_model=ApiResponse[GroupResponse], status_code=201)
def create_group(
    group_data: GroupCreate,
    current_user: UserContext = Depends(get_current_user),
):
    """Создание группы. Создатель получает все права каталога."""
    group = create_group_service(group_data, current_user)
    return success_response(group, "Group created", 201)


@router.get("/me", response_model=ApiResponse[GroupDetailResponse])
def get_my_group(current_user: UserContext = Depends(get_current_user)):
    """Группа, в которой состоит пользователь."""
    return success_response(get_my_group_service(current_user))


@router.post("/join", response_model=ApiResponse[GroupResponse])
def join_group(
    join_data: JoinGroupRequest,
    current_user: UserContext = Depends(get_current_user),
):
    """Вступление в группу по токену приглашения."""
    group = join_group_by_token_service(join_data.token, current_user)
    return success_response(group, "Joined group")


@router.get("/{group_id}", response_model=ApiResponse[GroupDetailResponse])
def get_group(
    group_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(get_group_detail_service(group_id, current_user))


@router.put("/{group_id}", response_model=ApiResponse[GroupResponse])
def update_group(
    group_id: UUID,
    group_data: GroupUpdate,
    current_user: UserContext = Depends(get_current_user),
):
    """Переименование группы (Admin или Manage)."""
    group = rename_group_service(group_id, group_data, current_user)
    return success_response(group, "Group updated")


@router.delete("/{group_id}", response_model=ApiResponse[dict])
def delete_group(
    group_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    """Удаление группы (только владелец)."""
    return success_response(delete_group_service(group_id, current_user), "Group deleted")


@router.get("/{group_id}/assets", response_model=ApiResponse[List[GroupAssetResponse]])
def list_group_assets(
    group_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(list_group_assets_service(group_id, current_user))


@router.get("/{group_id}/members", response_model=ApiResponse[List[GroupMemberResponse]])
def list_members(
    group_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(get_members_service(group_id, current_user))


@router.post("/{group_id}/members", response_model=ApiResponse[InviteResult])
def invite_member(
    group_id: UUID,
    invite_data: GroupMemberInvite,
    current_user: UserContext = Depends(get_current_user),
):
    """Приглашение пользователя в группу (Admin или Manage)."""
    result = invite_member_service(group_id, invite_data, current_user)
    message = "Member added" if result.member_added else "Invitation sent"
    return success_response(result, message)


@router.delete("/{group_id}/members/{user_id}", response_model=ApiResponse[dict])
def remove_member(
    group_id: UUID,
    user_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    """Исключение участника (только Admin)."""
    return success_response(remove_member_service(group_id, user_id, current_user), "Member removed")


@router.post("/{group_id}/leave", response_model=ApiResponse[dict])
def leave_group(
    group_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(leave_group_service(group_id, current_user), "Left group")


@router.post("/{group_id}/permissions", response_model=ApiResponse[dict], status_code=201)
def grant_permission(
    group_id: UUID,
    grant_data: PermissionGrant,
    current_user: UserContext = Depends(get_current_user),
):
    """Выдача права участнику (только Admin)."""
    result = grant_permission_service(group_id, grant_data.user_id, grant_data.permission_id, current_user)
    return success_response(result, "Permission granted", 201)


@router.delete("/{group_id}/permissions/{user_id}/{permission_id}", response_model=ApiResponse[dict])
def revoke_permission(
    group_id: UUID,
    user_id: UUID,
    permission_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    """Отзыв права у участника (только Admin)."""
    result = revoke_permission_service(group_id, user_id, permission_id, current_user)
    return success_response(result, "Permission revoked")


@router.post("/{group_id}/invitation-token", response_model=ApiResponse[InvitationTokenResponse])
def issue_invitation_token(
    group_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    token = issue_invitation_token_service(group_id, current_user)
    return success_response(token, "Invitation token issued")


@router.delete("/{group_id}/invitation-token", response_model=ApiResponse[dict])
def revoke_invitation_token(
    group_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(revoke_invitation_token_service(group_id, current_user), "Invitation token revoked")
