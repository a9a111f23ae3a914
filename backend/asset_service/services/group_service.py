import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional
from uuid import UUID

from asset_service.core.config import settings
from asset_service.core.constants import (
    GROUP_ADMIN_PERMISSIONS,
    GROUP_MANAGE_PERMISSIONS,
    PermissionName,
)
from asset_service.core.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    db_errors,
)
from asset_service.core.security import UserContext
from asset_service.models.base import AssetGroup, AssetGroupInvitation, AssetGroupPermission
from asset_service.repositories.group_asset_repository import get_group_assets_db
from asset_service.repositories.group_repository import (
    clear_invitation_token_db,
    create_group_db,
    delete_group_db,
    get_group_by_id_db,
    get_group_by_invitation_token_db,
    get_group_detail_db,
    get_groups_by_owner_db,
    join_group_by_token_db,
    set_invitation_token_db,
    update_group_db,
)
from asset_service.repositories.invitation_repository import (
    create_invitation_db,
    get_pending_invitation_db,
)
from asset_service.repositories.member_repository import (
    add_member_db,
    get_member_db,
    get_members_with_permissions_db,
    get_membership_by_user_db,
    remove_member_db,
)
from asset_service.repositories.permission_repository import (
    add_member_permission_db,
    get_permission_by_id_db,
    has_any_permission,
    member_has_permission_db,
    remove_member_permission_db,
)
from asset_service.repositories.user_repository import get_user_by_id
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
)

logger = logging.getLogger(__name__)


def _get_group_or_404(group_id: UUID) -> AssetGroup:
    group = get_group_by_id_db(group_id)
    if not group:
        raise NotFoundError("Group not found")
    return group


def require_member(group_id: UUID, caller: UserContext, action: str) -> None:
    if not get_member_db(caller.user_id, group_id):
        logger.warning(f"Client {caller.client_id} denied to {action}: not a member of group {group_id}")
        raise PermissionDeniedError(f"Access denied to {action}")


def require_permission(group_id: UUID, caller: UserContext, names: Iterable[str], action: str) -> None:
    """Проверяет членство и наличие хотя бы одного из прав. Какие права нужны, наружу не сообщаем."""
    if not get_member_db(caller.user_id, group_id) or not has_any_permission(caller.user_id, group_id, names):
        logger.warning(f"Client {caller.client_id} denied to {action} in group {group_id}")
        raise PermissionDeniedError(f"Access denied to {action}")


def _ensure_user_has_no_group(user_id: UUID, message: str) -> None:
    if get_membership_by_user_db(user_id) or get_groups_by_owner_db(user_id):
        raise ConflictError(message)


def create_group_service(group_data: GroupCreate, caller: UserContext) -> GroupResponse:
    name = (group_data.name or "").strip()
    if not name:
        raise ValidationError("Group name is required")

    with db_errors("create_group", caller.client_id, "User already belongs to a group"):
        _ensure_user_has_no_group(caller.user_id, "User already belongs to a group")
        group = AssetGroup(
            name=name,
            description=group_data.description,
            owner_user_id=caller.user_id,
            created_by=caller.client_id,
            updated_by=caller.client_id,
        )
        created_group = create_group_db(group, caller.client_id, caller.client_id)

    logger.info(f"Group {created_group.id} created by {caller.client_id}")
    return GroupResponse.model_validate(created_group)


def get_my_group_service(caller: UserContext) -> GroupDetailResponse:
    with db_errors("get_my_group", caller.client_id):
        membership = get_membership_by_user_db(caller.user_id)
    if not membership:
        raise NotFoundError("User does not belong to a group")
    return get_group_detail_service(membership.asset_group_id, caller)


def get_group_detail_service(group_id: UUID, caller: UserContext) -> GroupDetailResponse:
    with db_errors("get_group_detail", caller.client_id):
        detail = get_group_detail_db(group_id)
        if not detail:
            raise NotFoundError("Group not found")
        require_member(group_id, caller, "view group")
        members = get_members_with_permissions_db(group_id)
    return GroupDetailResponse(**detail, members=[GroupMemberResponse(**m) for m in members])


def list_group_assets_service(group_id: UUID, caller: UserContext) -> List[GroupAssetResponse]:
    with db_errors("list_group_assets", caller.client_id):
        _get_group_or_404(group_id)
        require_member(group_id, caller, "view group assets")
        assets = get_group_assets_db(group_id)
    return [GroupAssetResponse(**a) for a in assets]


def rename_group_service(group_id: UUID, group_data: GroupUpdate, caller: UserContext) -> GroupResponse:
    update_data = group_data.model_dump(exclude_unset=True)
    if "name" in update_data:
        update_data["name"] = (update_data["name"] or "").strip()
        if not update_data["name"]:
            raise ValidationError("Group name is required")
    if not update_data:
        raise ValidationError("Nothing to update")

    with db_errors("rename_group", caller.client_id):
        _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_MANAGE_PERMISSIONS, "edit group")
        updated_group = update_group_db(group_id, update_data, caller.client_id)
    if not updated_group:
        raise NotFoundError("Group not found")
    return GroupResponse.model_validate(updated_group)


def delete_group_service(group_id: UUID, caller: UserContext) -> dict:
    with db_errors("delete_group", caller.client_id):
        _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_MANAGE_PERMISSIONS, "delete group")
        # Удалит только владелец: предикат владельца внутри UPDATE
        delete_group_db(group_id, caller.user_id, caller.client_id)
    logger.info(f"Group {group_id} deleted by {caller.client_id}")
    return {"group_id": str(group_id)}


def invite_member_service(group_id: UUID, invite_data: GroupMemberInvite, caller: UserContext) -> InviteResult:
    """
    Приглашение пользователя в группу.

    Если у приглашённого включено автопринятие, он сразу становится участником.
    Иначе создаётся приглашение со сроком действия, которое он принимает сам.
    """
    with db_errors("invite_member", caller.client_id, "User already belongs to a group"):
        _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_MANAGE_PERMISSIONS, "manage group members")

        invited_user = get_user_by_id(invite_data.user_id)
        if not invited_user:
            raise NotFoundError("Invited user not found")
        if get_member_db(invited_user.id, group_id):
            raise ConflictError("User is already a member of the group")
        _ensure_user_has_no_group(invited_user.id, "User already belongs to another group")

        if invited_user.auto_accept_group_invites:
            add_member_db(group_id, invited_user.id, caller.client_id, invited_user.client_id)
            logger.info(f"User {invited_user.id} added to group {group_id} by {caller.client_id}")
            return InviteResult(member_added=True)

        if get_pending_invitation_db(group_id, invited_user.id):
            raise ConflictError("Invitation is already pending")
        invitation = AssetGroupInvitation(
            asset_group_id=group_id,
            invited_user_id=invited_user.id,
            invited_by_user_id=caller.user_id,
            token=secrets.token_hex(16),
            message=invite_data.message,
            expires_at=datetime.now(timezone.utc) + timedelta(hours=settings.INVITATION_EXPIRE_HOURS),
            created_by=caller.client_id,
            updated_by=caller.client_id,
        )
        created = create_invitation_db(invitation, caller.client_id)

    logger.info(f"Invitation {created.id} to group {group_id} sent by {caller.client_id}")
    return InviteResult(member_added=False, invitation_id=created.id)


def remove_member_service(group_id: UUID, user_id: UUID, caller: UserContext) -> dict:
    with db_errors("remove_member", caller.client_id):
        group = _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_ADMIN_PERMISSIONS, "remove group members")
        if group.owner_user_id == user_id:
            raise ValidationError("Cannot remove the group owner")
        # Учётная запись могла быть удалена, членство проверяем напрямую
        if not get_member_db(user_id, group_id):
            raise NotFoundError("User is not a member of the group")
        remove_member_db(group_id, user_id, caller.client_id)
    logger.info(f"User {user_id} removed from group {group_id} by {caller.client_id}")
    return {"group_id": str(group_id), "user_id": str(user_id)}


def _check_grant_target(group_id: UUID, user_id: UUID, permission_id: UUID) -> AssetGroupPermission:
    if not get_user_by_id(user_id):
        raise NotFoundError("User not found")
    if not get_member_db(user_id, group_id):
        raise NotFoundError("User is not a member of the group")
    permission = get_permission_by_id_db(permission_id)
    if not permission:
        raise NotFoundError("Permission not found")
    return permission


def grant_permission_service(group_id: UUID, user_id: UUID, permission_id: UUID, caller: UserContext) -> dict:
    with db_errors("grant_permission", caller.client_id, "User already has this permission"):
        _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_ADMIN_PERMISSIONS, "manage group permissions")
        _check_grant_target(group_id, user_id, permission_id)
        if member_has_permission_db(user_id, group_id, permission_id):
            raise ConflictError("User already has this permission")
        add_member_permission_db(user_id, group_id, permission_id, caller.client_id)
    return {"user_id": str(user_id), "permission_id": str(permission_id)}


def revoke_permission_service(group_id: UUID, user_id: UUID, permission_id: UUID, caller: UserContext) -> dict:
    with db_errors("revoke_permission", caller.client_id):
        group = _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_ADMIN_PERMISSIONS, "manage group permissions")
        permission = _check_grant_target(group_id, user_id, permission_id)
        # Без Admin владелец не смог бы удалить группу
        if group.owner_user_id == user_id and permission.name == PermissionName.ADMIN.value:
            raise ValidationError("Cannot revoke Admin from the group owner")
        if not remove_member_permission_db(user_id, group_id, permission_id, caller.client_id):
            raise NotFoundError("User does not have this permission")
    return {"user_id": str(user_id), "permission_id": str(permission_id)}


def issue_invitation_token_service(group_id: UUID, caller: UserContext) -> InvitationTokenResponse:
    with db_errors("issue_invitation_token", caller.client_id, "Invitation token collision, retry"):
        _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_ADMIN_PERMISSIONS, "manage invitation token")
        group = set_invitation_token_db(
            group_id, secrets.token_hex(16), settings.INVITATION_TOKEN_MAX_USES, caller.client_id
        )
    if not group:
        raise NotFoundError("Group not found")
    return InvitationTokenResponse(
        invitation_token=group.invitation_token,
        max_uses=group.max_uses,
        current_uses=group.current_uses,
    )


def revoke_invitation_token_service(group_id: UUID, caller: UserContext) -> dict:
    with db_errors("revoke_invitation_token", caller.client_id):
        _get_group_or_404(group_id)
        require_permission(group_id, caller, GROUP_ADMIN_PERMISSIONS, "manage invitation token")
        clear_invitation_token_db(group_id, caller.client_id)
    return {"group_id": str(group_id)}


def join_group_by_token_service(token: str, caller: UserContext) -> GroupResponse:
    token = (token or "").strip()
    if not token:
        raise ValidationError("Invitation token is required")

    with db_errors("join_group_by_token", caller.client_id, "User already belongs to a group"):
        group: Optional[AssetGroup] = get_group_by_invitation_token_db(token)
        if not group:
            raise NotFoundError("Invalid invitation token")
        _ensure_user_has_no_group(caller.user_id, "User already belongs to a group")
        joined = join_group_by_token_db(group.id, caller.user_id, caller.client_id)

    logger.info(f"Client {caller.client_id} joined group {joined.id} by token")
    return GroupResponse.model_validate(joined)
