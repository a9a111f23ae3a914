import logging
from typing import List
from uuid import UUID

from asset_service.core.exceptions import NotFoundError, ValidationError, db_errors
from asset_service.core.security import UserContext
from asset_service.repositories.group_repository import get_group_by_id_db
from asset_service.repositories.member_repository import (
    get_member_db,
    get_members_with_permissions_db,
    remove_member_db,
)
from asset_service.schemas.group_schemas import GroupMemberResponse
from asset_service.services.group_service import require_member

logger = logging.getLogger(__name__)


def get_members_service(group_id: UUID, caller: UserContext) -> List[GroupMemberResponse]:
    with db_errors("get_members", caller.client_id):
        if not get_group_by_id_db(group_id):
            raise NotFoundError("Group not found")
        require_member(group_id, caller, "view group members")
        members = get_members_with_permissions_db(group_id)
    return [GroupMemberResponse(**m) for m in members]


def leave_group_service(group_id: UUID, caller: UserContext) -> dict:
    """Выход из группы. Владелец выйти не может, он удаляет группу."""
    with db_errors("leave_group", caller.client_id):
        group = get_group_by_id_db(group_id)
        if not group:
            raise NotFoundError("Group not found")
        if not get_member_db(caller.user_id, group_id):
            raise NotFoundError("User is not a member of the group")
        if group.owner_user_id == caller.user_id:
            raise ValidationError("The group owner cannot leave the group")
        remove_member_db(group_id, caller.user_id, caller.client_id)
    logger.info(f"Client {caller.client_id} left group {group_id}")
    return {"group_id": str(group_id)}
