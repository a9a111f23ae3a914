import logging
from datetime import datetime, timezone
from typing import List
from uuid import UUID

from asset_service.core.constants import InvitationStatus
from asset_service.core.exceptions import ConflictError, NotFoundError, db_errors
from asset_service.core.security import UserContext
from asset_service.repositories.group_repository import get_group_by_id_db
from asset_service.repositories.invitation_repository import (
    accept_invitation_db,
    delete_expired_invitations_db,
    get_invitation_by_id_db,
    get_invitations_by_invited_user_db,
    get_invitations_by_inviter_db,
    update_invitation_status_db,
)
from asset_service.repositories.member_repository import get_membership_by_user_db
from asset_service.repositories.user_repository import get_user_by_id
from asset_service.schemas.invitation_schemas import InvitationResponse

logger = logging.getLogger(__name__)


def _as_utc(value: datetime) -> datetime:
    # SQLite отдаёт naive datetime
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _get_own_pending_invitation(invitation_id: UUID, caller: UserContext):
    invitation = get_invitation_by_id_db(invitation_id)
    if not invitation or invitation.invited_user_id != caller.user_id:
        raise NotFoundError("Invitation not found")
    if invitation.status != InvitationStatus.PENDING.value:
        raise ConflictError(f"Invitation is already {invitation.status}")
    return invitation


def list_received_invitations_service(caller: UserContext) -> List[InvitationResponse]:
    with db_errors("list_received_invitations", caller.client_id):
        invitations = get_invitations_by_invited_user_db(caller.user_id)
    return [InvitationResponse.model_validate(i) for i in invitations]


def list_sent_invitations_service(caller: UserContext) -> List[InvitationResponse]:
    with db_errors("list_sent_invitations", caller.client_id):
        invitations = get_invitations_by_inviter_db(caller.user_id)
    return [InvitationResponse.model_validate(i) for i in invitations]


def accept_invitation_service(invitation_id: UUID, caller: UserContext) -> InvitationResponse:
    with db_errors("accept_invitation", caller.client_id, "User already belongs to a group"):
        invitation = _get_own_pending_invitation(invitation_id, caller)

        if _as_utc(invitation.expires_at) <= datetime.now(timezone.utc):
            update_invitation_status_db(invitation.id, InvitationStatus.EXPIRED, caller.client_id)
            raise ConflictError("Invitation has expired")
        if not get_group_by_id_db(invitation.asset_group_id):
            raise NotFoundError("Group not found")
        if get_membership_by_user_db(caller.user_id):
            raise ConflictError("User already belongs to a group")

        inviter = get_user_by_id(invitation.invited_by_user_id)
        inviter_client_id = inviter.client_id if inviter else caller.client_id
        accepted = accept_invitation_db(invitation.id, caller.client_id, inviter_client_id)

    logger.info(f"Client {caller.client_id} accepted invitation {invitation_id}")
    return InvitationResponse.model_validate(accepted)


def reject_invitation_service(invitation_id: UUID, caller: UserContext) -> InvitationResponse:
    with db_errors("reject_invitation", caller.client_id):
        invitation = _get_own_pending_invitation(invitation_id, caller)
        rejected = update_invitation_status_db(invitation.id, InvitationStatus.REJECTED, caller.client_id)
    return InvitationResponse.model_validate(rejected)


def sweep_expired_invitations_service() -> int:
    deleted = delete_expired_invitations_db()
    if deleted:
        logger.info(f"Deleted {deleted} expired group invitations")
    return deleted
