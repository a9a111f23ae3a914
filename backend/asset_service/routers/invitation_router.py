from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends

from asset_service.core.security import UserContext, get_current_user
from asset_service.schemas.common_schemas import ApiResponse, success_response
from asset_service.schemas.invitation_schemas import InvitationResponse
from asset_service.services.invitation_service import (
    accept_invitation_service,
    list_received_invitations_service,
    list_sent_invitations_service,
    reject_invitation_service,
)

router = APIRouter(prefix="/invitations", tags=["Invitations"])


@router.get("/received", response_model=ApiResponse[List[InvitationResponse]])
def list_received(current_user: UserContext = Depends(get_current_user)):
    return success_response(list_received_invitations_service(current_user))


@router.get("/sent", response_model=ApiResponse[List[InvitationResponse]])
def list_sent(current_user: UserContext = Depends(get_current_user)):
    return success_response(list_sent_invitations_service(current_user))


@router.post("/{invitation_id}/accept", response_model=ApiResponse[InvitationResponse])
def accept_invitation(
    invitation_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(accept_invitation_service(invitation_id, current_user), "Invitation accepted")


@router.post("/{invitation_id}/reject", response_model=ApiResponse[InvitationResponse])
def reject_invitation(
    invitation_id: UUID,
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(reject_invitation_service(invitation_id, current_user), "Invitation rejected")
