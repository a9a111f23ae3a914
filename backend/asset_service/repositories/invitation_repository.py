from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from asset_service.core.constants import InvitationStatus
from asset_service.core.database import get_db_session
from asset_service.models.base import AssetGroupInvitation
from asset_service.repositories import audit_log_repository
from asset_service.repositories.audit_log_repository import model_to_dict
from asset_service.repositories.member_repository import add_member


def create_invitation_db(invitation: AssetGroupInvitation, actor: str) -> AssetGroupInvitation:
    with get_db_session() as db:
        db.add(invitation)
        db.flush()
        audit_log_repository.after_create(db, invitation, actor)
        db.commit()
        db.refresh(invitation)
        return invitation


def get_invitation_by_id_db(invitation_id: UUID) -> Optional[AssetGroupInvitation]:
    with get_db_session() as db:
        return db.query(AssetGroupInvitation).filter(AssetGroupInvitation.id == invitation_id).first()


def get_pending_invitation_db(group_id: UUID, invited_user_id: UUID) -> Optional[AssetGroupInvitation]:
    """Действующее приглашение: истёкшие до очистки не считаются ожидающими."""
    now = datetime.now(timezone.utc)
    with get_db_session() as db:
        return (
            db.query(AssetGroupInvitation)
            .filter(
                AssetGroupInvitation.asset_group_id == group_id,
                AssetGroupInvitation.invited_user_id == invited_user_id,
                AssetGroupInvitation.status == InvitationStatus.PENDING.value,
                AssetGroupInvitation.expires_at > now,
            )
            .first()
        )


def get_invitations_by_invited_user_db(user_id: UUID) -> List[AssetGroupInvitation]:
    with get_db_session() as db:
        return (
            db.query(AssetGroupInvitation)
            .filter(AssetGroupInvitation.invited_user_id == user_id)
            .order_by(AssetGroupInvitation.invited_at.desc())
            .all()
        )


def get_invitations_by_inviter_db(user_id: UUID) -> List[AssetGroupInvitation]:
    with get_db_session() as db:
        return (
            db.query(AssetGroupInvitation)
            .filter(AssetGroupInvitation.invited_by_user_id == user_id)
            .order_by(AssetGroupInvitation.invited_at.desc())
            .all()
        )


def _set_status(db: Session, invitation: AssetGroupInvitation, status: InvitationStatus, actor: str) -> None:
    old_data = model_to_dict(invitation)
    invitation.status = status.value
    invitation.responded_at = datetime.now(timezone.utc)
    invitation.updated_by = actor
    db.flush()
    audit_log_repository.after_update(db, old_data, invitation, actor)


def update_invitation_status_db(invitation_id: UUID, status: InvitationStatus, actor: str) -> Optional[AssetGroupInvitation]:
    with get_db_session() as db:
        invitation = db.query(AssetGroupInvitation).filter(AssetGroupInvitation.id == invitation_id).first()
        if invitation:
            _set_status(db, invitation, status, actor)
            db.commit()
            db.refresh(invitation)
        return invitation


def accept_invitation_db(invitation_id: UUID, invited_client_id: str, inviter_client_id: str) -> AssetGroupInvitation:
    """Принятие приглашения: членство и смена статуса в одной транзакции."""
    with get_db_session() as db:
        invitation = db.query(AssetGroupInvitation).filter(AssetGroupInvitation.id == invitation_id).one()
        add_member(
            db,
            invitation.asset_group_id,
            invitation.invited_user_id,
            inviter_client_id,
            invited_client_id,
        )
        _set_status(db, invitation, InvitationStatus.ACCEPTED, invited_client_id)
        db.commit()
        db.refresh(invitation)
        return invitation


def delete_expired_invitations_db(now: Optional[datetime] = None) -> int:
    """Периодическая очистка приглашений с истёкшим сроком. Возвращает число удалённых."""
    now = now or datetime.now(timezone.utc)
    with get_db_session() as db:
        expired = db.query(AssetGroupInvitation).filter(AssetGroupInvitation.expires_at < now)
        rows = [model_to_dict(i) for i in expired.all()]
        if not rows:
            return 0
        audit_log_repository.after_delete_rows(db, AssetGroupInvitation.__tablename__, rows, "system")
        expired.delete(synchronize_session=False)
        db.commit()
        return len(rows)
