from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from asset_service.core.constants import TABLE_ASSET_GROUP_MEMBER_PERMISSION
from asset_service.core.database import get_db_session
from asset_service.core.exceptions import ConflictError, PermissionDeniedError
from asset_service.models.base import AssetGroup, AssetGroupMember, User
from asset_service.repositories import audit_log_repository
from asset_service.repositories.audit_log_repository import model_to_dict
from asset_service.repositories.group_asset_repository import delete_group_assets, mirror_owner_assets
from asset_service.repositories.member_repository import add_member, delete_members
from asset_service.repositories.permission_repository import add_grant, delete_grants, list_all_permissions


def _active_groups(db: Session):
    return db.query(AssetGroup).filter(AssetGroup.deleted_at.is_(None))


def create_group_db(group: AssetGroup, owner_client_id: str, caller_client_id: str) -> AssetGroup:
    """
    Создаёт группу одной транзакцией: группа, все права каталога владельцу,
    членство владельца и зеркала активов вызывающего пользователя.
    Любая ошибка откатывает всё целиком.
    """
    with get_db_session() as db:
        db.add(group)
        db.flush()
        audit_log_repository.after_create(db, group, owner_client_id)

        grants = [
            add_grant(db, group.owner_user_id, group.id, permission.id, owner_client_id)
            for permission in list_all_permissions(db)
        ]
        if grants:
            audit_log_repository.after_create_rows(
                db, TABLE_ASSET_GROUP_MEMBER_PERMISSION, [model_to_dict(g) for g in grants], owner_client_id
            )

        member = AssetGroupMember(
            user_id=group.owner_user_id,
            asset_group_id=group.id,
            created_by=owner_client_id,
        )
        db.add(member)
        db.flush()
        audit_log_repository.after_create(db, member, owner_client_id)

        mirror_owner_assets(db, group.id, group.owner_user_id, caller_client_id, owner_client_id)

        db.commit()
        db.refresh(group)
        return group


def get_group_by_id_db(group_id: UUID) -> Optional[AssetGroup]:
    with get_db_session() as db:
        return _active_groups(db).filter(AssetGroup.id == group_id).first()


def get_groups_by_owner_db(user_id: UUID) -> List[AssetGroup]:
    with get_db_session() as db:
        return _active_groups(db).filter(AssetGroup.owner_user_id == user_id).all()


def get_group_by_invitation_token_db(invitation_token: str) -> Optional[AssetGroup]:
    with get_db_session() as db:
        return _active_groups(db).filter(AssetGroup.invitation_token == invitation_token).first()


def get_group_detail_db(group_id: UUID) -> Optional[dict]:
    with get_db_session() as db:
        row = (
            db.query(AssetGroup, User.full_name)
            .outerjoin(User, User.id == AssetGroup.owner_user_id)
            .filter(AssetGroup.id == group_id, AssetGroup.deleted_at.is_(None))
            .first()
        )
        if not row:
            return None
        group, owner_name = row
        return {
            "id": group.id,
            "name": group.name,
            "description": group.description,
            "owner_user_id": group.owner_user_id,
            "owner_name": owner_name,
            "invitation_token": group.invitation_token,
            "max_uses": group.max_uses,
            "current_uses": group.current_uses,
        }


def update_group_db(group_id: UUID, update_data: dict, actor: str) -> Optional[AssetGroup]:
    with get_db_session() as db:
        group = _active_groups(db).filter(AssetGroup.id == group_id).first()
        if group:
            old_data = model_to_dict(group)
            for key, value in update_data.items():
                setattr(group, key, value)
            group.updated_by = actor
            db.flush()
            audit_log_repository.after_update(db, old_data, group, actor)
            db.commit()
            db.refresh(group)
        return group


def delete_group_db(group_id: UUID, owner_user_id: UUID, actor: str) -> None:
    """
    Удаляет группу: гранты -> участники -> зеркала активов -> мягкое удаление группы.
    Строка группы помечается только если удаляющий её владелец.
    """
    with get_db_session() as db:
        group = _active_groups(db).filter(AssetGroup.id == group_id).first()
        old_data = model_to_dict(group) if group else None

        delete_grants(db, group_id, None, actor)
        delete_members(db, group_id, actor)
        delete_group_assets(db, group_id, None, actor)

        updated = (
            _active_groups(db)
            .filter(AssetGroup.id == group_id, AssetGroup.owner_user_id == owner_user_id)
            .update(
                {
                    AssetGroup.deleted_at: datetime.now(timezone.utc),
                    AssetGroup.deleted_by: actor,
                    AssetGroup.updated_by: actor,
                    AssetGroup.invitation_token: None,
                    AssetGroup.max_uses: None,
                    AssetGroup.current_uses: None,
                },
                synchronize_session=False,
            )
        )
        if updated == 0:
            # Откатываем и удаление дочерних строк
            raise PermissionDeniedError("Only the group owner can delete the group")

        db.refresh(group)
        audit_log_repository.after_update(db, old_data, group, actor)
        db.commit()


def set_invitation_token_db(group_id: UUID, token: str, max_uses: int, actor: str) -> Optional[AssetGroup]:
    with get_db_session() as db:
        group = _active_groups(db).filter(AssetGroup.id == group_id).first()
        if group:
            old_data = model_to_dict(group)
            group.invitation_token = token
            group.max_uses = max_uses
            group.current_uses = 0
            group.updated_by = actor
            db.flush()
            audit_log_repository.after_update(db, old_data, group, actor)
            db.commit()
            db.refresh(group)
        return group


def clear_invitation_token_db(group_id: UUID, actor: str) -> Optional[AssetGroup]:
    with get_db_session() as db:
        group = _active_groups(db).filter(AssetGroup.id == group_id).first()
        if group:
            old_data = model_to_dict(group)
            group.invitation_token = None
            group.max_uses = None
            group.current_uses = None
            group.updated_by = actor
            db.flush()
            audit_log_repository.after_update(db, old_data, group, actor)
            db.commit()
            db.refresh(group)
        return group


def update_current_uses_invitation_token(db: Session, group_id: UUID, actor: str) -> bool:
    """
    Атомарно увеличивает current_uses на 1, только пока current_uses < max_uses.
    False, если лимит исчерпан или токен снят.
    """
    group = _active_groups(db).filter(AssetGroup.id == group_id).first()
    if group is None:
        return False
    old_data = model_to_dict(group)
    updated = (
        _active_groups(db)
        .filter(
            AssetGroup.id == group_id,
            AssetGroup.invitation_token.is_not(None),
            AssetGroup.current_uses < AssetGroup.max_uses,
        )
        .update(
            {
                AssetGroup.current_uses: AssetGroup.current_uses + 1,
                AssetGroup.updated_by: actor,
            },
            synchronize_session=False,
        )
    )
    if updated == 0:
        return False
    db.refresh(group)
    audit_log_repository.after_update(db, old_data, group, actor)
    return True


def join_group_by_token_db(group_id: UUID, user_id: UUID, client_id: str) -> AssetGroup:
    """Погашение токена и вступление в группу одной транзакцией."""
    with get_db_session() as db:
        if not update_current_uses_invitation_token(db, group_id, client_id):
            raise ConflictError("Invitation token has reached its usage limit")
        add_member(db, group_id, user_id, client_id, client_id)
        db.commit()
        group = db.query(AssetGroup).filter(AssetGroup.id == group_id).one()
        return group
