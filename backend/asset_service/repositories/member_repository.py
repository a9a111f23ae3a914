from collections import defaultdict
from typing import List, Optional
from uuid import UUID

from sqlalchemy import and_
from sqlalchemy.orm import Session

from asset_service.core.constants import BASELINE_PERMISSIONS, TABLE_ASSET_GROUP_MEMBER_PERMISSION
from asset_service.core.database import get_db_session
from asset_service.models.base import (
    AssetGroupMember,
    AssetGroupMemberPermission,
    AssetGroupPermission,
    User,
)
from asset_service.repositories import audit_log_repository
from asset_service.repositories.audit_log_repository import model_to_dict
from asset_service.repositories.group_asset_repository import delete_group_assets, mirror_owner_assets
from asset_service.repositories.permission_repository import add_grant, delete_grants, list_permissions_by_names


def add_member(
    db: Session,
    group_id: UUID,
    user_id: UUID,
    acting_client_id: str,
    invited_client_id: str,
) -> AssetGroupMember:
    """
    Добавляет участника в группу внутри открытой транзакции.

    Порядок: базовые права -> строка участника -> зеркала активов приглашённого.
    Права создаются первыми, чтобы любое чтение зеркал уже проходило проверку доступа.
    """
    permissions = list_permissions_by_names(db, BASELINE_PERMISSIONS)
    grants = [add_grant(db, user_id, group_id, p.id, acting_client_id) for p in permissions]
    if grants:
        audit_log_repository.after_create_rows(
            db, TABLE_ASSET_GROUP_MEMBER_PERMISSION, [model_to_dict(g) for g in grants], acting_client_id
        )

    member = AssetGroupMember(user_id=user_id, asset_group_id=group_id, created_by=acting_client_id)
    db.add(member)
    db.flush()
    audit_log_repository.after_create(db, member, acting_client_id)

    mirror_owner_assets(db, group_id, user_id, invited_client_id, acting_client_id)
    return member


def add_member_db(group_id: UUID, user_id: UUID, acting_client_id: str, invited_client_id: str) -> AssetGroupMember:
    with get_db_session() as db:
        member = add_member(db, group_id, user_id, acting_client_id, invited_client_id)
        db.commit()
        return member


def remove_member(db: Session, group_id: UUID, user_id: UUID, actor: str) -> int:
    """Жёсткое удаление грантов, участника и его зеркал активов в группе."""
    delete_grants(db, group_id, user_id, actor)
    member = (
        db.query(AssetGroupMember)
        .filter(and_(AssetGroupMember.asset_group_id == group_id, AssetGroupMember.user_id == user_id))
        .first()
    )
    removed = 0
    if member:
        audit_log_repository.after_delete(db, member, actor)
        db.delete(member)
        db.flush()
        removed = 1
    delete_group_assets(db, group_id, user_id, actor)
    return removed


def remove_member_db(group_id: UUID, user_id: UUID, actor: str) -> int:
    with get_db_session() as db:
        removed = remove_member(db, group_id, user_id, actor)
        db.commit()
        return removed


def delete_members(db: Session, group_id: UUID, actor: str) -> int:
    members = db.query(AssetGroupMember).filter(AssetGroupMember.asset_group_id == group_id)
    rows = [model_to_dict(m) for m in members.all()]
    if not rows:
        return 0
    audit_log_repository.after_delete_rows(db, AssetGroupMember.__tablename__, rows, actor)
    members.delete(synchronize_session=False)
    return len(rows)


def get_member_db(user_id: UUID, group_id: UUID) -> Optional[AssetGroupMember]:
    with get_db_session() as db:
        return (
            db.query(AssetGroupMember)
            .filter(and_(AssetGroupMember.user_id == user_id, AssetGroupMember.asset_group_id == group_id))
            .first()
        )


def get_membership_by_user_db(user_id: UUID) -> Optional[AssetGroupMember]:
    """Текущее членство пользователя (не более одного)."""
    with get_db_session() as db:
        return db.query(AssetGroupMember).filter(AssetGroupMember.user_id == user_id).first()


def get_members_with_permissions_db(group_id: UUID) -> List[dict]:
    with get_db_session() as db:
        # Первый запрос: сами участники
        member_rows = (
            db.query(User.id, User.username, User.full_name, User.profile_picture)
            .join(AssetGroupMember, AssetGroupMember.user_id == User.id)
            .filter(AssetGroupMember.asset_group_id == group_id, User.deleted_at.is_(None))
            .order_by(AssetGroupMember.created_at.asc())
            .all()
        )

        # Второй запрос: плоский список (пользователь, право), left join как у участников без прав
        permission_rows = (
            db.query(AssetGroupMember.user_id, AssetGroupPermission.id, AssetGroupPermission.name)
            .outerjoin(
                AssetGroupMemberPermission,
                and_(
                    AssetGroupMemberPermission.user_id == AssetGroupMember.user_id,
                    AssetGroupMemberPermission.asset_group_id == AssetGroupMember.asset_group_id,
                ),
            )
            .outerjoin(
                AssetGroupPermission,
                AssetGroupPermission.id == AssetGroupMemberPermission.permission_id,
            )
            .filter(AssetGroupMember.asset_group_id == group_id)
            .order_by(AssetGroupPermission.name.asc())
            .all()
        )

    permission_map = defaultdict(list)
    for user_id, permission_id, permission_name in permission_rows:
        if permission_id is None:
            continue
        permission_map[user_id].append({"permission_id": permission_id, "permission_name": permission_name})

    return [
        {
            "user_id": row.id,
            "username": row.username,
            "full_name": row.full_name,
            "profile_picture": row.profile_picture,
            "permissions": permission_map.get(row.id, []),
        }
        for row in member_rows
    ]
