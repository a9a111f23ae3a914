from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import and_, exists
from sqlalchemy.orm import Session

from asset_service.core.constants import TABLE_ASSET_GROUP_MEMBER_PERMISSION
from asset_service.core.database import get_db_session
from asset_service.models.base import AssetGroupMemberPermission, AssetGroupPermission
from asset_service.repositories import audit_log_repository
from asset_service.repositories.audit_log_repository import model_to_dict


# --- Каталог прав ---

def list_all_permissions(db: Session) -> List[AssetGroupPermission]:
    return db.query(AssetGroupPermission).order_by(AssetGroupPermission.name.asc()).all()


def list_permissions_by_names(db: Session, names: Iterable[str]) -> List[AssetGroupPermission]:
    return (
        db.query(AssetGroupPermission)
        .filter(AssetGroupPermission.name.in_(list(names)))
        .order_by(AssetGroupPermission.name.asc())
        .all()
    )


def get_permissions_db() -> List[AssetGroupPermission]:
    with get_db_session() as db:
        return list_all_permissions(db)


def get_permission_by_id_db(permission_id: UUID) -> Optional[AssetGroupPermission]:
    with get_db_session() as db:
        return db.query(AssetGroupPermission).filter(AssetGroupPermission.id == permission_id).first()


def get_permission_by_name_db(name: str) -> Optional[AssetGroupPermission]:
    with get_db_session() as db:
        return db.query(AssetGroupPermission).filter(AssetGroupPermission.name == name).first()


def create_permission_db(permission: AssetGroupPermission, actor: str) -> AssetGroupPermission:
    with get_db_session() as db:
        db.add(permission)
        db.flush()
        audit_log_repository.after_create(db, permission, actor)
        db.commit()
        db.refresh(permission)
        return permission


def update_permission_db(permission_id: UUID, update_data: dict, actor: str) -> Optional[AssetGroupPermission]:
    with get_db_session() as db:
        permission = db.query(AssetGroupPermission).filter(AssetGroupPermission.id == permission_id).first()
        if not permission:
            return None
        old_data = model_to_dict(permission)
        for key, value in update_data.items():
            setattr(permission, key, value)
        permission.updated_by = actor
        db.flush()
        audit_log_repository.after_update(db, old_data, permission, actor)
        db.commit()
        db.refresh(permission)
        return permission


def delete_permission_db(permission_id: UUID, actor: str) -> bool:
    """Удаляет право из каталога вместе со всеми выданными грантами."""
    with get_db_session() as db:
        permission = db.query(AssetGroupPermission).filter(AssetGroupPermission.id == permission_id).first()
        if not permission:
            return False
        grants = (
            db.query(AssetGroupMemberPermission)
            .filter(AssetGroupMemberPermission.permission_id == permission_id)
            .all()
        )
        if grants:
            audit_log_repository.after_delete_rows(
                db, TABLE_ASSET_GROUP_MEMBER_PERMISSION, [model_to_dict(g) for g in grants], actor
            )
            db.query(AssetGroupMemberPermission).filter(
                AssetGroupMemberPermission.permission_id == permission_id
            ).delete(synchronize_session=False)
        audit_log_repository.after_delete(db, permission, actor)
        db.delete(permission)
        db.commit()
        return True


# --- Гранты участникам ---

def get_member_permissions_db(user_id: UUID, group_id: UUID) -> List[AssetGroupPermission]:
    with get_db_session() as db:
        return (
            db.query(AssetGroupPermission)
            .join(
                AssetGroupMemberPermission,
                AssetGroupMemberPermission.permission_id == AssetGroupPermission.id,
            )
            .filter(
                AssetGroupMemberPermission.user_id == user_id,
                AssetGroupMemberPermission.asset_group_id == group_id,
            )
            .order_by(AssetGroupPermission.name.asc())
            .all()
        )


def has_any_permission(user_id: UUID, group_id: UUID, names: Iterable[str]) -> bool:
    """Есть ли у пользователя в группе хотя бы одно из прав с указанными именами."""
    names = list(names)
    if not names:
        return False
    with get_db_session() as db:
        return db.query(
            exists().where(
                and_(
                    AssetGroupMemberPermission.permission_id == AssetGroupPermission.id,
                    AssetGroupMemberPermission.user_id == user_id,
                    AssetGroupMemberPermission.asset_group_id == group_id,
                    AssetGroupPermission.name.in_(names),
                )
            )
        ).scalar()


def member_has_permission_db(user_id: UUID, group_id: UUID, permission_id: UUID) -> bool:
    with get_db_session() as db:
        return (
            db.query(AssetGroupMemberPermission)
            .filter(
                AssetGroupMemberPermission.user_id == user_id,
                AssetGroupMemberPermission.asset_group_id == group_id,
                AssetGroupMemberPermission.permission_id == permission_id,
            )
            .first()
            is not None
        )


def add_grant(db: Session, user_id: UUID, group_id: UUID, permission_id: UUID, actor: str) -> AssetGroupMemberPermission:
    grant = AssetGroupMemberPermission(
        user_id=user_id,
        asset_group_id=group_id,
        permission_id=permission_id,
        created_by=actor,
    )
    db.add(grant)
    db.flush()
    return grant


def add_member_permission_db(user_id: UUID, group_id: UUID, permission_id: UUID, actor: str) -> AssetGroupMemberPermission:
    with get_db_session() as db:
        grant = add_grant(db, user_id, group_id, permission_id, actor)
        audit_log_repository.after_create(db, grant, actor)
        db.commit()
        return grant


def remove_member_permission_db(user_id: UUID, group_id: UUID, permission_id: UUID, actor: str) -> int:
    with get_db_session() as db:
        grant = (
            db.query(AssetGroupMemberPermission)
            .filter(
                AssetGroupMemberPermission.user_id == user_id,
                AssetGroupMemberPermission.asset_group_id == group_id,
                AssetGroupMemberPermission.permission_id == permission_id,
            )
            .first()
        )
        if not grant:
            return 0
        audit_log_repository.after_delete(db, grant, actor)
        db.delete(grant)
        db.commit()
        return 1


def delete_grants(db: Session, group_id: UUID, user_id: Optional[UUID], actor: str) -> int:
    """Жёсткое удаление грантов группы (или одного участника группы)."""
    query = db.query(AssetGroupMemberPermission).filter(
        AssetGroupMemberPermission.asset_group_id == group_id
    )
    if user_id is not None:
        query = query.filter(AssetGroupMemberPermission.user_id == user_id)
    rows = [model_to_dict(g) for g in query.all()]
    if not rows:
        return 0
    audit_log_repository.after_delete_rows(db, TABLE_ASSET_GROUP_MEMBER_PERMISSION, rows, actor)
    query.delete(synchronize_session=False)
    return len(rows)
