from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from asset_service.core.constants import TABLE_ASSET_GROUP_ASSET
from asset_service.core.database import get_db_session
from asset_service.models.base import Asset, AssetGroupAsset, AssetStock, User
from asset_service.repositories import audit_log_repository
from asset_service.repositories.asset_repository import list_assets_by_owner
from asset_service.repositories.audit_log_repository import model_to_dict


def mirror_owner_assets(db: Session, group_id: UUID, user_id: UUID, owner_client_id: str, actor: str) -> int:
    """Делает все активы пользователя видимыми в группе. Возвращает число созданных строк."""
    assets = list_assets_by_owner(db, owner_client_id)
    mirrors = [
        AssetGroupAsset(asset_id=asset.id, asset_group_id=group_id, user_id=user_id, created_by=actor)
        for asset in assets
    ]
    if not mirrors:
        return 0
    db.add_all(mirrors)
    db.flush()
    audit_log_repository.after_create_rows(
        db, TABLE_ASSET_GROUP_ASSET, [model_to_dict(m) for m in mirrors], actor
    )
    return len(mirrors)


def delete_group_assets(db: Session, group_id: UUID, user_id: Optional[UUID], actor: str) -> int:
    query = db.query(AssetGroupAsset).filter(AssetGroupAsset.asset_group_id == group_id)
    if user_id is not None:
        query = query.filter(AssetGroupAsset.user_id == user_id)
    rows = [model_to_dict(a) for a in query.all()]
    if not rows:
        return 0
    audit_log_repository.after_delete_rows(db, TABLE_ASSET_GROUP_ASSET, rows, actor)
    query.delete(synchronize_session=False)
    return len(rows)


def is_asset_in_group_db(asset_id: UUID, group_id: UUID) -> bool:
    with get_db_session() as db:
        return (
            db.query(AssetGroupAsset)
            .filter(AssetGroupAsset.asset_id == asset_id, AssetGroupAsset.asset_group_id == group_id)
            .first()
            is not None
        )


def get_group_assets_db(group_id: UUID) -> List[dict]:
    """Активы общего пула группы с текущим остатком и владельцем."""
    with get_db_session() as db:
        rows = (
            db.query(
                Asset.id,
                Asset.name,
                Asset.description,
                AssetGroupAsset.user_id,
                User.full_name,
                AssetStock.latest_quantity,
            )
            .join(AssetGroupAsset, AssetGroupAsset.asset_id == Asset.id)
            .outerjoin(User, User.id == AssetGroupAsset.user_id)
            .outerjoin(AssetStock, AssetStock.asset_id == Asset.id)
            .filter(AssetGroupAsset.asset_group_id == group_id, Asset.deleted_at.is_(None))
            .order_by(Asset.name.asc())
            .all()
        )
        return [
            {
                "asset_id": row.id,
                "name": row.name,
                "description": row.description,
                "user_id": row.user_id,
                "owner_name": row.full_name,
                "latest_quantity": row.latest_quantity,
            }
            for row in rows
        ]
