from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from asset_service.core.constants import ChangeType
from asset_service.core.database import get_db_session
from asset_service.models.base import Asset, AssetStock
from asset_service.repositories import audit_log_repository


def get_asset_by_id(asset_id: UUID) -> Optional[Asset]:
    with get_db_session() as db:
        return db.query(Asset).filter(Asset.id == asset_id, Asset.deleted_at.is_(None)).first()


def list_assets_by_owner(db: Session, client_id: str) -> List[Asset]:
    """Активы пользователя внутри уже открытой транзакции."""
    return (
        db.query(Asset)
        .filter(Asset.user_client_id == client_id, Asset.deleted_at.is_(None))
        .order_by(Asset.created_at.asc())
        .all()
    )


def create_asset_with_stock_db(asset: Asset, initial_quantity: int) -> tuple[Asset, AssetStock]:
    """Создаёт актив вместе с единственной записью остатка."""
    with get_db_session() as db:
        db.add(asset)
        db.flush()
        stock = AssetStock(
            asset_id=asset.id,
            user_client_id=asset.user_client_id,
            initial_quantity=initial_quantity,
            latest_quantity=initial_quantity,
            change_type=ChangeType.INCREASE.value,
            quantity=initial_quantity,
            created_by=asset.created_by,
            updated_by=asset.created_by,
        )
        db.add(stock)
        db.flush()
        audit_log_repository.after_create(db, asset, asset.created_by)
        audit_log_repository.after_create(db, stock, asset.created_by)
        db.commit()
        db.refresh(asset)
        db.refresh(stock)
        return asset, stock
