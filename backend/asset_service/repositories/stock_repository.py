from typing import List, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from asset_service.core.constants import ChangeType
from asset_service.core.database import get_db_session
from asset_service.core.exceptions import InsufficientStockError, NotFoundError
from asset_service.models.base import AssetGroupAsset, AssetStock, AssetStockHistory
from asset_service.repositories import audit_log_repository
from asset_service.repositories.audit_log_repository import model_to_dict


def _personal_stock(db: Session, asset_id: UUID, client_id: str) -> Optional[AssetStock]:
    return (
        db.query(AssetStock)
        .filter(AssetStock.asset_id == asset_id, AssetStock.user_client_id == client_id)
        .first()
    )


def _group_stock(db: Session, asset_id: UUID, group_id: UUID) -> Optional[AssetStock]:
    return (
        db.query(AssetStock)
        .join(AssetGroupAsset, AssetGroupAsset.asset_id == AssetStock.asset_id)
        .filter(AssetStock.asset_id == asset_id, AssetGroupAsset.asset_group_id == group_id)
        .first()
    )


def get_stock_by_asset_id_db(asset_id: UUID, client_id: str) -> Optional[AssetStock]:
    with get_db_session() as db:
        return _personal_stock(db, asset_id, client_id)


def get_stock_by_asset_and_group_db(asset_id: UUID, group_id: UUID) -> Optional[AssetStock]:
    with get_db_session() as db:
        return _group_stock(db, asset_id, group_id)


def get_stock_history_db(asset_id: UUID, limit: int = 100) -> List[AssetStockHistory]:
    with get_db_session() as db:
        return (
            db.query(AssetStockHistory)
            .filter(AssetStockHistory.asset_id == asset_id)
            .order_by(AssetStockHistory.id.desc())
            .limit(limit)
            .all()
        )


def update_stock_asset_db(
    change_type: ChangeType,
    asset_id: UUID,
    amount: int,
    reason: Optional[str],
    client_id: str,
    group_id: Optional[UUID] = None,
) -> AssetStock:
    """
    Изменяет остаток актива на amount (amount > 0 проверяется сервисом).

    Уменьшение выполняется условным UPDATE ... WHERE latest_quantity >= amount:
    ноль затронутых строк означает нехватку остатка, и транзакция откатывается.
    Вместе с остатком пишутся строка истории и запись аудита.
    """
    with get_db_session() as db:
        if group_id is None:
            stock = _personal_stock(db, asset_id, client_id)
        else:
            stock = _group_stock(db, asset_id, group_id)
        if stock is None:
            raise NotFoundError("Asset stock not found")

        old_data = model_to_dict(stock)
        query = db.query(AssetStock).filter(AssetStock.id == stock.id)
        if change_type == ChangeType.DECREASE:
            query = query.filter(AssetStock.latest_quantity >= amount)
            new_quantity = AssetStock.latest_quantity - amount
        else:
            new_quantity = AssetStock.latest_quantity + amount

        updated = query.update(
            {
                AssetStock.latest_quantity: new_quantity,
                AssetStock.change_type: change_type.value,
                AssetStock.quantity: amount,
                AssetStock.reason: reason or None,
                AssetStock.updated_by: client_id,
            },
            synchronize_session=False,
        )
        if updated == 0:
            raise InsufficientStockError()

        db.refresh(stock)
        delta = amount if change_type == ChangeType.INCREASE else -amount
        history = AssetStockHistory(
            stock_id=stock.id,
            asset_id=stock.asset_id,
            asset_group_id=group_id,
            user_client_id=client_id,
            change_type=change_type.value,
            previous_quantity=stock.latest_quantity - delta,
            new_quantity=stock.latest_quantity,
            quantity_changed=amount,
            reason=reason or None,
            created_by=client_id,
        )
        db.add(history)
        db.flush()

        audit_log_repository.after_update(db, old_data, stock, client_id)
        audit_log_repository.after_create(db, history, client_id)
        db.commit()
        return stock
