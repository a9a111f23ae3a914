import logging
from typing import List, Optional
from uuid import UUID

from asset_service.core.constants import GROUP_STOCK_PERMISSIONS
from asset_service.core.exceptions import (
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
    db_errors,
)
from asset_service.core.security import UserContext
from asset_service.repositories.asset_repository import get_asset_by_id
from asset_service.repositories.group_asset_repository import is_asset_in_group_db
from asset_service.repositories.group_repository import get_group_by_id_db
from asset_service.repositories.stock_repository import (
    get_stock_by_asset_and_group_db,
    get_stock_by_asset_id_db,
    get_stock_history_db,
    update_stock_asset_db,
)
from asset_service.schemas.stock_schemas import (
    StockAdjustRequest,
    StockHistoryResponse,
    StockResponse,
)
from asset_service.services.group_service import require_member, require_permission

logger = logging.getLogger(__name__)


def _check_asset_access(asset_id: UUID, group_id: Optional[UUID], caller: UserContext, stock_change: bool) -> None:
    asset = get_asset_by_id(asset_id)
    if not asset:
        raise NotFoundError("Asset not found")

    if group_id is None:
        if asset.user_client_id != caller.client_id:
            logger.warning(f"Client {caller.client_id} denied access to asset {asset_id}")
            raise PermissionDeniedError("Access denied to asset")
        return

    if not get_group_by_id_db(group_id):
        raise NotFoundError("Group not found")
    if stock_change:
        require_permission(group_id, caller, GROUP_STOCK_PERMISSIONS, "change group stock")
    else:
        require_member(group_id, caller, "view group stock")
    if not is_asset_in_group_db(asset_id, group_id):
        raise NotFoundError("Asset not found in group")


def adjust_stock_service(data: StockAdjustRequest, caller: UserContext) -> StockResponse:
    if data.amount <= 0:
        raise ValidationError("Amount must be greater than zero")

    with db_errors("adjust_stock", caller.client_id):
        _check_asset_access(data.asset_id, data.asset_group_id, caller, stock_change=True)
        stock = update_stock_asset_db(
            data.change_type,
            data.asset_id,
            data.amount,
            data.reason,
            caller.client_id,
            data.asset_group_id,
        )

    logger.info(
        f"Stock of asset {data.asset_id} {data.change_type.value} by {data.amount} "
        f"-> {stock.latest_quantity} (client {caller.client_id})"
    )
    return StockResponse.model_validate(stock)


def get_stock_service(asset_id: UUID, group_id: Optional[UUID], caller: UserContext) -> StockResponse:
    with db_errors("get_stock", caller.client_id):
        _check_asset_access(asset_id, group_id, caller, stock_change=False)
        if group_id is None:
            stock = get_stock_by_asset_id_db(asset_id, caller.client_id)
        else:
            stock = get_stock_by_asset_and_group_db(asset_id, group_id)
    if not stock:
        raise NotFoundError("Asset stock not found")
    return StockResponse.model_validate(stock)


def get_stock_history_service(
    asset_id: UUID, group_id: Optional[UUID], caller: UserContext, limit: int = 100
) -> List[StockHistoryResponse]:
    with db_errors("get_stock_history", caller.client_id):
        _check_asset_access(asset_id, group_id, caller, stock_change=False)
        history = get_stock_history_db(asset_id, limit)
    return [StockHistoryResponse.model_validate(h) for h in history]
