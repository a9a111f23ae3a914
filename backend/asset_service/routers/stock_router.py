from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query

from asset_service.core.security import UserContext, get_current_user
from asset_service.schemas.common_schemas import ApiResponse, success_response
from asset_service.schemas.stock_schemas import (
    StockAdjustRequest,
    StockHistoryResponse,
    StockResponse,
)
from asset_service.services.stock_service import (
    adjust_stock_service,
    get_stock_history_service,
    get_stock_service,
)

router = APIRouter(prefix="/stock", tags=["Stock"])


@router.post("/adjust", response_model=ApiResponse[StockResponse])
def adjust_stock(
    adjust_data: StockAdjustRequest,
    current_user: UserContext = Depends(get_current_user),
):
    """Увеличение или уменьшение остатка. С asset_group_id изменение идёт через группу."""
    return success_response(adjust_stock_service(adjust_data, current_user), "Stock updated")


@router.get("/{asset_id}", response_model=ApiResponse[StockResponse])
def get_stock(
    asset_id: UUID,
    group_id: Optional[UUID] = Query(None, alias="groupId"),
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(get_stock_service(asset_id, group_id, current_user))


@router.get("/{asset_id}/history", response_model=ApiResponse[List[StockHistoryResponse]])
def get_stock_history(
    asset_id: UUID,
    group_id: Optional[UUID] = Query(None, alias="groupId"),
    limit: int = Query(100, ge=1, le=1000),
    current_user: UserContext = Depends(get_current_user),
):
    return success_response(get_stock_history_service(asset_id, group_id, current_user, limit))
