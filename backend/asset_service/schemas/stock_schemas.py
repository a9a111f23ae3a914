from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from asset_service.core.constants import ChangeType


class StockAdjustRequest(BaseModel):
    asset_id: UUID
    asset_group_id: Optional[UUID] = None
    amount: int
    change_type: ChangeType
    reason: Optional[str] = None


class StockResponse(BaseModel):
    id: UUID
    asset_id: UUID
    user_client_id: str
    initial_quantity: int
    latest_quantity: int
    change_type: str
    quantity: int
    reason: Optional[str]
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StockHistoryResponse(BaseModel):
    id: int
    asset_id: UUID
    asset_group_id: Optional[UUID]
    change_type: str
    previous_quantity: int
    new_quantity: int
    quantity_changed: int
    reason: Optional[str]
    created_at: Optional[datetime]
    created_by: Optional[str]

    class Config:
        from_attributes = True
