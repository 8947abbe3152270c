from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from backend.app.db.models.core_types import MovementType


class TransferCreate(BaseModel):
    item_id: int
    from_location_id: int
    to_location_id: int
    quantity: int = Field(gt=0)
    reason: str | None = Field(default=None, max_length=255)


class StockAddCreate(BaseModel):
    item_id: int
    location_id: int
    quantity: int = Field(gt=0)
    reason: str | None = Field(default=None, max_length=255)


class StockMovementRead(BaseModel):
    id: int
    item_id: int
    from_location_id: int | None
    to_location_id: int | None
    purchase_order_id: int | None
    movement_type: MovementType
    quantity: int
    reason: str | None
    happened_at: datetime

    class Config:
        from_attributes = True
