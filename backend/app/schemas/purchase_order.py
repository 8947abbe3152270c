from __future__ import annotations

import datetime as dt
from decimal import Decimal

from pydantic import BaseModel, Field

from backend.app.db.models.core_types import LineType, POStatus


class POLineCreate(BaseModel):
    item_id: int | None = None
    item_sku: str | None = Field(default=None, max_length=64)
    item_name: str | None = Field(default=None, max_length=255)
    quantity: int = Field(gt=0)
    price: Decimal = Field(ge=0)
    unit: str = Field(default="ud", max_length=16)
    type: LineType = LineType.material


class POCreate(BaseModel):
    supplier_id: int
    project_id: int | None = None
    delivery_location_id: int | None = None
    status: POStatus = POStatus.pending_approval
    date: dt.date | None = None
    estimated_delivery_date: dt.date | None = None
    lines: list[POLineCreate] = Field(min_length=1)


class POLineRead(BaseModel):
    item_id: int | None
    item_sku: str | None
    item_name: str
    quantity: int
    price: Decimal
    unit: str
    type: LineType

    class Config:
        from_attributes = True


class StatusHistoryRead(BaseModel):
    status: POStatus
    date: dt.datetime
    comment: str | None

    class Config:
        from_attributes = True


class POSummary(BaseModel):
    id: int
    order_number: str
    supplier_id: int
    supplier: str
    project_id: int | None
    project_name: str | None
    status: POStatus
    total: Decimal
    date: dt.date
    estimated_delivery_date: dt.date | None
    original_order_id: int | None

    class Config:
        from_attributes = True


class PORead(POSummary):
    delivery_location_id: int | None
    reception_notes: str | None
    has_delivery_notes: bool
    backorder_ids: list[int]
    lines: list[POLineRead]
    status_history: list[StatusHistoryRead]
