from __future__ import annotations

from fastapi import APIRouter, Depends, Header
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.responses import result_response
from backend.app.db.models.models_v1 import StockMovement
from backend.app.schemas.stock_movement import StockAddCreate, StockMovementRead, TransferCreate
from backend.services.inventory import add_stock, transfer_stock

router = APIRouter(prefix="/stock-movements")


@router.get("", response_model=list[StockMovementRead])
def list_movements(
    item_id: int | None = None,
    limit: int = 100,
    db: Session = Depends(get_db),
):
    stmt = select(StockMovement).order_by(StockMovement.id.desc()).limit(min(max(limit, 1), 500))
    if item_id is not None:
        stmt = stmt.where(StockMovement.item_id == item_id)
    return db.execute(stmt).scalars().all()


@router.post("/transfer")
def transfer(
    payload: TransferCreate,
    db: Session = Depends(get_db),
    idempotency_key: str | None = Header(default=None, alias="Idempotency-Key"),
):
    result = transfer_stock(
        db,
        item_id=payload.item_id,
        from_location_id=payload.from_location_id,
        to_location_id=payload.to_location_id,
        quantity=payload.quantity,
        reason=payload.reason,
        idempotency_key=idempotency_key,
    )
    return result_response(result)


@router.post("/add")
def add(payload: StockAddCreate, db: Session = Depends(get_db)):
    result = add_stock(
        db,
        item_id=payload.item_id,
        location_id=payload.location_id,
        quantity=payload.quantity,
        reason=payload.reason,
    )
    return result_response(result, success_status=201)
