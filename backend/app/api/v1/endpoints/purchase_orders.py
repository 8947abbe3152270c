from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.responses import result_response
from backend.app.db.models.models_v1 import PurchaseOrder
from backend.app.db.models.core_types import POStatus
from backend.app.schemas.purchase_order import POCreate, PORead, POSummary
from backend.services.procurement import create_purchase_order

router = APIRouter(prefix="/purchase-orders")


@router.get("", response_model=list[POSummary])
def list_pos(status: POStatus | None = None, db: Session = Depends(get_db)):
    stmt = select(PurchaseOrder).order_by(PurchaseOrder.id.desc())
    if status is not None:
        stmt = stmt.where(PurchaseOrder.status == status)
    return db.execute(stmt).scalars().all()


@router.get("/{po_id}", response_model=PORead)
def get_po(po_id: int, db: Session = Depends(get_db)):
    po = db.get(PurchaseOrder, po_id)
    if not po:
        raise HTTPException(status_code=404, detail="PO not found")
    return po


@router.post("")
def create_po(payload: POCreate, db: Session = Depends(get_db)):
    return result_response(create_purchase_order(db, payload), success_status=201)
