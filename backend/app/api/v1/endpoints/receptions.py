from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.api.responses import result_response
from backend.app.schemas.purchase_order import POSummary
from backend.app.schemas.reception import DeliveryNotesAttach, ReceptionConfirm
from backend.services.procurement import attach_delivery_notes, list_pending_receptions
from backend.services.receptions import confirm_reception

router = APIRouter(prefix="/receptions")


@router.get("/pending", response_model=list[POSummary])
def pending_receptions(db: Session = Depends(get_db)):
    return list_pending_receptions(db)


@router.post("/{order_id}")
def confirm(order_id: int, payload: ReceptionConfirm, db: Session = Depends(get_db)):
    result = confirm_reception(
        db,
        order_id=order_id,
        receiving_location_id=payload.receiving_location_id,
        received_items=payload.received_items,
        reception_notes=payload.reception_notes,
    )
    return result_response(result)


@router.post("/{order_id}/delivery-notes")
def attach_notes(order_id: int, payload: DeliveryNotesAttach, db: Session = Depends(get_db)):
    return result_response(attach_delivery_notes(db, order_id, payload.delivery_notes))
