"""
Procurement service.

Ce module orchestre les flux d'achat (création de commande, albaranes,
liste des commandes à réceptionner). Aucune logique de stock ici.

Toute la logique stock est centralisée dans :
    backend.services.inventory
La réception (stock + reliquats) est dans :
    backend.services.receptions
"""

from __future__ import annotations

import base64
import binascii
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import (
    DeliveryNoteAttachment,
    Item,
    Location,
    Project,
    PurchaseOrder,
    PurchaseOrderLine,
    Supplier,
    utcnow,
)
from backend.app.db.models.core_types import INITIAL_PO_STATUSES, LineType, POStatus
from backend.app.schemas.purchase_order import POCreate
from backend.app.schemas.reception import DeliveryNoteIn
from backend.app.schemas.result import OperationResult
from backend.services.counters import next_order_number
from backend.services.errors import NotFoundError, PreconditionError
from backend.services.transaction import run_operation

logger = logging.getLogger(__name__)


def _build_line(db: Session, position: int, ln) -> PurchaseOrderLine:
    sku, name = ln.item_sku, ln.item_name
    if ln.item_id is not None:
        item = db.get(Item, ln.item_id)
        if not item:
            raise NotFoundError(f"Item {ln.item_id} not found")
        sku = sku or item.sku
        name = name or item.name
    elif ln.type == LineType.material:
        raise PreconditionError("Material lines require an item_id")

    if not name:
        raise PreconditionError(f"Line {position} has no item_name")

    return PurchaseOrderLine(
        position=position,
        item_id=ln.item_id,
        item_sku=sku,
        item_name=name,
        quantity=ln.quantity,
        price=Decimal(str(ln.price)),
        unit=ln.unit,
        type=ln.type,
    )


def create_purchase_order(db: Session, payload: POCreate) -> OperationResult:
    def work() -> OperationResult:
        if payload.status not in INITIAL_PO_STATUSES:
            raise PreconditionError(f"Cannot create an order with status {payload.status.value}")

        supplier = db.get(Supplier, payload.supplier_id)
        if not supplier:
            raise NotFoundError(f"Supplier {payload.supplier_id} not found")

        project = None
        if payload.project_id is not None:
            project = db.get(Project, payload.project_id)
            if not project:
                raise NotFoundError(f"Project {payload.project_id} not found")

        if payload.delivery_location_id is not None and not db.get(Location, payload.delivery_location_id):
            raise NotFoundError(f"Location {payload.delivery_location_id} not found")

        lines = [_build_line(db, i, ln) for i, ln in enumerate(payload.lines)]

        po = PurchaseOrder(
            order_number=next_order_number(db),
            supplier_id=supplier.id,
            supplier=supplier.name,
            project_id=project.id if project else None,
            project_name=project.name if project else None,
            delivery_location_id=payload.delivery_location_id,
            status=payload.status,
            total=sum((Decimal(l.quantity) * l.price for l in lines), Decimal("0")),
            date=payload.date or date.today(),
            estimated_delivery_date=payload.estimated_delivery_date,
            lines=lines,
        )
        po.add_history(payload.status, "Orden creada")
        db.add(po)
        db.flush()

        logger.info("purchase order %s created (supplier=%s)", po.order_number, supplier.id)
        return OperationResult(success=True, order_id=po.id, order_number=po.order_number, status=po.status.value)

    return run_operation(db, work, label="create_purchase_order")


def _decoded_size(note: DeliveryNoteIn) -> int:
    try:
        return len(base64.b64decode(note.data, validate=True))
    except (binascii.Error, ValueError):
        raise PreconditionError(f"Delivery note {note.file_name} is not valid base64")


def attach_delivery_notes(db: Session, order_id: int, notes: list[DeliveryNoteIn]) -> OperationResult:
    """Ajoute des albaranes (base64) à une commande."""

    def work() -> OperationResult:
        po = db.get(PurchaseOrder, order_id)
        if not po:
            raise NotFoundError(f"Purchase order {order_id} not found")
        if not notes:
            raise PreconditionError("No delivery notes to attach")

        now = utcnow()
        for note in notes:
            size = _decoded_size(note)
            po.delivery_notes.append(
                DeliveryNoteAttachment(
                    file_name=note.file_name,
                    file_type=note.file_type,
                    file_size=note.file_size if note.file_size is not None else size,
                    data=note.data,
                    uploaded_at=now,
                )
            )
        po.has_delivery_notes = True
        po.last_delivery_note_upload = now
        db.flush()
        return OperationResult(success=True, order_id=po.id, order_number=po.order_number)

    return run_operation(db, work, label="attach_delivery_notes")


def list_pending_receptions(db: Session) -> list[PurchaseOrder]:
    """Commandes envoyées au fournisseur avec au moins une ligne Material."""
    stmt = (
        select(PurchaseOrder)
        .where(PurchaseOrder.status == POStatus.sent)
        .where(PurchaseOrder.lines.any(PurchaseOrderLine.type == LineType.material))
        .order_by(PurchaseOrder.date, PurchaseOrder.id)
    )
    return list(db.execute(stmt).scalars().all())
