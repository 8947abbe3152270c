"""
Réception de commandes fournisseur.

Une réception crédite le stock de la location de réception, fixe le statut
final de la commande et, si des quantités manquent, crée un reliquat
(nouvelle commande) qui porte les quantités non reçues et les lignes de
service.

Tout est écrit dans une seule transaction.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import (
    Location,
    PurchaseOrder,
    PurchaseOrderLine,
)
from backend.app.db.models.core_types import (
    LineType,
    MovementType,
    POStatus,
    RECEIVABLE_PO_STATUSES,
)
from backend.app.schemas.reception import ReceivedItem
from backend.app.schemas.result import OperationResult
from backend.services.counters import next_order_number
from backend.services.errors import NotFoundError, PreconditionError
from backend.services.inventory import credit_stock
from backend.services.transaction import run_operation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Shortfall:
    line: PurchaseOrderLine
    quantity: int


def material_lines(order: PurchaseOrder) -> list[PurchaseOrderLine]:
    # Les lignes de service ne sont jamais stockées
    return [ln for ln in order.lines if ln.type == LineType.material and ln.item_id is not None]


def service_lines(order: PurchaseOrder) -> list[PurchaseOrderLine]:
    return [ln for ln in order.lines if ln.type == LineType.service]


def aggregate_received(received_items: Iterable[ReceivedItem]) -> dict[int, int]:
    received: dict[int, int] = defaultdict(int)
    for r in received_items:
        if r.quantity < 0:
            raise PreconditionError(f"Negative quantity for item {r.item_id}")
        received[int(r.item_id)] += int(r.quantity)
    return dict(received)


def compute_shortfalls(lines: list[PurchaseOrderLine], received: dict[int, int]) -> list[Shortfall]:
    """
    Quantités restant dues par ligne.

    Si un article apparaît sur plusieurs lignes, la quantité reçue est
    affectée aux lignes dans l'ordre.
    """
    remaining = dict(received)
    out: list[Shortfall] = []
    for ln in lines:
        got = min(remaining.get(ln.item_id, 0), ln.quantity)
        remaining[ln.item_id] = remaining.get(ln.item_id, 0) - got
        missing = ln.quantity - got
        if missing > 0:
            out.append(Shortfall(line=ln, quantity=missing))
    return out


def _validate_received(lines: list[PurchaseOrderLine], received: dict[int, int]) -> None:
    expected: dict[int, int] = defaultdict(int)
    for ln in lines:
        expected[ln.item_id] += ln.quantity

    unknown = sorted(set(received) - set(expected))
    if unknown:
        raise PreconditionError(
            f"Items not in the order material lines: {unknown}",
            details={"item_ids": unknown},
        )

    # Sur-réception refusée : on ne crédite jamais plus que commandé
    over = sorted(iid for iid, qty in received.items() if qty > expected[iid])
    if over:
        raise PreconditionError(
            f"Received quantity exceeds expected quantity for items: {over}",
            details={"item_ids": over},
        )


def _create_backorder(
    db: Session,
    order: PurchaseOrder,
    shortfalls: list[Shortfall],
    reception_notes: str,
) -> PurchaseOrder:
    lines = [
        PurchaseOrderLine(
            position=i,
            item_id=s.line.item_id,
            item_sku=s.line.item_sku,
            item_name=s.line.item_name,
            quantity=s.quantity,
            price=s.line.price,
            unit=s.line.unit,
            type=s.line.type,
        )
        for i, s in enumerate(shortfalls)
    ]
    total = sum((Decimal(s.quantity) * Decimal(s.line.price) for s in shortfalls), Decimal("0"))

    backorder = PurchaseOrder(
        order_number=next_order_number(db),
        supplier_id=order.supplier_id,
        supplier=order.supplier,
        project_id=order.project_id,
        project_name=order.project_name,
        delivery_location_id=order.delivery_location_id,
        status=POStatus.sent,
        total=total,
        date=order.date,
        estimated_delivery_date=order.estimated_delivery_date,
        lines=lines,
    )
    backorder.original_order = order
    backorder.add_history(
        POStatus.sent,
        f"Backorder de la orden {order.order_number}. Notas originales: {reception_notes}",
    )
    db.add(backorder)
    db.flush()  # backorder.id
    return backorder


def confirm_reception(
    db: Session,
    *,
    order_id: int,
    receiving_location_id: int,
    received_items: Iterable[ReceivedItem],
    reception_notes: str = "",
) -> OperationResult:
    """
    Confirme la réception d'une commande.

    Statut final et décision de reliquat viennent de la même comparaison
    reçu / attendu sur les lignes Material :
        - tout reçu  -> Recibida, pas de reliquat
        - sinon      -> Recibida Parcialmente + reliquat des manquants
                      et des lignes de service

    Les lignes de la commande d'origine ne sont jamais modifiées.
    """
    received_items = list(received_items)
    notes = reception_notes or ""

    def work() -> OperationResult:
        order = (
            db.execute(select(PurchaseOrder).where(PurchaseOrder.id == order_id).with_for_update())
            .scalars()
            .first()
        )
        if not order:
            raise NotFoundError(f"Purchase order {order_id} not found")
        if order.status not in RECEIVABLE_PO_STATUSES:
            raise PreconditionError(
                f"Purchase order {order.order_number} is not awaiting reception (status={order.status.value})"
            )
        if not db.get(Location, receiving_location_id):
            raise NotFoundError(f"Receiving location {receiving_location_id} not found")

        lines = material_lines(order)
        received = aggregate_received(received_items)
        _validate_received(lines, received)

        # ---------- STOCK ----------
        for item_id, qty in received.items():
            if qty == 0:
                continue
            credit_stock(
                db,
                item_id=item_id,
                location_id=receiving_location_id,
                quantity=qty,
                movement_type=MovementType.reception,
                reason=f"RECEPTION {order.order_number}",
                purchase_order_id=order.id,
            )

        # ---------- STATUT / RELIQUAT ----------
        shortfalls = compute_shortfalls(lines, received)
        backorder = None
        if shortfalls:
            # Les services ne se réceptionnent pas : en partiel, ils suivent
            # le reliquat en entier
            shortfalls += [Shortfall(line=ln, quantity=ln.quantity) for ln in service_lines(order)]
            new_status = POStatus.partially_received
            backorder = _create_backorder(db, order, shortfalls, notes)
            comment = f"Recepción parcial. Backorder {backorder.id} creado. Notas: {notes}"
        else:
            new_status = POStatus.received
            comment = f"Recepción completa. Notas: {notes}"

        order.status = new_status
        order.reception_notes = notes
        order.add_history(new_status, comment)
        db.flush()

        logger.info(
            "reception order=%s location=%s status=%s backorder=%s",
            order.order_number,
            receiving_location_id,
            new_status.value,
            backorder.order_number if backorder else None,
        )
        return OperationResult(
            success=True,
            status=new_status.value,
            order_id=order.id,
            order_number=order.order_number,
            backorder_id=backorder.id if backorder else None,
        )

    return run_operation(db, work, label="confirm_reception")
