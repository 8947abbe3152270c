from __future__ import annotations

import hashlib
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import (
    Item,
    Location,
    StockLevel,
    StockMovement,
)
from backend.app.db.models.core_types import MovementType
from backend.app.schemas.result import OperationResult
from backend.services.errors import NotFoundError, PreconditionError
from backend.services.transaction import run_operation

logger = logging.getLogger(__name__)


# ---------- Helpers ----------
def lock_stock_level(db: Session, item_id: int, location_id: int) -> StockLevel | None:
    """Stock (article, location) verrouillé jusqu'au commit, ou None."""
    return (
        db.execute(
            select(StockLevel)
            .where(StockLevel.item_id == item_id)
            .where(StockLevel.location_id == location_id)
            .with_for_update()
        )
        .scalar_one_or_none()
    )


def get_or_create_stock_level(db: Session, item_id: int, location_id: int) -> StockLevel:
    sl = lock_stock_level(db, item_id, location_id)
    if sl:
        return sl

    sl = StockLevel(item_id=item_id, location_id=location_id, quantity=0)
    db.add(sl)
    db.flush()
    return sl


def credit_stock(
    db: Session,
    *,
    item_id: int,
    location_id: int,
    quantity: int,
    movement_type: MovementType,
    reason: str | None = None,
    purchase_order_id: int | None = None,
) -> StockMovement:
    """
    Ajoute `quantity` au stock (créé à la volée) et trace le mouvement.
    Ne commit pas : fait partie de la transaction de l'appelant.
    """
    sl = get_or_create_stock_level(db, item_id, location_id)
    sl.quantity += quantity

    mv = StockMovement(
        item_id=item_id,
        from_location_id=None,
        to_location_id=location_id,
        purchase_order_id=purchase_order_id,
        movement_type=movement_type,
        quantity=quantity,
        reason=reason,
    )
    db.add(mv)
    return mv


def movement_key(raw: str) -> str:
    return hashlib.sha256(f"MOVE:{raw.strip()}".encode("utf-8")).hexdigest()


def _find_existing_movement(db: Session, key: str) -> StockMovement | None:
    return db.execute(select(StockMovement).where(StockMovement.idempotency_key == key)).scalar_one_or_none()


def _require_item(db: Session, item_id: int) -> None:
    if not db.get(Item, item_id):
        raise NotFoundError(f"Item {item_id} not found")


def _require_location(db: Session, location_id: int, label: str = "Location") -> None:
    if not db.get(Location, location_id):
        raise NotFoundError(f"{label} {location_id} not found")


# ---------- Operations ----------
def add_stock(
    db: Session,
    *,
    item_id: int,
    location_id: int,
    quantity: int,
    reason: str | None = None,
) -> OperationResult:
    """Entrée de stock manuelle (hors commande)."""

    def work() -> OperationResult:
        if quantity <= 0:
            raise PreconditionError("Quantity must be positive")
        _require_item(db, item_id)
        _require_location(db, location_id)

        mv = credit_stock(
            db,
            item_id=item_id,
            location_id=location_id,
            quantity=quantity,
            movement_type=MovementType.adjustment,
            reason=reason or "MANUAL_ENTRY",
        )
        db.flush()
        logger.info("add_stock item=%s location=%s qty=%s", item_id, location_id, quantity)
        return OperationResult(success=True, movement_id=mv.id)

    return run_operation(db, work, label="add_stock")


def transfer_stock(
    db: Session,
    *,
    item_id: int,
    from_location_id: int,
    to_location_id: int,
    quantity: int,
    reason: str | None = None,
    idempotency_key: str | None = None,
) -> OperationResult:
    """
    Transfert de stock entre deux locations.

    Règle métier : le stock source ne devient jamais négatif. Si la source
    est absente ou insuffisante, rien n'est modifié.
    La destination est créée si elle n'existe pas encore.
    """
    key = movement_key(idempotency_key) if idempotency_key and idempotency_key.strip() else None

    def work() -> OperationResult:
        if quantity <= 0:
            raise PreconditionError("Quantity must be positive")
        if from_location_id == to_location_id:
            raise PreconditionError("from_location_id and to_location_id must differ")

        # rejeu idempotent
        if key:
            existing = _find_existing_movement(db, key)
            if existing:
                return OperationResult(success=True, movement_id=int(existing.id), replayed=True)

        src = lock_stock_level(db, item_id, from_location_id)
        if not src:
            raise NotFoundError("Source stock not found")
        if src.quantity < quantity:
            raise PreconditionError(f"Insufficient stock at source (available={src.quantity})")

        _require_location(db, to_location_id, label="Destination location")

        src.quantity -= quantity
        dst = get_or_create_stock_level(db, item_id, to_location_id)
        dst.quantity += quantity

        mv = StockMovement(
            item_id=item_id,
            from_location_id=from_location_id,
            to_location_id=to_location_id,
            movement_type=MovementType.transfer,
            quantity=quantity,
            reason=reason,
            idempotency_key=key,
        )
        db.add(mv)
        db.flush()
        logger.info(
            "transfer_stock item=%s %s -> %s qty=%s",
            item_id,
            from_location_id,
            to_location_id,
            quantity,
        )
        return OperationResult(success=True, movement_id=mv.id)

    return run_operation(db, work, label="transfer_stock")
