from __future__ import annotations

import datetime as dt
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Integer,
    DateTime,
    Date,
    Boolean,
    ForeignKey,
    Numeric,
    Text,
    Enum,
    Index,
    CheckConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from backend.app.db.base import Base, BigIntId
from backend.app.db.models.core_types import (
    LocationType,
    ItemUnit,
    ItemType,
    LineType,
    POStatus,
    MovementType,
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- MASTER DATA ----------
class Supplier(Base):
    __tablename__ = "suppliers"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class Project(Base):
    __tablename__ = "projects"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Item(Base):
    __tablename__ = "items"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    sku: Mapped[str] = mapped_column(String(64), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    unit: Mapped[ItemUnit] = mapped_column(Enum(ItemUnit, name="item_unit", native_enum=False), default=ItemUnit.ud, nullable=False)
    type: Mapped[ItemType] = mapped_column(Enum(ItemType, name="item_type", native_enum=False), default=ItemType.simple, nullable=False)


class Location(Base):
    __tablename__ = "locations"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    name: Mapped[str] = mapped_column(String(200), unique=True, nullable=False)
    type: Mapped[LocationType] = mapped_column(
        Enum(LocationType, name="location_type", native_enum=False),
        default=LocationType.physical,
        nullable=False,
    )


# ---------- PROCUREMENT ----------
class PurchaseOrder(Base):
    __tablename__ = "purchase_orders"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)

    supplier_id: Mapped[int] = mapped_column(ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False)
    supplier: Mapped[str] = mapped_column(String(255), nullable=False)  # nom dénormalisé
    project_id: Mapped[int | None] = mapped_column(ForeignKey("projects.id", ondelete="SET NULL"))
    project_name: Mapped[str | None] = mapped_column(String(255))
    delivery_location_id: Mapped[int | None] = mapped_column(ForeignKey("locations.id", ondelete="SET NULL"))

    status: Mapped[POStatus] = mapped_column(
        Enum(POStatus, name="po_status", native_enum=False),
        default=POStatus.pending_approval,
        nullable=False,
    )
    total: Mapped[Decimal] = mapped_column(Numeric(14, 2), default=0, nullable=False)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    estimated_delivery_date: Mapped[dt.date | None] = mapped_column(Date)
    reception_notes: Mapped[str | None] = mapped_column(Text)

    # Reliquat : pointe vers la commande d'origine
    original_order_id: Mapped[int | None] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="SET NULL"),
        index=True,
    )

    has_delivery_notes: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_delivery_note_upload: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    lines: Mapped[list["PurchaseOrderLine"]] = relationship(
        back_populates="po",
        cascade="all, delete-orphan",
        order_by="PurchaseOrderLine.position",
    )
    status_history: Mapped[list["StatusHistoryEntry"]] = relationship(
        back_populates="po",
        cascade="all, delete-orphan",
        order_by="StatusHistoryEntry.id",
    )
    delivery_notes: Mapped[list["DeliveryNoteAttachment"]] = relationship(
        back_populates="po",
        cascade="all, delete-orphan",
        order_by="DeliveryNoteAttachment.id",
    )
    original_order: Mapped[PurchaseOrder | None] = relationship(
        back_populates="backorders",
        remote_side="PurchaseOrder.id",
    )
    backorders: Mapped[list["PurchaseOrder"]] = relationship(
        back_populates="original_order",
        order_by="PurchaseOrder.id",
    )

    @property
    def backorder_ids(self) -> list[int]:
        return [bo.id for bo in self.backorders]

    def add_history(self, status: POStatus, comment: str) -> "StatusHistoryEntry":
        entry = StatusHistoryEntry(status=status, date=utcnow(), comment=comment)
        self.status_history.append(entry)
        return entry


class PurchaseOrderLine(Base):
    __tablename__ = "purchase_order_lines"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    po_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # item_id absent pour les lignes de service libres
    item_id: Mapped[int | None] = mapped_column(ForeignKey("items.id", ondelete="RESTRICT"))
    item_sku: Mapped[str | None] = mapped_column(String(64))
    item_name: Mapped[str] = mapped_column(String(255), nullable=False)

    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(14, 2), nullable=False)
    unit: Mapped[str] = mapped_column(String(16), default="ud", nullable=False)
    type: Mapped[LineType] = mapped_column(Enum(LineType, name="po_line_type", native_enum=False), default=LineType.material, nullable=False)

    po: Mapped[PurchaseOrder] = relationship(back_populates="lines")

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_po_line_qty_pos"),
        CheckConstraint("price >= 0", name="ck_po_line_price_nonneg"),
    )


class StatusHistoryEntry(Base):
    __tablename__ = "po_status_history"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    po_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    status: Mapped[POStatus] = mapped_column(Enum(POStatus, name="po_status", native_enum=False), nullable=False)
    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    comment: Mapped[str | None] = mapped_column(Text)

    po: Mapped[PurchaseOrder] = relationship(back_populates="status_history")


class DeliveryNoteAttachment(Base):
    __tablename__ = "delivery_note_attachments"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)
    po_id: Mapped[int] = mapped_column(
        ForeignKey("purchase_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_type: Mapped[str] = mapped_column(String(128), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    data: Mapped[str] = mapped_column(Text, nullable=False)  # base64
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    po: Mapped[PurchaseOrder] = relationship(back_populates="delivery_notes")


class Counter(Base):
    __tablename__ = "counters"
    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    __table_args__ = (CheckConstraint("count >= 0", name="ck_counter_nonneg"),)


# ---------- INVENTORY ----------
class StockLevel(Base):
    """Stock d'un article dans une location. Une seule ligne par couple (clé composite)."""

    __tablename__ = "stock_levels"
    item_id: Mapped[int] = mapped_column(ForeignKey("items.id", ondelete="RESTRICT"), primary_key=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id", ondelete="RESTRICT"), primary_key=True)

    quantity: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        nullable=False,
    )

    __table_args__ = (CheckConstraint("quantity >= 0", name="ck_stock_quantity_nonneg"),)


class StockMovement(Base):
    __tablename__ = "stock_movements"
    id: Mapped[int] = mapped_column(BigIntId, primary_key=True)

    item_id: Mapped[int] = mapped_column(
        ForeignKey("items.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    from_location_id: Mapped[int | None] = mapped_column(ForeignKey("locations.id", ondelete="RESTRICT"))
    to_location_id: Mapped[int | None] = mapped_column(ForeignKey("locations.id", ondelete="RESTRICT"))
    purchase_order_id: Mapped[int | None] = mapped_column(ForeignKey("purchase_orders.id", ondelete="SET NULL"))

    movement_type: Mapped[MovementType] = mapped_column(Enum(MovementType, name="movement_type", native_enum=False), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str | None] = mapped_column(String(255))

    happened_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    idempotency_key: Mapped[str | None] = mapped_column(String(64), unique=True)

    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_stock_movement_qty_pos"),
        Index("ix_stock_movements_item_time", "item_id", "happened_at"),
    )
