"""initial schema: procurement, receptions, stock levels

Revision ID: 3f1a2c9d7b40
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "3f1a2c9d7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Enums stockés en VARCHAR (native_enum=False), valeurs = noms Python
PO_STATUS = ("pending_approval", "approved", "sent", "received", "partially_received", "rejected")

ID = sa.BigInteger().with_variant(sa.Integer(), "sqlite")


def _enum(name: str, *values: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False)


def upgrade() -> None:
    op.create_table(
        "suppliers",
        sa.Column("id", ID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
    )
    op.create_table(
        "projects",
        sa.Column("id", ID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
    )
    op.create_table(
        "items",
        sa.Column("id", ID, primary_key=True),
        sa.Column("sku", sa.String(64), nullable=False, unique=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("unit", _enum("item_unit", "ud", "ml"), nullable=False),
        sa.Column("type", _enum("item_type", "simple", "composite", "service"), nullable=False),
    )
    op.create_table(
        "locations",
        sa.Column("id", ID, primary_key=True),
        sa.Column("name", sa.String(200), nullable=False, unique=True),
        sa.Column("type", _enum("location_type", "physical", "mobile"), nullable=False),
    )

    op.create_table(
        "purchase_orders",
        sa.Column("id", ID, primary_key=True),
        sa.Column("order_number", sa.String(32), nullable=False, unique=True),
        sa.Column("supplier_id", ID, sa.ForeignKey("suppliers.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("supplier", sa.String(255), nullable=False),
        sa.Column("project_id", ID, sa.ForeignKey("projects.id", ondelete="SET NULL")),
        sa.Column("project_name", sa.String(255)),
        sa.Column("delivery_location_id", ID, sa.ForeignKey("locations.id", ondelete="SET NULL")),
        sa.Column("status", _enum("po_status", *PO_STATUS), nullable=False),
        sa.Column("total", sa.Numeric(14, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("estimated_delivery_date", sa.Date()),
        sa.Column("reception_notes", sa.Text()),
        sa.Column("original_order_id", ID, sa.ForeignKey("purchase_orders.id", ondelete="SET NULL")),
        sa.Column("has_delivery_notes", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_delivery_note_upload", sa.DateTime(timezone=True)),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_purchase_orders_original_order_id", "purchase_orders", ["original_order_id"])

    op.create_table(
        "purchase_order_lines",
        sa.Column("id", ID, primary_key=True),
        sa.Column("po_id", ID, sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.Column("item_id", ID, sa.ForeignKey("items.id", ondelete="RESTRICT")),
        sa.Column("item_sku", sa.String(64)),
        sa.Column("item_name", sa.String(255), nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(14, 2), nullable=False),
        sa.Column("unit", sa.String(16), nullable=False),
        sa.Column("type", _enum("po_line_type", "material", "service"), nullable=False),
        sa.CheckConstraint("quantity > 0", name="ck_po_line_qty_pos"),
        sa.CheckConstraint("price >= 0", name="ck_po_line_price_nonneg"),
    )
    op.create_index("ix_purchase_order_lines_po_id", "purchase_order_lines", ["po_id"])

    op.create_table(
        "po_status_history",
        sa.Column("id", ID, primary_key=True),
        sa.Column("po_id", ID, sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("status", _enum("po_status", *PO_STATUS), nullable=False),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("comment", sa.Text()),
    )
    op.create_index("ix_po_status_history_po_id", "po_status_history", ["po_id"])

    op.create_table(
        "delivery_note_attachments",
        sa.Column("id", ID, primary_key=True),
        sa.Column("po_id", ID, sa.ForeignKey("purchase_orders.id", ondelete="CASCADE"), nullable=False),
        sa.Column("file_name", sa.String(255), nullable=False),
        sa.Column("file_type", sa.String(128), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=False),
        sa.Column("data", sa.Text(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
    )
    op.create_index("ix_delivery_note_attachments_po_id", "delivery_note_attachments", ["po_id"])

    op.create_table(
        "counters",
        sa.Column("name", sa.String(64), primary_key=True),
        sa.Column("count", sa.Integer(), nullable=False),
        sa.CheckConstraint("count >= 0", name="ck_counter_nonneg"),
    )

    op.create_table(
        "stock_levels",
        sa.Column("item_id", ID, sa.ForeignKey("items.id", ondelete="RESTRICT"), primary_key=True),
        sa.Column("location_id", ID, sa.ForeignKey("locations.id", ondelete="RESTRICT"), primary_key=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("quantity >= 0", name="ck_stock_quantity_nonneg"),
    )

    op.create_table(
        "stock_movements",
        sa.Column("id", ID, primary_key=True),
        sa.Column("item_id", ID, sa.ForeignKey("items.id", ondelete="RESTRICT"), nullable=False),
        sa.Column("from_location_id", ID, sa.ForeignKey("locations.id", ondelete="RESTRICT")),
        sa.Column("to_location_id", ID, sa.ForeignKey("locations.id", ondelete="RESTRICT")),
        sa.Column("purchase_order_id", ID, sa.ForeignKey("purchase_orders.id", ondelete="SET NULL")),
        sa.Column(
            "movement_type",
            _enum("movement_type", "reception", "transfer", "adjustment"),
            nullable=False,
        ),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("reason", sa.String(255)),
        sa.Column("happened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("idempotency_key", sa.String(64), unique=True),
        sa.CheckConstraint("quantity > 0", name="ck_stock_movement_qty_pos"),
    )
    op.create_index("ix_stock_movements_item_id", "stock_movements", ["item_id"])
    op.create_index("ix_stock_movements_item_time", "stock_movements", ["item_id", "happened_at"])


def downgrade() -> None:
    op.drop_table("stock_movements")
    op.drop_table("stock_levels")
    op.drop_table("counters")
    op.drop_table("delivery_note_attachments")
    op.drop_table("po_status_history")
    op.drop_table("purchase_order_lines")
    op.drop_table("purchase_orders")
    op.drop_table("locations")
    op.drop_table("items")
    op.drop_table("projects")
    op.drop_table("suppliers")
