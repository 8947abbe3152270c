import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import date
from decimal import Decimal
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from backend.app.api.deps import get_db
from backend.app.db.base import Base
from backend.app.db.models.models_v1 import (
    Item,
    Location,
    Project,
    PurchaseOrder,
    PurchaseOrderLine,
    StockLevel,
    Supplier,
)
from backend.app.db.models.core_types import LocationType, POStatus
from backend.app.main import app
from backend.services.counters import next_order_number


@pytest.fixture(scope="function")
def engine():
    """
    Base SQLite en mémoire, neuve pour chaque test.
    StaticPool : toutes les sessions partagent la même connexion.
    """
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=eng)
    try:
        yield eng
    finally:
        eng.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture(scope="function")
def db_session(session_factory) -> Session:
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(session_factory):
    def _get_test_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = _get_test_db
    try:
        with TestClient(app) as c:
            yield c
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def catalog(db_session):
    """Données de base : fournisseur, projet, deux locations, deux articles."""
    supplier = Supplier(name="Electro Suministros")
    project = Project(name="Instalación Hotel Norte")
    central = Location(name="Almacén Central", type=LocationType.physical)
    van = Location(name="Furgoneta 1", type=LocationType.mobile)
    cable = Item(sku="CAB-001", name="Cable UTP Cat6")
    rj45 = Item(sku="CON-010", name="Conector RJ45")
    db_session.add_all([supplier, project, central, van, cable, rj45])
    db_session.commit()

    return SimpleNamespace(
        supplier_id=supplier.id,
        project_id=project.id,
        central_id=central.id,
        van_id=van.id,
        cable_id=cable.id,
        rj45_id=rj45.id,
    )


@pytest.fixture
def make_order(db_session, catalog):
    """
    Crée une commande directement en base.

    lines: liste de (item_id | None, quantity, price, LineType)
    """

    def _make(lines, status=POStatus.sent, delivery_location_id=None) -> int:
        po_lines = []
        for i, (item_id, qty, price, line_type) in enumerate(lines):
            item = db_session.get(Item, item_id) if item_id is not None else None
            po_lines.append(
                PurchaseOrderLine(
                    position=i,
                    item_id=item_id,
                    item_sku=item.sku if item else None,
                    item_name=item.name if item else "Mano de obra instalación",
                    quantity=qty,
                    price=Decimal(str(price)),
                    unit="ud",
                    type=line_type,
                )
            )

        po = PurchaseOrder(
            order_number=next_order_number(db_session),
            supplier_id=catalog.supplier_id,
            supplier="Electro Suministros",
            project_id=catalog.project_id,
            project_name="Instalación Hotel Norte",
            delivery_location_id=delivery_location_id,
            status=status,
            total=sum((Decimal(l.quantity) * l.price for l in po_lines), Decimal("0")),
            date=date(2026, 10, 1),
            estimated_delivery_date=date(2026, 10, 15),
            lines=po_lines,
        )
        po.add_history(status, "Orden creada")
        db_session.add(po)
        db_session.commit()
        return po.id

    return _make


@pytest.fixture
def stock_qty(db_session):
    """Quantité en stock (article, location), None si aucune ligne."""

    def _qty(item_id: int, location_id: int):
        db_session.expire_all()
        sl = db_session.get(StockLevel, (item_id, location_id))
        return None if sl is None else sl.quantity

    return _qty
