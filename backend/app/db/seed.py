from __future__ import annotations

import logging

from sqlalchemy import select

from backend.app.core.logging_setup import configure_logging
from backend.app.db.session import SessionLocal
from backend.app.db.models.models_v1 import Item, Location, Project, Supplier
from backend.app.db.models.core_types import ItemUnit, LocationType

logger = logging.getLogger(__name__)

LOCATIONS = [
    ("Almacén Central", LocationType.physical),
    ("Furgoneta 1", LocationType.mobile),
]

ITEMS = [
    ("CAB-001", "Cable UTP Cat6", ItemUnit.ml),
    ("CON-010", "Conector RJ45", ItemUnit.ud),
]


def run_seed():
    db = SessionLocal()
    try:
        if not db.scalar(select(Supplier).where(Supplier.name == "Proveedor Demo")):
            db.add(Supplier(name="Proveedor Demo"))

        if not db.scalar(select(Project).where(Project.name == "Proyecto Demo")):
            db.add(Project(name="Proyecto Demo"))

        for name, loc_type in LOCATIONS:
            if not db.scalar(select(Location).where(Location.name == name)):
                db.add(Location(name=name, type=loc_type))

        for sku, name, unit in ITEMS:
            if not db.scalar(select(Item).where(Item.sku == sku)):
                db.add(Item(sku=sku, name=name, unit=unit))

        db.commit()
        logger.info("SEED OK: supplier, project, %s locations, %s items", len(LOCATIONS), len(ITEMS))
    finally:
        db.close()


if __name__ == "__main__":
    configure_logging()
    run_seed()
