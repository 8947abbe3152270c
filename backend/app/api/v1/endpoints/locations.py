from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.db.models.models_v1 import Location

router = APIRouter(prefix="/locations")


@router.get("")
def list_locations(db: Session = Depends(get_db)):
    rows = db.execute(select(Location).order_by(Location.name)).scalars().all()
    return [
        {
            "id": l.id,
            "name": l.name,
            "type": l.type,
        }
        for l in rows
    ]
