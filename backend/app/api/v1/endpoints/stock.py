from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.api.deps import get_db
from backend.app.db.models.models_v1 import StockLevel
from backend.app.schemas.stock_level import StockLevelRead

router = APIRouter(prefix="/stock")


@router.get(
    "",
    response_model=list[StockLevelRead],
)
def get_stock(
    location_id: int | None = None,
    item_id: int | None = None,
    db: Session = Depends(get_db),
):
    """
    Stock (READ ONLY)
    - une ligne par couple (article, location)
    - modifié uniquement par réception, transfert ou entrée manuelle
    """

    stmt = select(StockLevel).order_by(StockLevel.location_id, StockLevel.item_id)

    if location_id is not None:
        stmt = stmt.where(StockLevel.location_id == location_id)

    if item_id is not None:
        stmt = stmt.where(StockLevel.item_id == item_id)

    return db.execute(stmt).scalars().all()
