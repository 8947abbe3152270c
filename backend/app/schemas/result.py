from __future__ import annotations

from pydantic import BaseModel

from backend.services.errors import InventoryError


class OperationResult(BaseModel):
    """Réponse commune des opérations stock / réception : {success, ...} ou {success: false, error}."""

    success: bool
    error: str | None = None
    code: str | None = None

    backorder_id: int | None = None
    status: str | None = None
    order_id: int | None = None
    order_number: str | None = None
    movement_id: int | None = None
    replayed: bool | None = None

    @classmethod
    def failure(cls, error: InventoryError) -> "OperationResult":
        return cls(success=False, error=error.message, code=error.code)
