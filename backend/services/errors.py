"""
Erreurs métier des services stock / achats.

Elles sont levées avant toute mutation et converties en
`OperationResult(success=False, ...)` à la frontière des services.
"""

from __future__ import annotations

NOT_FOUND = "not_found"
PRECONDITION_FAILED = "precondition_failed"
STORAGE_FAILURE = "storage_failure"


class InventoryError(Exception):
    code = "error"

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(InventoryError):
    code = NOT_FOUND


class PreconditionError(InventoryError):
    code = PRECONDITION_FAILED
