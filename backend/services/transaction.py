from __future__ import annotations

import logging
from typing import Callable, TypeVar

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.core.config import settings
from backend.app.schemas.result import OperationResult
from backend.services.errors import InventoryError, STORAGE_FAILURE

logger = logging.getLogger(__name__)

T = TypeVar("T")

# SQLSTATE unique_violation (Postgres)
UNIQUE_VIOLATION = "23505"


def is_conflict(e: DBAPIError) -> bool:
    """
    Conflit transitoire, rejouable :
        - deadlock / échec de sérialisation / base verrouillée (OperationalError)
        - insertion concurrente de la même clé de stock ou du compteur
          (IntegrityError sur contrainte d'unicité uniquement)

    Une violation de CHECK ou de clé étrangère est déterministe : jamais rejouée.
    """
    if isinstance(e, OperationalError):
        return True
    if isinstance(e, IntegrityError):
        if getattr(e.orig, "sqlstate", None) == UNIQUE_VIOLATION:
            return True
        msg = str(e.orig).lower()
        return "unique" in msg or "duplicate key" in msg
    return False


def run_in_transaction(
    db: Session,
    work: Callable[[], T],
    *,
    max_attempts: int | None = None,
    label: str = "transaction",
) -> T:
    """
    Exécute `work` puis commit, en une seule transaction.

    - rollback systématique en cas d'erreur (rien de partiel n'est écrit)
    - rejoue `work` depuis le début sur conflit, au plus `max_attempts` fois
    - les erreurs métier ne sont jamais rejouées
    """
    attempts = max(1, max_attempts or settings.txn_max_attempts)

    for attempt in range(1, attempts + 1):
        try:
            result = work()
            db.commit()
            return result
        except (OperationalError, IntegrityError) as e:
            db.rollback()
            if attempt >= attempts or not is_conflict(e):
                raise
            logger.warning(
                "%s: conflict on attempt %s/%s, retrying (%s)",
                label,
                attempt,
                attempts,
                type(e).__name__,
            )
        except Exception:
            db.rollback()
            raise

    raise RuntimeError("unreachable")  # pragma: no cover


def run_operation(
    db: Session,
    work: Callable[[], OperationResult],
    *,
    label: str,
) -> OperationResult:
    """
    Frontière d'une opération métier : transaction + conversion des erreurs.

    not-found / precondition-failed / storage-failure deviennent
    `OperationResult(success=False, error=..., code=...)`, jamais une exception.
    """
    try:
        return run_in_transaction(db, work, label=label)
    except InventoryError as e:
        logger.warning("%s rejected: %s %s", label, e.message, e.details or "")
        return OperationResult.failure(e)
    except SQLAlchemyError as e:
        logger.exception("%s failed", label)
        return OperationResult(success=False, error=str(e), code=STORAGE_FAILURE)
