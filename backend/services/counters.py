from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend.app.db.models.models_v1 import Counter

PURCHASE_ORDER_COUNTER = "purchaseOrders"


def format_order_number(n: int) -> str:
    return f"OC-{n:05d}"


def next_sequence_value(db: Session, name: str) -> int:
    """
    Incrémente le compteur `name` et retourne la nouvelle valeur.

    Doit être appelé dans la transaction de l'appelant : la ligne est
    verrouillée (FOR UPDATE) jusqu'au commit, deux appels concurrents ne
    peuvent pas lire la même valeur.
    """
    counter = (
        db.execute(select(Counter).where(Counter.name == name).with_for_update())
        .scalars()
        .first()
    )
    if not counter:
        counter = Counter(name=name, count=0)
        db.add(counter)
        db.flush()

    counter.count += 1
    db.flush()
    return counter.count


def next_order_number(db: Session) -> str:
    return format_order_number(next_sequence_value(db, PURCHASE_ORDER_COUNTER))
