import pytest
from sqlalchemy.exc import IntegrityError, OperationalError

from backend.app.core.config import settings
from backend.app.db.models.models_v1 import Counter, PurchaseOrder
from backend.app.db.models.core_types import LineType, POStatus
from backend.app.schemas.reception import ReceivedItem
from backend.app.schemas.result import OperationResult
from backend.services.counters import format_order_number, next_order_number
from backend.services.receptions import confirm_reception
from backend.services.transaction import run_in_transaction, run_operation


def _conflict():
    return OperationalError("COMMIT", {}, Exception("database is locked"))


def _failing_commit(db_session, monkeypatch, failures, error=_conflict):
    real_commit = db_session.commit
    calls = {"n": 0}

    def commit():
        calls["n"] += 1
        if calls["n"] <= failures:
            raise error()
        real_commit()

    monkeypatch.setattr(db_session, "commit", commit)
    return calls


def test_format_order_number():
    assert format_order_number(1) == "OC-00001"
    assert format_order_number(123) == "OC-00123"


def test_counter_starts_at_one_and_increments(db_session):
    assert next_order_number(db_session) == "OC-00001"
    assert next_order_number(db_session) == "OC-00002"
    db_session.commit()

    assert db_session.get(Counter, "purchaseOrders").count == 2


def test_counter_continues_from_existing_value(db_session):
    db_session.add(Counter(name="purchaseOrders", count=41))
    db_session.commit()

    assert next_order_number(db_session) == "OC-00042"


def test_run_in_transaction_retries_on_conflict(db_session, monkeypatch):
    calls = _failing_commit(db_session, monkeypatch, failures=1)
    attempts = []

    result = run_in_transaction(db_session, lambda: attempts.append(1) or "done", max_attempts=3)

    assert result == "done"
    assert len(attempts) == 2
    assert calls["n"] == 2


def test_run_in_transaction_gives_up(db_session, monkeypatch):
    _failing_commit(db_session, monkeypatch, failures=5)

    with pytest.raises(OperationalError):
        run_in_transaction(db_session, lambda: None, max_attempts=2)


def test_reception_retried_after_conflict_is_applied_once(db_session, catalog, make_order, stock_qty, monkeypatch):
    order_id = make_order([(catalog.cable_id, 10, "5", LineType.material)])
    _failing_commit(db_session, monkeypatch, failures=1)

    result = confirm_reception(
        db_session,
        order_id=order_id,
        receiving_location_id=catalog.central_id,
        received_items=[ReceivedItem(item_id=catalog.cable_id, quantity=4)],
    )

    assert result.success is True
    assert stock_qty(catalog.cable_id, catalog.central_id) == 4
    bo = db_session.get(PurchaseOrder, result.backorder_id)
    # le premier essai a été annulé : pas de numéro consommé en double
    assert bo.order_number == "OC-00002"


def test_storage_failure_leaves_no_partial_state(db_session, catalog, make_order, stock_qty, monkeypatch):
    order_id = make_order([(catalog.cable_id, 10, "5", LineType.material)])
    _failing_commit(db_session, monkeypatch, failures=10)

    result = confirm_reception(
        db_session,
        order_id=order_id,
        receiving_location_id=catalog.central_id,
        received_items=[ReceivedItem(item_id=catalog.cable_id, quantity=4)],
    )

    assert result.success is False
    assert result.code == "storage_failure"

    monkeypatch.undo()
    assert stock_qty(catalog.cable_id, catalog.central_id) is None
    po = db_session.get(PurchaseOrder, order_id)
    assert po.status == POStatus.sent
    assert po.backorder_ids == []
    assert db_session.get(Counter, "purchaseOrders").count == 1


def test_unique_violation_is_retried(db_session, monkeypatch):
    def duplicate():
        return IntegrityError(
            "INSERT", {}, Exception("UNIQUE constraint failed: stock_levels.item_id, stock_levels.location_id")
        )

    calls = _failing_commit(db_session, monkeypatch, failures=1, error=duplicate)
    attempts = []

    assert run_in_transaction(db_session, lambda: attempts.append(1) or "ok", max_attempts=3) == "ok"
    assert len(attempts) == 2
    assert calls["n"] == 2


def test_check_violation_is_not_retried(db_session, monkeypatch):
    """
    GIVEN un commit qui viole une contrainte CHECK
    WHEN la transaction est exécutée avec 3 tentatives
    THEN une seule tentative, l'erreur remonte telle quelle
    """

    def check_failed():
        return IntegrityError("UPDATE", {}, Exception("CHECK constraint failed: ck_stock_quantity_nonneg"))

    calls = _failing_commit(db_session, monkeypatch, failures=5, error=check_failed)
    attempts = []

    with pytest.raises(IntegrityError):
        run_in_transaction(db_session, lambda: attempts.append(1), max_attempts=3)

    assert len(attempts) == 1
    assert calls["n"] == 1


def test_zero_max_attempts_still_runs_once(db_session, monkeypatch):
    monkeypatch.setattr(settings, "txn_max_attempts", 0)

    result = run_operation(db_session, lambda: OperationResult(success=True), label="noop")

    assert result.success is True


def test_negative_max_attempts_reports_storage_failure(db_session, monkeypatch):
    monkeypatch.setattr(settings, "txn_max_attempts", -2)
    calls = _failing_commit(db_session, monkeypatch, failures=10)

    result = run_operation(db_session, lambda: OperationResult(success=True), label="noop")

    assert result.success is False
    assert result.code == "storage_failure"
    assert calls["n"] == 1
