import threading
from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from woodflow.core.exceptions import Conflict, InvalidStatus, OverLimit
from woodflow.models import Order, OrderPayment, Receipt
from woodflow.schemas import OrderCreate, PaymentCreate
from woodflow.services.order_service import OrderService
from woodflow.services.payment_service import PaymentService
from woodflow.services.quotation_service import QuotationService

from tests.conftest import make_quotation


def _order(db, ctx, **quotation_fields):
    quotation = make_quotation(db, ctx, discount="10", status="sent", **quotation_fields)
    order = OrderService(db).create_from_quotation(ctx, OrderCreate(quotation_id=quotation.id))
    db.commit()
    return order


def test_order_snapshots_quotation_and_completes_it(db, tenant):
    ctx = tenant["ctx"]
    order = _order(db, ctx)

    assert order.order_number == "ORD-00001"
    assert order.total_amount == Decimal("2700.00")
    assert order.balance == Decimal("2700.00")
    assert order.payment_status == "unpaid"
    assert len(order.items) == 1
    quotation = QuotationService(db).get_by_id(order.quotation_id, ctx.company_id)
    assert quotation.status == "completed"


def test_draft_quotation_cannot_be_converted(db, tenant):
    quotation = make_quotation(db, tenant["ctx"])
    with pytest.raises(InvalidStatus):
        OrderService(db).create_from_quotation(tenant["ctx"], OrderCreate(quotation_id=quotation.id))


def test_quotation_edit_does_not_reach_the_order(db, tenant):
    ctx = tenant["ctx"]
    order = _order(db, ctx)
    quotation = QuotationService(db).get_by_id(order.quotation_id, ctx.company_id)
    quotation.final_total = Decimal("1.00")
    db.commit()

    db.expire_all()
    assert OrderService(db).get_by_id(order.id, ctx.company_id).total_amount == Decimal("2700.00")


def test_second_order_for_same_quotation_is_rejected_by_storage(db, tenant, monkeypatch):
    ctx = tenant["ctx"]
    order = _order(db, ctx)
    quotation = QuotationService(db).get_by_id(order.quotation_id, ctx.company_id)
    quotation.status = "approved"
    db.commit()

    # Skip the friendly pre-check so only the unique constraint stands in the way
    monkeypatch.setattr(OrderService, "get_by_quotation", lambda self, quotation_id, company_id: None)
    with pytest.raises(Conflict):
        OrderService(db).create_from_quotation(ctx, OrderCreate(quotation_id=quotation.id))

    assert db.query(Order).filter(Order.quotation_id == quotation.id).count() == 1


def test_racing_conversions_create_one_order(session_factory, tenant, db, monkeypatch):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx, status="approved")
    barrier = threading.Barrier(2)
    real_lookup = OrderService.get_by_quotation

    def lookup_then_wait(self, quotation_id, company_id):
        # Both sessions pass the pre-check before either one inserts
        found = real_lookup(self, quotation_id, company_id)
        barrier.wait(timeout=10)
        return found

    monkeypatch.setattr(OrderService, "get_by_quotation", lookup_then_wait)

    def convert(_):
        session = session_factory()
        try:
            OrderService(session).create_from_quotation(ctx, OrderCreate(quotation_id=quotation.id))
            session.commit()
            return "ok"
        except Conflict:
            session.rollback()
            return "conflict"
        finally:
            session.close()

    with ThreadPoolExecutor(max_workers=2) as pool:
        results = sorted(pool.map(convert, range(2)))

    assert results == ["conflict", "ok"]
    db.expire_all()
    assert db.query(Order).filter(Order.quotation_id == quotation.id).count() == 1


def test_full_payment_then_overpayment(db, tenant):
    ctx = tenant["ctx"]
    order = _order(db, ctx)

    order, receipt = PaymentService(db).add_payment(order.id, ctx, PaymentCreate(amount="2700"))
    db.commit()
    assert order.payment_status == "paid"
    assert order.balance == Decimal("0.00")
    assert receipt.receipt_number == "RC-0001"
    assert receipt.amount_paid == Decimal("2700.00")

    with pytest.raises(OverLimit) as excinfo:
        PaymentService(db).add_payment(order.id, ctx, PaymentCreate(amount="1"))
    assert excinfo.value.remaining == Decimal("0")
    db.rollback()

    assert db.query(OrderPayment).count() == 1
    assert db.query(Receipt).count() == 1


def test_partial_payments_accumulate_and_receipts_are_per_payment(db, tenant):
    ctx = tenant["ctx"]
    order = _order(db, ctx)
    service = PaymentService(db)

    _, first = service.add_payment(order.id, ctx, PaymentCreate(amount="1000", payment_method="bank_transfer"))
    db.commit()
    order, second = service.add_payment(order.id, ctx, PaymentCreate(amount="700.50"))
    db.commit()

    assert order.amount_paid == Decimal("1700.50")
    assert order.balance == Decimal("999.50")
    assert order.payment_status == "partial"
    assert first.amount_paid == Decimal("1000.00")
    assert first.balance == Decimal("1700.00")
    assert second.amount_paid == Decimal("700.50")
    assert second.balance == Decimal("999.50")
    assert [p.amount for p in service.list_payments(order.id, ctx.company_id)] == [
        Decimal("1000.00"), Decimal("700.50")
    ]


def test_stale_session_cannot_overpay(session_factory, tenant, db):
    ctx = tenant["ctx"]
    order = _order(db, ctx)

    first, second = session_factory(), session_factory()
    try:
        # Both sessions see an unpaid order
        assert first.get(Order, order.id).amount_paid == Decimal("0.00")
        assert second.get(Order, order.id).amount_paid == Decimal("0.00")

        PaymentService(first).add_payment(order.id, ctx, PaymentCreate(amount="2000"))
        first.commit()

        with pytest.raises(OverLimit) as excinfo:
            PaymentService(second).add_payment(order.id, ctx, PaymentCreate(amount="1000"))
        assert excinfo.value.remaining == Decimal("700.00")
        second.rollback()
    finally:
        first.close()
        second.close()

    db.expire_all()
    assert db.get(Order, order.id).amount_paid == Decimal("2000.00")


def test_cancelled_order_rejects_payment(db, tenant):
    ctx = tenant["ctx"]
    order = _order(db, ctx)
    OrderService(db).update_status(order.id, ctx, "cancelled")
    db.commit()

    with pytest.raises(InvalidStatus):
        PaymentService(db).add_payment(order.id, ctx, PaymentCreate(amount="10"))


def test_invalid_order_status_changes_nothing(db, tenant):
    ctx = tenant["ctx"]
    order = _order(db, ctx)
    with pytest.raises(InvalidStatus):
        OrderService(db).update_status(order.id, ctx, "shipped")
    assert OrderService(db).get_by_id(order.id, ctx.company_id).status == "pending"


def test_order_stats(db, tenant):
    ctx = tenant["ctx"]
    order = _order(db, ctx)
    PaymentService(db).add_payment(order.id, ctx, PaymentCreate(amount="700"))
    db.commit()

    stats = OrderService(db).stats(ctx.company_id)
    assert stats["total_orders"] == 1
    assert stats["by_payment_status"] == {"unpaid": 0, "partial": 1, "paid": 0}
    assert stats["total_revenue"] == Decimal("2700.00")
    assert stats["total_collected"] == Decimal("700.00")
    assert stats["total_outstanding"] == Decimal("2000.00")
    # (2700 - 2000) / 2700
    assert stats["profit_margin"] == Decimal("25.93")
