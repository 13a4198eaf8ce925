from datetime import date, timedelta
from decimal import Decimal

import pytest

from woodflow.core.exceptions import Conflict, InvalidStatus, OverLimit
from woodflow.models import Invoice
from woodflow.schemas import InvoiceCreate, InvoicePaymentUpdate, OrderCreate
from woodflow.services.invoice_service import InvoiceService
from woodflow.services.order_service import OrderService

from tests.conftest import make_quotation


def test_invoice_copies_quotation_and_defaults_due_date(db, tenant):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx, discount="10")

    invoice = InvoiceService(db).create(ctx, InvoiceCreate(quotation_id=quotation.id))
    db.commit()

    assert invoice.invoice_number == "INV-00001"
    assert invoice.final_total == Decimal("2700.00")
    assert invoice.balance == Decimal("2700.00")
    assert invoice.status == "pending"
    assert invoice.payment_status == "unpaid"
    assert invoice.currency == "NGN"
    assert invoice.due_date == date.today() + timedelta(days=30)
    assert [item.wood_type for item in invoice.items] == ["mahogany"]


def test_one_invoice_per_quotation(db, tenant):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx)
    InvoiceService(db).create(ctx, InvoiceCreate(quotation_id=quotation.id))
    db.commit()

    with pytest.raises(Conflict):
        InvoiceService(db).create(ctx, InvoiceCreate(quotation_id=quotation.id))


def test_rejected_quotation_cannot_be_invoiced(db, tenant):
    quotation = make_quotation(db, tenant["ctx"], status="rejected")
    with pytest.raises(InvalidStatus):
        InvoiceService(db).create(tenant["ctx"], InvoiceCreate(quotation_id=quotation.id))


def test_invoice_from_order_links_back(db, tenant):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx, status="approved")
    order = OrderService(db).create_from_quotation(ctx, OrderCreate(quotation_id=quotation.id, currency="USD"))
    db.commit()

    invoice = InvoiceService(db).create(ctx, InvoiceCreate(order_id=order.id, due_date=date(2030, 1, 31)))
    db.commit()

    assert invoice.quotation_id == quotation.id
    assert invoice.order_id == order.id
    assert invoice.currency == "USD"
    assert invoice.due_date == date(2030, 1, 31)
    db.refresh(order)
    assert order.invoice_id == invoice.id


def test_payment_is_an_absolute_amount(db, tenant):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx)
    invoice = InvoiceService(db).create(ctx, InvoiceCreate(quotation_id=quotation.id))
    db.commit()
    service = InvoiceService(db)

    invoice = service.update_payment(invoice.id, ctx, InvoicePaymentUpdate(amount_paid="1000"))
    invoice = service.update_payment(invoice.id, ctx, InvoicePaymentUpdate(amount_paid="1200"))
    assert invoice.amount_paid == Decimal("1200.00")
    assert invoice.balance == Decimal("1800.00")
    assert invoice.payment_status == "partial"
    assert invoice.status == "pending"

    invoice = service.update_payment(invoice.id, ctx, InvoicePaymentUpdate(amount_paid="3000"))
    assert invoice.status == "paid"
    assert invoice.paid_date is not None
    paid_on = invoice.paid_date

    # Correcting downwards reopens the invoice but keeps the first paid date
    invoice = service.update_payment(invoice.id, ctx, InvoicePaymentUpdate(amount_paid="2500"))
    assert invoice.status == "pending"
    invoice = service.update_payment(invoice.id, ctx, InvoicePaymentUpdate(amount_paid="3000"))
    assert invoice.paid_date == paid_on

    with pytest.raises(OverLimit):
        service.update_payment(invoice.id, ctx, InvoicePaymentUpdate(amount_paid="3000.01"))


def test_overdue_sweep_only_touches_pending_past_due(db, tenant):
    ctx = tenant["ctx"]
    service = InvoiceService(db)
    late = service.create(ctx, InvoiceCreate(
        quotation_id=make_quotation(db, ctx).id, due_date=date(2026, 1, 1)))
    paid = service.create(ctx, InvoiceCreate(
        quotation_id=make_quotation(db, ctx).id, due_date=date(2026, 1, 1)))
    future = service.create(ctx, InvoiceCreate(
        quotation_id=make_quotation(db, ctx).id, due_date=date(2026, 3, 1)))
    service.update_status(paid.id, ctx, "paid")
    db.commit()

    assert service.mark_overdue(today=date(2026, 2, 1)) == 1
    db.commit()

    statuses = {i.id: i.status for i in db.query(Invoice).all()}
    assert statuses == {late.id: "overdue", paid.id: "paid", future.id: "pending"}


def test_deleting_invoice_unlinks_order(db, tenant):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx, status="sent")
    order = OrderService(db).create_from_quotation(ctx, OrderCreate(quotation_id=quotation.id))
    invoice = InvoiceService(db).create(ctx, InvoiceCreate(order_id=order.id))
    db.commit()

    InvoiceService(db).delete(invoice.id, ctx)
    db.commit()
    db.refresh(order)
    assert order.invoice_id is None
