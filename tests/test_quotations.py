from decimal import Decimal

import pytest
from pydantic import ValidationError

from woodflow.core.exceptions import InvalidInput, InvalidStatus, NotFound
from woodflow.models import Order, Quotation
from woodflow.schemas import (
    ClientDetails, ClientMatch, InvoiceUpdate, LineItemCreate, OrderCreate, OrderUpdate, QuotationUpdate,
)
from woodflow.services.order_service import OrderService
from woodflow.services.quotation_service import QuotationService

from tests.conftest import make_quotation

OAK = LineItemCreate(wood_type="oak", cost_price="100", selling_price="150", quantity=1)


def test_adding_an_item_recalculates_totals(db, tenant):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx)

    quotation = QuotationService(db).add_item(quotation.id, ctx, OAK)
    db.commit()
    assert quotation.final_total == Decimal("3150.00")

    item_id = quotation.items[-1].id
    quotation = QuotationService(db).delete_item(quotation.id, item_id, ctx)
    assert quotation.final_total == Decimal("3000.00")


@pytest.mark.parametrize("status", ["rejected", "completed"])
def test_closed_quotation_pricing_is_frozen(db, tenant, status):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx, status=status)
    item_id = quotation.items[0].id
    service = QuotationService(db)

    with pytest.raises(InvalidStatus):
        service.add_item(quotation.id, ctx, OAK)
    with pytest.raises(InvalidStatus):
        service.delete_item(quotation.id, item_id, ctx)
    with pytest.raises(InvalidStatus):
        service.update(quotation.id, ctx, QuotationUpdate(discount=50))
    with pytest.raises(InvalidStatus):
        service.update(quotation.id, ctx, QuotationUpdate(items=[OAK]))
    with pytest.raises(InvalidStatus):
        service.update(quotation.id, ctx, QuotationUpdate(service={"product": "Sofa", "total_price": 1}))
    db.rollback()

    db.expire_all()
    quotation = service.get_by_id(quotation.id, ctx.company_id)
    assert quotation.final_total == Decimal("3000.00")
    assert len(quotation.items) == 1


def test_converted_quotation_keeps_client_fields_editable(db, tenant):
    ctx = tenant["ctx"]
    quotation = make_quotation(db, ctx, status="approved")
    OrderService(db).create_from_quotation(ctx, OrderCreate(quotation_id=quotation.id))
    db.commit()

    service = QuotationService(db)
    with pytest.raises(InvalidStatus):
        service.add_item(quotation.id, ctx, OAK)

    quotation = service.update(quotation.id, ctx, QuotationUpdate(description="Deliver after 5pm"))
    assert quotation.status == "completed"
    assert quotation.description == "Deliver after 5pm"


@pytest.mark.parametrize("schema", [QuotationUpdate, OrderUpdate, InvoiceUpdate, ClientDetails])
def test_client_name_may_be_omitted_but_not_nulled(schema):
    assert schema().client_name is None
    with pytest.raises(ValidationError):
        schema(client_name=None)


# ---------- clients ----------

def test_update_client_rewrites_matching_quotations_only(db, tenant):
    ctx = tenant["ctx"]
    make_quotation(db, ctx, client_name="Ada Client", phone_number="0803")
    make_quotation(db, ctx, client_name="ADA CLIENT ", phone_number="0803")
    other = make_quotation(db, ctx, client_name="Ada Client", phone_number="0809")

    result = QuotationService(db).update_client(
        ctx,
        ClientMatch(client_name="ada client", phone_number="0803"),
        ClientDetails(client_name=" Ada Okafor ", email="ada@example.com"),
    )
    db.commit()

    assert result == {"client_name": "Ada Okafor", "quotations": 2}
    rows = db.query(Quotation).filter(Quotation.client_name == "Ada Okafor").all()
    assert {row.email for row in rows} == {"ada@example.com"}
    db.refresh(other)
    assert other.client_name == "Ada Client"


def test_update_client_needs_a_change_and_a_match(db, tenant):
    ctx = tenant["ctx"]
    make_quotation(db, ctx)
    service = QuotationService(db)

    with pytest.raises(InvalidInput):
        service.update_client(ctx, ClientMatch(client_name="Ada Client"), ClientDetails())
    with pytest.raises(NotFound):
        service.update_client(ctx, ClientMatch(email="nobody@example.com"), ClientDetails(client_address="Yaba"))
    with pytest.raises(ValidationError):
        ClientMatch()


def test_delete_client_removes_quotations_and_keeps_orders(db, tenant):
    ctx = tenant["ctx"]
    approved = make_quotation(db, ctx, status="approved")
    order = OrderService(db).create_from_quotation(ctx, OrderCreate(quotation_id=approved.id))
    make_quotation(db, ctx)
    make_quotation(db, ctx, client_name="Bola Client")
    db.commit()

    result = QuotationService(db).delete_client(ctx, ClientMatch(client_name="Ada Client"))
    db.commit()

    assert result == {"client_name": "Ada Client", "quotations": 2}
    assert [q.client_name for q in db.query(Quotation).all()] == ["Bola Client"]
    db.expire_all()
    kept = db.get(Order, order.id)
    assert kept.quotation_id is None
    assert kept.client_name == "Ada Client"
