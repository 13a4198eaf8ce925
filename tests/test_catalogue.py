from datetime import date
from decimal import Decimal

import pytest
from dateutil.relativedelta import relativedelta

from woodflow.core.exceptions import Conflict, InvalidInput, NotFound
from woodflow.schemas import (
    AdditionalCostCreate, BOMCreate, BOMUpdate, MaterialCostRequest, MaterialTypesAdd, OverheadCostCreate,
    ProductCreate, ProductUpdate, StockMaterialCreate, StockMaterialUpdate,
)
from woodflow.services.bom_service import BOMService
from woodflow.services.material_service import MaterialService
from woodflow.services.overhead_service import OverheadService
from woodflow.services.product_service import ProductService


def _bom(db, ctx, **fields):
    data = BOMCreate(
        name=" Dining table ",
        materials=[{"wood_type": "oak", "price": 100, "width": 100, "length": 200, "quantity": 3}],
        additional_costs=[{"name": "Varnish", "amount": 50}],
        pricing={"overhead_cost": 100, "markup_percentage": 20},
        **fields,
    )
    bom = BOMService(db).create(ctx, data)
    db.commit()
    return bom


def test_bom_pricing_is_derived_from_materials(db, tenant):
    bom = _bom(db, tenant["ctx"])

    assert bom.bom_number == "BOM-0001"
    assert bom.name == "Dining table"
    assert bom.materials[0].square_meter == Decimal("2")
    assert bom.materials_total == Decimal("600")
    assert bom.cost_price == Decimal("750")
    assert bom.selling_price == Decimal("900")
    assert bom.total_cost == Decimal("650.00")


def test_bom_field_edit_keeps_pricing(db, tenant):
    ctx = tenant["ctx"]
    bom = _bom(db, ctx)

    bom = BOMService(db).update(bom.id, ctx, BOMUpdate(name="Kitchen table"))
    db.commit()
    assert bom.name == "Kitchen table"
    assert bom.selling_price == Decimal("900")


def test_bom_recompute_carries_stored_overhead_and_markup(db, tenant):
    ctx = tenant["ctx"]
    bom = _bom(db, ctx)

    bom = BOMService(db).update(bom.id, ctx, BOMUpdate(additional_costs=[]))
    db.commit()
    assert bom.cost_price == Decimal("700")
    assert bom.selling_price == Decimal("840")

    bom = BOMService(db).add_additional_cost(bom.id, ctx, AdditionalCostCreate(name="Delivery", amount=20))
    assert bom.selling_price == Decimal("864")


def test_bom_due_date_from_expected_duration(db, tenant):
    bom = _bom(db, tenant["ctx"], expected_duration={"value": 2, "unit": "months"})
    assert bom.due_date == date.today() + relativedelta(months=2)

    explicit = _bom(db, tenant["ctx"], expected_duration={"value": 2}, due_date=date(2031, 1, 1))
    assert explicit.due_date == date(2031, 1, 1)


def test_bom_linked_to_foreign_quotation_is_rejected(db, tenant):
    with pytest.raises(NotFound):
        _bom(db, tenant["ctx"], quotation_id=12345)


def test_product_codes_are_unique_per_company(db, tenant):
    ctx = tenant["ctx"]
    service = ProductService(db)
    chair = service.create(ctx, ProductCreate(product_code="CH-01", name="Chair", category="seating"))
    service.create(ctx, ProductCreate(product_code="TB-01", name="Table"))
    db.commit()

    with pytest.raises(Conflict):
        service.create(ctx, ProductCreate(product_code="CH-01", name="Another chair"))
    with pytest.raises(Conflict):
        service.update(chair.id, ctx, ProductUpdate(product_code="TB-01"))

    assert [p.name for p in service.list(ctx.company_id, category="seating")] == ["Chair"]
    assert [p.name for p in service.list(ctx.company_id, search="tb-")] == ["Table"]


def test_bom_copies_catalogue_product(db, tenant):
    ctx = tenant["ctx"]
    product = ProductService(db).create(ctx, ProductCreate(product_code="CH-01", name="Chair"))
    db.commit()

    bom = _bom(db, ctx, product={"product_ref_id": product.id})
    assert (bom.product_code, bom.product_name) == ("CH-01", "Chair")


def test_overhead_totals_by_period(db, tenant):
    ctx = tenant["ctx"]
    service = OverheadService(db)
    service.create(ctx, OverheadCostCreate(category="rent", cost=50000))
    service.create(ctx, OverheadCostCreate(category="power", cost="12500.50"))
    service.create(ctx, OverheadCostCreate(category="insurance", cost=90000, period="yearly"))
    db.commit()

    assert service.totals_by_period(ctx.company_id) == {
        "monthly": Decimal("62500.50"),
        "yearly": Decimal("90000.00"),
    }
    assert len(service.list(ctx.company_id, period="monthly")) == 2


def _plywood(db, ctx, **fields):
    values = dict(
        name="Plywood 18mm", standard_width=122, standard_length=244, price_per_sqm=5000,
        types=[{"name": "Marine", "price_per_sqm": 8000}, {"name": "Commercial"}],
    )
    values.update(fields)
    material = MaterialService(db).create(ctx, StockMaterialCreate(**values))
    db.commit()
    return material


def test_material_names_are_unique_per_company(db, tenant):
    ctx = tenant["ctx"]
    service = MaterialService(db)
    plywood = _plywood(db, ctx)
    mdf = _plywood(db, ctx, name="MDF", types=[])

    with pytest.raises(Conflict):
        service.create(ctx, StockMaterialCreate(name=" plywood 18MM ", standard_width=1, standard_length=1,
                                                price_per_sqm=1))
    with pytest.raises(Conflict):
        service.update(mdf.id, ctx, StockMaterialUpdate(name="Plywood 18mm"))

    service.update(plywood.id, ctx, StockMaterialUpdate(is_active=False, waste_threshold="0.5"))
    db.commit()
    assert [m.name for m in service.list(ctx.company_id, active_only=True)] == ["MDF"]
    assert [m.name for m in service.list(ctx.company_id, search="ply")] == ["Plywood 18mm"]


def test_adding_material_types_replaces_same_name(db, tenant):
    ctx = tenant["ctx"]
    material = _plywood(db, ctx)

    material = MaterialService(db).add_types(material.id, ctx, MaterialTypesAdd(types=[
        {"name": "marine", "price_per_sqm": 9000}, {"name": "Birch", "price_per_sqm": 12000},
    ]))
    db.commit()

    prices = {t["name"]: t["price_per_sqm"] for t in material.types}
    assert prices == {"marine": "9000", "Commercial": None, "Birch": "12000"}


def test_material_cost_by_type_and_sheet(db, tenant):
    ctx = tenant["ctx"]
    material = _plywood(db, ctx)
    service = MaterialService(db)

    # Two 1m x 1m panels use 67% of a sheet, below the threshold
    cost = service.calculate_cost(material.id, ctx.company_id, MaterialCostRequest(width=100, length=100, quantity=2))
    assert cost["required_area"] == Decimal("2.0000")
    assert cost["full_sheets"] == 0
    assert cost["total_cost"] == Decimal("10000.00")

    # A type without its own price falls back to the material price
    cost = service.calculate_cost(
        material.id, ctx.company_id, MaterialCostRequest(square_meter="2.5", material_type="commercial")
    )
    assert cost["full_sheets"] == 1
    assert cost["waste_area"] == Decimal("0.4768")
    assert cost["total_cost"] == Decimal("14884.00")

    with pytest.raises(NotFound):
        service.calculate_cost(material.id, ctx.company_id, MaterialCostRequest(square_meter=1, material_type="Oak"))
    with pytest.raises(InvalidInput):
        service.calculate_cost(material.id, ctx.company_id, MaterialCostRequest(width=100))


def test_materials_are_tenant_scoped(db, tenant):
    material = _plywood(db, tenant["ctx"])
    with pytest.raises(NotFound):
        MaterialService(db).get_by_id(material.id, tenant["company"].id + 1)
