from decimal import Decimal

from woodflow.services import pricing


def test_document_totals_with_discount():
    items = [{"cost_price": 1000, "selling_price": 1500, "quantity": 2}]
    totals = pricing.compute_document_totals(items, discount=10)
    assert totals == {
        "total_cost": Decimal("2000.00"),
        "total_selling_price": Decimal("3000.00"),
        "discount_amount": Decimal("300.00"),
        "final_total": Decimal("2700.00"),
    }


def test_service_total_overrides_final_total():
    items = [{"cost_price": 100, "selling_price": 150, "quantity": 1}]
    totals = pricing.compute_document_totals(items, discount=0, service={"total_price": "999.99"})
    assert totals["total_selling_price"] == Decimal("150.00")
    assert totals["final_total"] == Decimal("999.99")


def test_missing_quantity_counts_as_one_and_garbage_is_zero():
    items = [{"cost_price": "abc", "selling_price": 40}, {"cost_price": 5, "selling_price": "NaN", "quantity": 3}]
    totals = pricing.compute_document_totals(items)
    assert totals["total_cost"] == Decimal("15.00")
    assert totals["total_selling_price"] == Decimal("40.00")


def test_empty_document_is_all_zero():
    totals = pricing.compute_document_totals([], discount=None)
    assert set(totals.values()) == {Decimal("0.00")}


def test_square_meter_uses_first_two_nonzero_sides():
    assert pricing.square_meter_area(width=50, height=0, length=200, unit="cm") == Decimal("1.0000")
    assert pricing.square_meter_area(width=1000, height=500, unit="mm") == Decimal("0.5000")
    assert pricing.square_meter_area(width=30, unit="cm") == Decimal("0")


def test_supplied_square_meter_wins():
    assert pricing.resolve_square_meter({"square_meter": "2.5", "width": 10, "length": 10}) == Decimal("2.5")


def test_apply_pricing_derives_everything_without_overrides():
    materials = [{"price": 100, "square_meter": 2, "quantity": 3}]
    costs = [{"amount": 50}, {"amount": "25.5"}]
    result = pricing.apply_pricing(materials, costs, stored={"overhead_cost": 100, "markup_percentage": 20})

    assert result["materials_total"] == Decimal("600")
    assert result["additional_total"] == Decimal("75.5")
    assert result["cost_price"] == Decimal("775.5")
    assert result["selling_price"] == Decimal("930.6")
    assert result["total_cost"] == Decimal("675.50")


def test_apply_pricing_overrides_win_over_derived_values():
    materials = [{"price": 100, "square_meter": 1, "quantity": 1}]
    result = pricing.apply_pricing(
        materials, [],
        stored={"markup_percentage": 50},
        overrides={"cost_price": "500", "selling_price": None, "pricing_method": "manual"},
    )
    assert result["materials_total"] == Decimal("100")
    assert result["cost_price"] == Decimal("500")
    # selling price is still derived, from the overridden cost price
    assert result["selling_price"] == Decimal("750")
    assert result["pricing_method"] == "manual"


def test_explicit_selling_price_survives_recompute():
    stored = pricing.apply_pricing([], [], overrides={"selling_price": 1234})
    again = pricing.apply_pricing([{"price": 10, "square_meter": 1}], [], stored=stored,
                                  overrides={"selling_price": stored["selling_price"]})
    assert again["selling_price"] == Decimal("1234")
    assert again["materials_total"] == Decimal("10")


def test_payment_status_thresholds():
    assert pricing.payment_status(0, 100) == "unpaid"
    assert pricing.payment_status("40", 100) == "partial"
    assert pricing.payment_status(100, 100) == "paid"


def test_safe_percentage_handles_zero_base():
    assert pricing.safe_percentage(50, 0) == Decimal("0")
    assert pricing.safe_percentage(1, 3) == Decimal("33.33")


def test_sheet_usage_charges_small_offcuts_by_area():
    usage = pricing.sheet_usage("2", "4", "0.75")
    assert usage == {"sheets": Decimal("0.5000"), "full_sheets": 0, "waste_area": Decimal("0.0000")}


def test_sheet_usage_buys_a_whole_sheet_past_the_threshold():
    usage = pricing.sheet_usage("7", "4", "0.75")
    assert usage == {"sheets": Decimal("2.0000"), "full_sheets": 2, "waste_area": Decimal("1.0000")}

    exact = pricing.sheet_usage("8", "4", "0.75")
    assert exact == {"sheets": Decimal("2.0000"), "full_sheets": 2, "waste_area": Decimal("0.0000")}


def test_sheet_usage_without_area_is_zero():
    assert pricing.sheet_usage(0, "4", "0.75")["sheets"] == Decimal("0")
    assert pricing.sheet_usage("2", 0, "0.75")["full_sheets"] == 0
