"""
Pricing Engine - pure arithmetic shared by quotations, BOMs, orders and invoices.

Nothing here touches the database. Inputs may be ORM rows, pydantic models or
plain dicts; ``_field`` reads an attribute or key by name so every caller can
hand over whatever it already holds.

BOM pricing follows an "explicit wins" rule: any override the caller supplies
is stored verbatim and survives later recomputations, while fields without an
override are derived from materials, additional costs and stored settings.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Iterable, Mapping, Optional

ZERO = Decimal("0")
HUNDRED = Decimal("100")
TWO_PLACES = Decimal("0.01")
FOUR_PLACES = Decimal("0.0001")

# Length of one unit in metres
UNIT_TO_METRES = {
    "mm": Decimal("0.001"),
    "cm": Decimal("0.01"),
    "m": Decimal("1"),
    "in": Decimal("0.0254"),
    "inch": Decimal("0.0254"),
    "ft": Decimal("0.3048"),
    "feet": Decimal("0.3048"),
}

PRICING_FIELDS = (
    "materials_total",
    "additional_total",
    "overhead_cost",
    "markup_percentage",
    "cost_price",
    "selling_price",
)


def to_decimal(value: Any, default: Decimal = ZERO) -> Decimal:
    """Coerce to Decimal. None, blanks, NaN, infinities and garbage become ``default``."""
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError, TypeError):
            return default
    if not result.is_finite():
        return default
    return result


def round2(value: Decimal) -> Decimal:
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def _field(source: Any, name: str, default: Any = None) -> Any:
    if source is None:
        return default
    if isinstance(source, Mapping):
        return source.get(name, default)
    return getattr(source, name, default)


def _quantity(source: Any) -> Decimal:
    qty = _field(source, "quantity")
    if qty is None or qty == "":
        return Decimal("1")
    return to_decimal(qty, Decimal("1"))


def square_meter_area(width=None, height=None, length=None, unit: Optional[str] = "cm") -> Decimal:
    """Area in square metres from the first two non-zero of length, width, height."""
    factor = UNIT_TO_METRES.get((unit or "cm").lower(), UNIT_TO_METRES["cm"])
    sides = [to_decimal(v) for v in (length, width, height)]
    sides = [side for side in sides if side > 0][:2]
    if len(sides) < 2:
        return ZERO
    area = (sides[0] * factor) * (sides[1] * factor)
    return area.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP)


def resolve_square_meter(source: Any) -> Decimal:
    """Use the supplied area when present, otherwise derive it from dimensions."""
    supplied = _field(source, "square_meter")
    if supplied is not None and supplied != "":
        return to_decimal(supplied)
    return square_meter_area(
        _field(source, "width"),
        _field(source, "height"),
        _field(source, "length"),
        _field(source, "unit"),
    )


def compute_materials_total(materials: Iterable[Any]) -> Decimal:
    total = ZERO
    for material in materials or []:
        price = to_decimal(_field(material, "price"))
        square_meter = to_decimal(_field(material, "square_meter"))
        total += price * square_meter * _quantity(material)
    return total


def compute_additional_total(costs: Iterable[Any]) -> Decimal:
    return sum((to_decimal(_field(cost, "amount")) for cost in costs or []), ZERO)


def compute_document_totals(items: Iterable[Any], discount: Any = None, service: Any = None) -> dict:
    """
    Totals for a quotation-shaped document.

    ``final_total`` is the service block's total price when one is given,
    otherwise the discounted selling price.
    """
    total_cost = ZERO
    total_selling = ZERO
    for item in items or []:
        qty = _quantity(item)
        total_cost += to_decimal(_field(item, "cost_price")) * qty
        total_selling += to_decimal(_field(item, "selling_price")) * qty

    discount_pct = to_decimal(discount)
    discount_amount = total_selling * discount_pct / HUNDRED

    service_total = _field(service, "total_price") if service else None
    if service_total is not None and service_total != "":
        final_total = to_decimal(service_total)
    else:
        final_total = total_selling - discount_amount

    return {
        "total_cost": round2(total_cost),
        "total_selling_price": round2(total_selling),
        "discount_amount": round2(discount_amount),
        "final_total": round2(final_total),
    }


def apply_pricing(
    materials: Iterable[Any],
    additional_costs: Iterable[Any],
    stored: Any = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> dict:
    """
    Compute the BOM pricing block.

    ``stored`` is the previously persisted pricing (a BOM row or dict) and
    supplies the fallback overhead, markup and pricing method. ``overrides``
    holds caller-supplied values; a key present with a non-None value always
    wins over the derived figure.
    """
    overrides = {k: v for k, v in (overrides or {}).items() if v is not None}

    def pick(name: str, fallback: Decimal) -> Decimal:
        if name in overrides:
            return to_decimal(overrides[name])
        return fallback

    materials_total = pick("materials_total", compute_materials_total(materials))
    additional_total = pick("additional_total", compute_additional_total(additional_costs))
    overhead_cost = pick("overhead_cost", to_decimal(_field(stored, "overhead_cost")))
    markup = pick("markup_percentage", to_decimal(_field(stored, "markup_percentage")))
    cost_price = pick("cost_price", materials_total + additional_total + overhead_cost)
    selling_price = pick("selling_price", cost_price + cost_price * markup / HUNDRED)

    pricing_method = overrides.get("pricing_method") or _field(stored, "pricing_method")

    return {
        "pricing_method": pricing_method,
        "markup_percentage": markup,
        "materials_total": materials_total,
        "additional_total": additional_total,
        "overhead_cost": overhead_cost,
        "cost_price": cost_price,
        "selling_price": selling_price,
        "materials_cost": round2(materials_total),
        "additional_costs_total": round2(additional_total),
        "total_cost": round2(materials_total + additional_total),
    }


def payment_status(amount_paid: Any, total: Any) -> str:
    paid = to_decimal(amount_paid)
    if paid <= ZERO:
        return "unpaid"
    if paid >= to_decimal(total):
        return "paid"
    return "partial"


def safe_percentage(part: Any, whole: Any) -> Decimal:
    """part / whole * 100, or 0 when whole is zero."""
    base = to_decimal(whole)
    if base == ZERO:
        return ZERO
    return round2(to_decimal(part) / base * HUNDRED)


def sheet_usage(required_area: Any, sheet_area: Any, waste_threshold: Any) -> dict:
    """
    Standard sheets needed to cover ``required_area``.

    Whole sheets are always used. A leftover part sheet is bought whole once it
    reaches ``waste_threshold`` of a sheet; below that only its area is charged.
    """
    required = to_decimal(required_area)
    sheet = to_decimal(sheet_area)
    threshold = to_decimal(waste_threshold, Decimal("0.75"))
    if sheet <= 0 or required <= 0:
        return {"sheets": ZERO, "full_sheets": 0, "waste_area": ZERO}

    exact = required / sheet
    full_sheets = int(exact)
    remainder = exact - full_sheets
    if remainder > 0 and remainder >= threshold:
        full_sheets += 1
        sheets = Decimal(full_sheets)
        waste = sheets * sheet - required
    else:
        sheets = exact
        waste = ZERO
    return {
        "sheets": sheets.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP),
        "full_sheets": full_sheets,
        "waste_area": waste.quantize(FOUR_PLACES, rounding=ROUND_HALF_UP),
    }
