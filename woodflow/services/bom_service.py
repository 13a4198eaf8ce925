"""
BOM Service - bills of materials and their pricing block
"""
from datetime import date
from typing import Optional, List
from dateutil.relativedelta import relativedelta
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from woodflow.core.exceptions import NotFound
from woodflow.models import BOM, BomAdditionalCost, BomMaterial, Product, Quotation
from woodflow.schemas import (
    AdditionalCostCreate, BOMCreate, BOMUpdate, BomProductInput, ExpectedDuration, MaterialCreate
)
from woodflow.services import pricing
from woodflow.services.access_service import TenantContext
from woodflow.services.sequence_service import next_number

_PRICING_COLUMNS = (
    "pricing_method",
    "markup_percentage",
    "materials_total",
    "additional_total",
    "overhead_cost",
    "cost_price",
    "selling_price",
    "materials_cost",
    "additional_costs_total",
    "total_cost",
)


def build_material(data: MaterialCreate) -> BomMaterial:
    values = data.model_dump()
    values["square_meter"] = pricing.resolve_square_meter(values)
    return BomMaterial(**values)


def due_date_from_duration(start: date, duration: ExpectedDuration) -> date:
    return start + relativedelta(**{duration.unit: duration.value})


class BOMService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, bom_id: int, company_id: int) -> BOM:
        bom = self.db.query(BOM).options(
            selectinload(BOM.materials),
            selectinload(BOM.additional_costs)
        ).filter(
            BOM.id == bom_id,
            BOM.company_id == company_id
        ).first()
        if not bom:
            raise NotFound("BOM not found")
        return bom

    def list(self, company_id: int, quotation_id: Optional[int] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[BOM]:
        query = self.db.query(BOM).options(
            selectinload(BOM.materials),
            selectinload(BOM.additional_costs)
        ).filter(BOM.company_id == company_id)
        if quotation_id is not None:
            query = query.filter(BOM.quotation_id == quotation_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(BOM.name.ilike(pattern), BOM.bom_number.ilike(pattern)))
        return query.order_by(BOM.created_at.desc(), BOM.id.desc()).offset(skip).limit(limit).all()

    def _check_quotation(self, quotation_id: Optional[int], company_id: int) -> None:
        if quotation_id is None:
            return
        exists = self.db.query(Quotation.id).filter(
            Quotation.id == quotation_id,
            Quotation.company_id == company_id
        ).first()
        if not exists:
            raise NotFound("Quotation not found")

    def _apply_product(self, bom: BOM, product: BomProductInput, company_id: int) -> None:
        """Copy product details onto the BOM; fields not supplied keep their current value."""
        if product.product_ref_id is not None:
            catalogue = self.db.query(Product).filter(
                Product.id == product.product_ref_id,
                Product.company_id == company_id
            ).first()
            if not catalogue:
                raise NotFound("Product not found")
            bom.product_ref_id = catalogue.id
            bom.product_code = catalogue.product_code
            bom.product_name = catalogue.name
            bom.product_description = catalogue.description
            bom.product_image = catalogue.image_url

        supplied = product.model_dump(exclude_unset=True, exclude={"product_ref_id"})
        mapping = {"product_code": "product_code", "name": "product_name",
                   "description": "product_description", "image": "product_image"}
        for key, value in supplied.items():
            setattr(bom, mapping[key], value)

    def reprice(self, bom: BOM, overrides: Optional[dict] = None) -> BOM:
        result = pricing.apply_pricing(bom.materials, bom.additional_costs, stored=bom, overrides=overrides)
        for column in _PRICING_COLUMNS:
            setattr(bom, column, result[column])
        return bom

    @staticmethod
    def _overrides(pricing_input) -> dict:
        return pricing_input.model_dump(exclude_none=True) if pricing_input else {}

    def create(self, ctx: TenantContext, data: BOMCreate) -> BOM:
        self._check_quotation(data.quotation_id, ctx.company_id)

        bom = BOM(
            company_id=ctx.company_id,
            user_id=ctx.user_id,
            bom_number=next_number(self.db, "bom"),
            name=data.name.strip(),
            description=data.description,
            quotation_id=data.quotation_id,
            materials=[build_material(m) for m in data.materials],
            additional_costs=[BomAdditionalCost(**c.model_dump()) for c in data.additional_costs],
        )
        if data.product:
            self._apply_product(bom, data.product, ctx.company_id)
        if data.expected_duration:
            bom.expected_duration_value = data.expected_duration.value
            bom.expected_duration_unit = data.expected_duration.unit
        bom.due_date = data.due_date or (
            due_date_from_duration(date.today(), data.expected_duration) if data.expected_duration else None
        )

        self.reprice(bom, self._overrides(data.pricing))
        self.db.add(bom)
        self.db.flush()
        return bom

    def update(self, bom_id: int, ctx: TenantContext, data: BOMUpdate) -> BOM:
        """
        Field edits never touch pricing. Pricing is recomputed only when
        materials, additional costs or pricing overrides are supplied; stored
        overhead, markup and pricing method carry over into that recompute.
        """
        bom = self.get_by_id(bom_id, ctx.company_id)
        fields = data.model_fields_set

        if "quotation_id" in fields:
            self._check_quotation(data.quotation_id, ctx.company_id)
            bom.quotation_id = data.quotation_id
        if data.name is not None:
            bom.name = data.name.strip()
        if "description" in fields:
            bom.description = data.description
        if data.product is not None:
            self._apply_product(bom, data.product, ctx.company_id)
        if data.expected_duration is not None:
            bom.expected_duration_value = data.expected_duration.value
            bom.expected_duration_unit = data.expected_duration.unit
            if "due_date" not in fields:
                start = bom.created_at.date() if bom.created_at else date.today()
                bom.due_date = due_date_from_duration(start, data.expected_duration)
        if "due_date" in fields:
            bom.due_date = data.due_date

        needs_pricing = False
        if data.materials is not None:
            bom.materials = [build_material(m) for m in data.materials]
            needs_pricing = True
        if data.additional_costs is not None:
            bom.additional_costs = [BomAdditionalCost(**c.model_dump()) for c in data.additional_costs]
            needs_pricing = True
        if data.pricing is not None:
            needs_pricing = True

        if needs_pricing:
            self.reprice(bom, self._overrides(data.pricing))
        self.db.flush()
        return bom

    def add_material(self, bom_id: int, ctx: TenantContext, data: MaterialCreate) -> BOM:
        bom = self.get_by_id(bom_id, ctx.company_id)
        bom.materials.append(build_material(data))
        self.reprice(bom)
        self.db.flush()
        return bom

    def delete_material(self, bom_id: int, material_id: int, ctx: TenantContext) -> BOM:
        bom = self.get_by_id(bom_id, ctx.company_id)
        material = next((m for m in bom.materials if m.id == material_id), None)
        if material is None:
            raise NotFound("Material not found")
        bom.materials.remove(material)
        self.reprice(bom)
        self.db.flush()
        return bom

    def add_additional_cost(self, bom_id: int, ctx: TenantContext, data: AdditionalCostCreate) -> BOM:
        bom = self.get_by_id(bom_id, ctx.company_id)
        bom.additional_costs.append(BomAdditionalCost(**data.model_dump()))
        self.reprice(bom)
        self.db.flush()
        return bom

    def delete_additional_cost(self, bom_id: int, cost_id: int, ctx: TenantContext) -> BOM:
        bom = self.get_by_id(bom_id, ctx.company_id)
        cost = next((c for c in bom.additional_costs if c.id == cost_id), None)
        if cost is None:
            raise NotFound("Additional cost not found")
        bom.additional_costs.remove(cost)
        self.reprice(bom)
        self.db.flush()
        return bom

    def delete(self, bom_id: int, ctx: TenantContext) -> BOM:
        bom = self.get_by_id(bom_id, ctx.company_id)
        self.db.delete(bom)
        self.db.flush()
        return bom

    def snapshots_for_quotation(self, quotation_id: int, company_id: int) -> List[dict]:
        boms = self.db.query(BOM).options(
            selectinload(BOM.materials),
            selectinload(BOM.additional_costs)
        ).filter(
            BOM.quotation_id == quotation_id,
            BOM.company_id == company_id
        ).order_by(BOM.id).all()
        return [bom.snapshot() for bom in boms]
