"""
Material Service - stock materials priced per square metre
"""
from typing import Optional, List
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from woodflow.core.exceptions import Conflict, InvalidInput, NotFound
from woodflow.models import StockMaterial
from woodflow.schemas import MaterialCostRequest, MaterialTypesAdd, StockMaterialCreate, StockMaterialUpdate
from woodflow.services import pricing
from woodflow.services.access_service import TenantContext

JSON_FIELDS = {"sizes", "foam_densities", "foam_thicknesses", "types"}


class MaterialService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, material_id: int, company_id: int) -> StockMaterial:
        material = self.db.query(StockMaterial).filter(
            StockMaterial.id == material_id,
            StockMaterial.company_id == company_id
        ).first()
        if not material:
            raise NotFound("Material not found")
        return material

    def _name_taken(self, company_id: int, name: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(StockMaterial.id).filter(
            StockMaterial.company_id == company_id,
            func.lower(StockMaterial.name) == name.lower()
        )
        if exclude_id is not None:
            query = query.filter(StockMaterial.id != exclude_id)
        return query.first() is not None

    def _flush(self):
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("A material with this name already exists")

    def list(self, company_id: int, category: Optional[str] = None, search: Optional[str] = None,
             active_only: bool = False, skip: int = 0, limit: int = 100) -> List[StockMaterial]:
        query = self.db.query(StockMaterial).filter(StockMaterial.company_id == company_id)
        if category:
            query = query.filter(StockMaterial.category == category)
        if search:
            query = query.filter(StockMaterial.name.ilike(f"%{search}%"))
        if active_only:
            query = query.filter(StockMaterial.is_active.is_(True))
        return query.order_by(StockMaterial.name, StockMaterial.id).offset(skip).limit(limit).all()

    def create(self, ctx: TenantContext, data: StockMaterialCreate) -> StockMaterial:
        name = data.name.strip()
        if self._name_taken(ctx.company_id, name):
            raise Conflict("A material with this name already exists")
        values = data.model_dump(exclude=JSON_FIELDS)
        values.update(data.model_dump(mode="json", include=JSON_FIELDS))
        values["name"] = name
        material = StockMaterial(company_id=ctx.company_id, user_id=ctx.user_id, **values)
        self.db.add(material)
        self._flush()
        return material

    def update(self, material_id: int, ctx: TenantContext, data: StockMaterialUpdate) -> StockMaterial:
        material = self.get_by_id(material_id, ctx.company_id)
        update_data = data.model_dump(exclude_unset=True, exclude=JSON_FIELDS)
        update_data.update(data.model_dump(mode="json", exclude_unset=True, include=JSON_FIELDS))
        if "name" in update_data:
            update_data["name"] = update_data["name"].strip()
            if self._name_taken(ctx.company_id, update_data["name"], exclude_id=material.id):
                raise Conflict("A material with this name already exists")
        for key, value in update_data.items():
            setattr(material, key, value)
        self._flush()
        return material

    def add_types(self, material_id: int, ctx: TenantContext, data: MaterialTypesAdd) -> StockMaterial:
        """Append types; a type whose name already exists gets the new price"""
        material = self.get_by_id(material_id, ctx.company_id)
        merged = {entry["name"].lower(): entry for entry in material.types or []}
        for entry in data.model_dump(mode="json")["types"]:
            merged[entry["name"].lower()] = entry
        material.types = list(merged.values())
        self.db.flush()
        return material

    def delete(self, material_id: int, ctx: TenantContext) -> StockMaterial:
        material = self.get_by_id(material_id, ctx.company_id)
        self.db.delete(material)
        self.db.flush()
        return material

    def calculate_cost(self, material_id: int, company_id: int, data: MaterialCostRequest) -> dict:
        material = self.get_by_id(material_id, company_id)

        price = pricing.to_decimal(material.price_per_sqm)
        if data.material_type:
            entry = next(
                (t for t in material.types or [] if t["name"].lower() == data.material_type.strip().lower()),
                None
            )
            if entry is None:
                raise NotFound(f"Material type '{data.material_type}' not found")
            if entry.get("price_per_sqm") is not None:
                price = pricing.to_decimal(entry["price_per_sqm"])

        square_meter = pricing.resolve_square_meter(data)
        if square_meter <= 0:
            raise InvalidInput("Give two dimensions or a square_meter value")
        required = square_meter * data.quantity
        sheet_area = pricing.square_meter_area(
            width=material.standard_width, length=material.standard_length, unit=material.standard_unit
        )
        usage = pricing.sheet_usage(required, sheet_area, material.waste_threshold)

        return {
            "material_id": material.id,
            "material_type": data.material_type,
            "price_per_sqm": pricing.round2(price),
            "square_meter": square_meter,
            "required_area": required,
            "sheet_area": sheet_area,
            "total_cost": pricing.round2((required + usage["waste_area"]) * price),
            **usage,
        }
