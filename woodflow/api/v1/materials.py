"""
Materials API Routes - stock material catalogue and sheet costing
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.schemas import (
    MaterialCostRequest, MaterialCostResponse, MaterialTypesAdd, MessageResponse,
    StockMaterialCreate, StockMaterialResponse, StockMaterialUpdate,
)
from woodflow.services.access_service import TenantContext
from woodflow.services.material_service import MaterialService
from woodflow.services.notification_service import NotificationService, catalogue_event

router = APIRouter(
    prefix="/materials",
    tags=["Materials"],
    dependencies=[Depends(PermissionChecker(["database"]))]
)


def _announce(db: Session, ctx: TenantContext, action: str, material_id: int, name: str):
    NotificationService(db).notify_colleagues(ctx, catalogue_event("material", action, material_id, name))


@router.get("", response_model=List[StockMaterialResponse])
async def list_materials(
    category: Optional[str] = None,
    search: Optional[str] = None,
    active_only: bool = False,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return MaterialService(db).list(ctx.company_id, category, search, active_only, skip, limit)


@router.post("", response_model=StockMaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(
    data: StockMaterialCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    material = MaterialService(db).create(ctx, data)
    db.commit()
    _announce(db, ctx, "created", material.id, material.name)
    return material


@router.get("/{material_id}", response_model=StockMaterialResponse)
async def get_material(material_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return MaterialService(db).get_by_id(material_id, ctx.company_id)


@router.put("/{material_id}", response_model=StockMaterialResponse)
async def update_material(
    material_id: int,
    data: StockMaterialUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    material = MaterialService(db).update(material_id, ctx, data)
    db.commit()
    _announce(db, ctx, "updated", material.id, material.name)
    return material


@router.post("/{material_id}/types", response_model=StockMaterialResponse)
async def add_material_types(
    material_id: int,
    data: MaterialTypesAdd,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    material = MaterialService(db).add_types(material_id, ctx, data)
    db.commit()
    _announce(db, ctx, "updated", material.id, material.name)
    return material


@router.post("/{material_id}/calculate-cost", response_model=MaterialCostResponse)
async def calculate_material_cost(
    material_id: int,
    data: MaterialCostRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Cost of cutting the requested pieces from standard sheets"""
    return MaterialService(db).calculate_cost(material_id, ctx.company_id, data)


@router.delete("/{material_id}", response_model=MessageResponse)
async def delete_material(material_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    material = MaterialService(db).delete(material_id, ctx)
    name = material.name
    db.commit()
    _announce(db, ctx, "deleted", material_id, name)
    return {"message": f"Material {name} deleted"}
