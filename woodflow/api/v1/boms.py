"""
Bills of Materials API Routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.schemas import (
    BOMCreate, BOMUpdate, BOMResponse, MaterialCreate, AdditionalCostCreate, MessageResponse,
)
from woodflow.services.access_service import TenantContext
from woodflow.services.bom_service import BOMService
from woodflow.services.notification_service import NotificationService, document_event

router = APIRouter(prefix="/boms", tags=["BOMs"], dependencies=[Depends(PermissionChecker(["boms"]))])


def _announce_update(db: Session, ctx: TenantContext, bom):
    NotificationService(db).notify_colleagues(ctx, document_event("bom", "updated", bom.id, bom.bom_number))


@router.get("", response_model=List[BOMResponse])
async def list_boms(
    quotation_id: Optional[int] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return BOMService(db).list(ctx.company_id, quotation_id, search, skip, limit)


@router.post("", response_model=BOMResponse, status_code=status.HTTP_201_CREATED)
async def create_bom(data: BOMCreate, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    bom = BOMService(db).create(ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, document_event("bom", "created", bom.id, bom.bom_number))
    return bom


@router.get("/{bom_id}", response_model=BOMResponse)
async def get_bom(bom_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return BOMService(db).get_by_id(bom_id, ctx.company_id)


@router.put("/{bom_id}", response_model=BOMResponse)
async def update_bom(
    bom_id: int,
    data: BOMUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Update a BOM. Pricing is recomputed only when materials, costs or pricing are sent."""
    bom = BOMService(db).update(bom_id, ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, document_event("bom", "updated", bom.id, bom.bom_number))
    return bom


@router.post("/{bom_id}/materials", response_model=BOMResponse, status_code=status.HTTP_201_CREATED)
async def add_material(
    bom_id: int,
    data: MaterialCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    bom = BOMService(db).add_material(bom_id, ctx, data)
    db.commit()
    _announce_update(db, ctx, bom)
    return bom


@router.delete("/{bom_id}/materials/{material_id}", response_model=BOMResponse)
async def delete_material(
    bom_id: int,
    material_id: int,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    bom = BOMService(db).delete_material(bom_id, material_id, ctx)
    db.commit()
    _announce_update(db, ctx, bom)
    return bom


@router.post("/{bom_id}/additional-costs", response_model=BOMResponse, status_code=status.HTTP_201_CREATED)
async def add_additional_cost(
    bom_id: int,
    data: AdditionalCostCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    bom = BOMService(db).add_additional_cost(bom_id, ctx, data)
    db.commit()
    _announce_update(db, ctx, bom)
    return bom


@router.delete("/{bom_id}/additional-costs/{cost_id}", response_model=BOMResponse)
async def delete_additional_cost(
    bom_id: int,
    cost_id: int,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    bom = BOMService(db).delete_additional_cost(bom_id, cost_id, ctx)
    db.commit()
    _announce_update(db, ctx, bom)
    return bom


@router.delete("/{bom_id}", response_model=MessageResponse)
async def delete_bom(bom_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    bom = BOMService(db).delete(bom_id, ctx)
    number = bom.bom_number
    db.commit()
    NotificationService(db).notify_colleagues(ctx, document_event("bom", "deleted", bom_id, number))
    return {"message": f"BOM {number} deleted"}
