"""
Overhead Costs API Routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.schemas import OverheadCostCreate, OverheadCostUpdate, OverheadCostResponse, MessageResponse
from woodflow.services.access_service import TenantContext
from woodflow.services.notification_service import NotificationService, catalogue_event
from woodflow.services.overhead_service import OverheadService

router = APIRouter(
    prefix="/overhead-costs",
    tags=["Overhead Costs"],
    dependencies=[Depends(PermissionChecker(["database"]))]
)


@router.get("", response_model=List[OverheadCostResponse])
async def list_overhead_costs(
    period: Optional[str] = None,
    category: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return OverheadService(db).list(ctx.company_id, period, category)


@router.get("/summary")
async def overhead_summary(db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    """Total overhead per period"""
    return OverheadService(db).totals_by_period(ctx.company_id)


@router.post("", response_model=OverheadCostResponse, status_code=status.HTTP_201_CREATED)
async def create_overhead_cost(
    data: OverheadCostCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    cost = OverheadService(db).create(ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, catalogue_event("overhead_cost", "created", cost.id, cost.category))
    return cost


@router.get("/{cost_id}", response_model=OverheadCostResponse)
async def get_overhead_cost(cost_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return OverheadService(db).get_by_id(cost_id, ctx.company_id)


@router.put("/{cost_id}", response_model=OverheadCostResponse)
async def update_overhead_cost(
    cost_id: int,
    data: OverheadCostUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    cost = OverheadService(db).update(cost_id, ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, catalogue_event("overhead_cost", "updated", cost.id, cost.category))
    return cost


@router.delete("/{cost_id}", response_model=MessageResponse)
async def delete_overhead_cost(cost_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    cost = OverheadService(db).delete(cost_id, ctx)
    category = cost.category
    db.commit()
    NotificationService(db).notify_colleagues(ctx, catalogue_event("overhead_cost", "deleted", cost_id, category))
    return {"message": "Overhead cost deleted"}
