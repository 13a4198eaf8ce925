"""
Quotations API Routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.schemas import (
    QuotationCreate, QuotationUpdate, QuotationResponse, LineItemCreate, StatusUpdate, BOMResponse, MessageResponse,
)
from woodflow.services.access_service import TenantContext
from woodflow.services.notification_service import NotificationService, document_event
from woodflow.services.quotation_service import QuotationService

router = APIRouter(
    prefix="/quotations",
    tags=["Quotations"],
    dependencies=[Depends(PermissionChecker(["quotation"]))]
)


def _announce(db: Session, ctx: TenantContext, action: str, quotation_id: int, number: str,
              client_name: str, status: Optional[str] = None):
    NotificationService(db).notify_colleagues(
        ctx, document_event("quotation", action, quotation_id, number, client_name, status)
    )


@router.get("", response_model=List[QuotationResponse])
async def list_quotations(
    status: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return QuotationService(db).list(ctx.company_id, status, search, skip, limit)


@router.post("", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def create_quotation(
    data: QuotationCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Create a quotation; totals are computed from its items"""
    quotation = QuotationService(db).create(ctx, data)
    db.commit()
    _announce(db, ctx, "created", quotation.id, quotation.quotation_number, quotation.client_name)
    return quotation


@router.get("/{quotation_id}", response_model=QuotationResponse)
async def get_quotation(quotation_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return QuotationService(db).get_by_id(quotation_id, ctx.company_id)


@router.put("/{quotation_id}", response_model=QuotationResponse)
async def update_quotation(
    quotation_id: int,
    data: QuotationUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    quotation = QuotationService(db).update(quotation_id, ctx, data)
    db.commit()
    _announce(db, ctx, "updated", quotation.id, quotation.quotation_number, quotation.client_name)
    return quotation


@router.patch("/{quotation_id}/status", response_model=QuotationResponse)
async def update_quotation_status(
    quotation_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    quotation = QuotationService(db).update_status(quotation_id, ctx, data.status)
    db.commit()
    _announce(db, ctx, "status_changed", quotation.id, quotation.quotation_number,
              quotation.client_name, quotation.status)
    return quotation


@router.post("/{quotation_id}/items", response_model=QuotationResponse, status_code=status.HTTP_201_CREATED)
async def add_quotation_item(
    quotation_id: int,
    data: LineItemCreate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    quotation = QuotationService(db).add_item(quotation_id, ctx, data)
    db.commit()
    _announce(db, ctx, "updated", quotation.id, quotation.quotation_number, quotation.client_name)
    return quotation


@router.delete("/{quotation_id}/items/{item_id}", response_model=QuotationResponse)
async def delete_quotation_item(
    quotation_id: int,
    item_id: int,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    quotation = QuotationService(db).delete_item(quotation_id, item_id, ctx)
    db.commit()
    _announce(db, ctx, "updated", quotation.id, quotation.quotation_number, quotation.client_name)
    return quotation


@router.get("/{quotation_id}/boms", response_model=List[BOMResponse])
async def list_quotation_boms(quotation_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return QuotationService(db).boms_for_quotation(quotation_id, ctx)


@router.delete("/{quotation_id}", response_model=MessageResponse)
async def delete_quotation(quotation_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    quotation = QuotationService(db).delete(quotation_id, ctx)
    number, client_name = quotation.quotation_number, quotation.client_name
    db.commit()
    _announce(db, ctx, "deleted", quotation_id, number, client_name)
    return {"message": f"Quotation {number} deleted"}
