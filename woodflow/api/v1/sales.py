"""
Sales API Routes - clients seen across quotations
"""
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.schemas import ClientChangeResult, ClientDeleteRequest, ClientResponse, ClientUpdateRequest
from woodflow.services.access_service import TenantContext
from woodflow.services.notification_service import NotificationService, client_event
from woodflow.services.quotation_service import QuotationService

router = APIRouter(prefix="/sales", tags=["Sales"], dependencies=[Depends(PermissionChecker(["sales"]))])


@router.get("/clients", response_model=List[ClientResponse])
async def list_clients(db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return QuotationService(db).clients(ctx.company_id)


@router.put("/clients", response_model=ClientChangeResult)
async def update_client(
    data: ClientUpdateRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Change a client's details on all of their quotations"""
    result = QuotationService(db).update_client(ctx, data.match, data.update)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, client_event("updated", result["client_name"], result["quotations"]))
    return result


@router.delete("/clients", response_model=ClientChangeResult)
async def delete_client(
    data: ClientDeleteRequest,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Remove a client together with their quotations"""
    result = QuotationService(db).delete_client(ctx, data.match)
    db.commit()
    NotificationService(db).notify_colleagues(ctx, client_event("deleted", result["client_name"], result["quotations"]))
    return result
