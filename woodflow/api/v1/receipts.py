"""
Receipts API Routes

Receipts are written by the payment ledger only, so this router is read-only.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.schemas import ReceiptResponse
from woodflow.services.access_service import TenantContext
from woodflow.services.receipt_service import ReceiptService

router = APIRouter(prefix="/receipts", tags=["Receipts"], dependencies=[Depends(PermissionChecker(["receipts"]))])


@router.get("", response_model=List[ReceiptResponse])
async def list_receipts(
    order_id: Optional[int] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return ReceiptService(db).list(ctx.company_id, order_id, search, skip, limit)


@router.get("/{receipt_id}", response_model=ReceiptResponse)
async def get_receipt(receipt_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return ReceiptService(db).get_by_id(receipt_id, ctx.company_id)
