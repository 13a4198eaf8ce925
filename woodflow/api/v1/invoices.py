"""
Invoices API Routes
"""
import logging
from io import BytesIO
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from woodflow.core import mailer
from woodflow.core.database import get_db
from woodflow.core.documents import render_invoice_html, render_invoice_pdf
from woodflow.core.exceptions import InvalidInput
from woodflow.core.security import PermissionChecker, get_tenant_context
from woodflow.models import Invoice
from woodflow.schemas import (
    CompanyResponse, InvoiceCreate, InvoiceUpdate, InvoiceResponse, InvoicePaymentUpdate, InvoiceStats, StatusUpdate,
    MessageResponse,
)
from woodflow.services.access_service import TenantContext
from woodflow.services.company_service import CompanyService
from woodflow.services.invoice_service import InvoiceService
from woodflow.services.notification_service import NotificationService, document_event

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["Invoices"], dependencies=[Depends(PermissionChecker(["invoice"]))])


def _snapshot(db: Session, invoice: Invoice, company_id: int):
    """Detach what the email needs from the session; rendering happens later."""
    if not invoice.email:
        raise InvalidInput("Invoice has no client email address")
    db.refresh(invoice)
    company = CompanyService(db).get_by_id(company_id)
    return InvoiceResponse.model_validate(invoice), CompanyResponse.model_validate(company)


def _email_invoice(invoice: InvoiceResponse, company: CompanyResponse):
    try:
        html = render_invoice_html(invoice, company)
        attachments = []
        try:
            attachments.append((f"{invoice.invoice_number}.pdf", render_invoice_pdf(invoice, company), "application/pdf"))
        except Exception:
            logger.exception("PDF rendering failed for %s, sending HTML only", invoice.invoice_number)
        mailer.send_email(
            to=invoice.email,
            subject=f"Invoice {invoice.invoice_number} from {company.name}",
            text=f"Please find invoice {invoice.invoice_number} for {invoice.currency} {invoice.final_total:,.2f}.",
            html=html,
            attachments=attachments,
        )
    except Exception:
        logger.exception("Emailing invoice %s failed", invoice.invoice_number)


@router.get("", response_model=List[InvoiceResponse])
async def list_invoices(
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return InvoiceService(db).list(ctx.company_id, status, payment_status, search, skip, limit)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    data: InvoiceCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Issue an invoice from a quotation, or from an order's quotation"""
    invoice = InvoiceService(db).create(ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(
        ctx, document_event("invoice", "created", invoice.id, invoice.invoice_number, invoice.client_name)
    )
    if data.send_email and invoice.email:
        background_tasks.add_task(_email_invoice, *_snapshot(db, invoice, ctx.company_id))
    return invoice


@router.get("/stats", response_model=InvoiceStats)
async def get_invoice_stats(db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return InvoiceService(db).stats(ctx.company_id)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
async def get_invoice(invoice_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return InvoiceService(db).get_by_id(invoice_id, ctx.company_id)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice_id: int,
    data: InvoiceUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    invoice = InvoiceService(db).update(invoice_id, ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(
        ctx, document_event("invoice", "updated", invoice.id, invoice.invoice_number, invoice.client_name)
    )
    return invoice


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
async def update_invoice_status(
    invoice_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    invoice = InvoiceService(db).update_status(invoice_id, ctx, data.status)
    db.commit()
    NotificationService(db).notify_colleagues(
        ctx, document_event(
            "invoice", "status_changed", invoice.id, invoice.invoice_number, invoice.client_name, invoice.status
        )
    )
    return invoice


@router.put("/{invoice_id}/payment", response_model=InvoiceResponse)
async def update_invoice_payment(
    invoice_id: int,
    data: InvoicePaymentUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Set the total amount paid on the invoice"""
    invoice = InvoiceService(db).update_payment(invoice_id, ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(
        ctx, document_event("invoice", "updated", invoice.id, invoice.invoice_number, invoice.client_name)
    )
    return invoice


@router.get("/{invoice_id}/pdf")
async def download_invoice_pdf(invoice_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    invoice = InvoiceService(db).get_by_id(invoice_id, ctx.company_id)
    company = CompanyService(db).get_by_id(ctx.company_id)
    content = render_invoice_pdf(invoice, company)
    return StreamingResponse(
        BytesIO(content),
        media_type="application/pdf",
        headers={"Content-Disposition": f"attachment; filename={invoice.invoice_number}.pdf"}
    )


@router.post("/{invoice_id}/send-email", response_model=MessageResponse)
async def email_invoice(
    invoice_id: int,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    invoice = InvoiceService(db).get_by_id(invoice_id, ctx.company_id)
    background_tasks.add_task(_email_invoice, *_snapshot(db, invoice, ctx.company_id))
    return {"message": f"Invoice {invoice.invoice_number} queued for {invoice.email}"}


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(invoice_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    invoice = InvoiceService(db).delete(invoice_id, ctx)
    number, client_name = invoice.invoice_number, invoice.client_name
    db.commit()
    NotificationService(db).notify_colleagues(ctx, document_event("invoice", "deleted", invoice_id, number, client_name))
    return {"message": f"Invoice {number} deleted"}
