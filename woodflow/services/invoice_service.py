"""
Invoice Service - invoices issued from quotations
"""
import logging
from datetime import date, datetime, timedelta
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from woodflow.core.config import settings
from woodflow.core.exceptions import Conflict, InvalidStatus, NotFound, OverLimit
from woodflow.models import Invoice, InvoiceItem, InvoiceStatus, Order, QuotationStatus
from woodflow.schemas import InvoiceCreate, InvoicePaymentUpdate, InvoiceUpdate
from woodflow.services import pricing
from woodflow.services.access_service import TenantContext
from woodflow.services.order_service import OrderService
from woodflow.services.quotation_service import QuotationService
from woodflow.services.sequence_service import next_number

logger = logging.getLogger(__name__)

INVOICE_STATUSES = {status.value for status in InvoiceStatus}
INVOICEABLE_QUOTATION_STATUSES = {
    QuotationStatus.APPROVED.value,
    QuotationStatus.SENT.value,
    QuotationStatus.DRAFT.value,
}


class InvoiceService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, invoice_id: int, company_id: int) -> Invoice:
        invoice = self.db.query(Invoice).options(selectinload(Invoice.items)).filter(
            Invoice.id == invoice_id,
            Invoice.company_id == company_id
        ).first()
        if not invoice:
            raise NotFound("Invoice not found")
        return invoice

    def list(self, company_id: int, status: Optional[str] = None, payment_status: Optional[str] = None,
             search: Optional[str] = None, skip: int = 0, limit: int = 100) -> List[Invoice]:
        query = self.db.query(Invoice).options(selectinload(Invoice.items)).filter(
            Invoice.company_id == company_id
        )
        if status:
            query = query.filter(Invoice.status == status)
        if payment_status:
            query = query.filter(Invoice.payment_status == payment_status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Invoice.client_name.ilike(pattern),
                Invoice.invoice_number.ilike(pattern),
                Invoice.quotation_number.ilike(pattern),
            ))
        return query.order_by(Invoice.created_at.desc(), Invoice.id.desc()).offset(skip).limit(limit).all()

    def create(self, ctx: TenantContext, data: InvoiceCreate) -> Invoice:
        """
        Copy the quotation's financial snapshot into a new invoice.

        When an order is given, the invoice is issued from that order's
        quotation (already completed by the conversion) and linked back to it.
        """
        order: Optional[Order] = None
        if data.order_id is not None:
            order = OrderService(self.db).get_by_id(data.order_id, ctx.company_id)
            if order.quotation_id is None:
                raise NotFound("The quotation for this order no longer exists")
            if data.quotation_id is not None and data.quotation_id != order.quotation_id:
                raise Conflict("Order and quotation do not match")
            quotation_id = order.quotation_id
        else:
            quotation_id = data.quotation_id

        quotation = QuotationService(self.db).get_by_id(quotation_id, ctx.company_id)
        if order is None and quotation.status not in INVOICEABLE_QUOTATION_STATUSES:
            raise InvalidStatus(
                f"Quotation must be draft, sent or approved to be invoiced (current: {quotation.status})"
            )
        if self.db.query(Invoice.id).filter(Invoice.quotation_id == quotation.id).first():
            raise Conflict("An invoice already exists for this quotation")

        final_total = pricing.to_decimal(quotation.final_total)
        invoice = Invoice(
            company_id=ctx.company_id,
            user_id=ctx.user_id,
            invoice_number=next_number(self.db, "invoice"),
            quotation_id=quotation.id,
            quotation_number=quotation.quotation_number,
            order_id=order.id if order else None,
            client_name=quotation.client_name,
            client_address=quotation.client_address,
            nearest_bus_stop=quotation.nearest_bus_stop,
            phone_number=quotation.phone_number,
            email=quotation.email,
            description=quotation.description,
            items=[InvoiceItem(**item.snapshot()) for item in quotation.items],
            service=dict(quotation.service) if quotation.service else None,
            discount=quotation.discount,
            total_cost=quotation.total_cost,
            total_selling_price=quotation.total_selling_price,
            discount_amount=quotation.discount_amount,
            final_total=final_total,
            amount_paid=Decimal("0.00"),
            balance=final_total,
            currency=order.currency if order else settings.DEFAULT_CURRENCY,
            payment_status=pricing.payment_status(0, final_total),
            status=InvoiceStatus.PENDING.value,
            invoice_date=datetime.utcnow(),
            due_date=data.due_date or date.today() + timedelta(days=settings.INVOICE_DUE_DAYS),
            notes=data.notes,
        )
        self.db.add(invoice)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("An invoice already exists for this quotation")

        if order is not None:
            order.invoice_id = invoice.id
            self.db.flush()
        return invoice

    def update(self, invoice_id: int, ctx: TenantContext, data: InvoiceUpdate) -> Invoice:
        invoice = self.get_by_id(invoice_id, ctx.company_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise InvalidStatus("Cancelled invoices cannot be modified")
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(invoice, key, value)
        self.db.flush()
        return invoice

    def update_status(self, invoice_id: int, ctx: TenantContext, status: str) -> Invoice:
        if status not in INVOICE_STATUSES:
            raise InvalidStatus(f"Invalid status '{status}'. Allowed: {', '.join(sorted(INVOICE_STATUSES))}")
        invoice = self.get_by_id(invoice_id, ctx.company_id)
        invoice.status = status
        if status == InvoiceStatus.PAID.value and invoice.paid_date is None:
            invoice.paid_date = datetime.utcnow()
        self.db.flush()
        return invoice

    def update_payment(self, invoice_id: int, ctx: TenantContext, data: InvoicePaymentUpdate) -> Invoice:
        """Set the amount paid so far; full payment moves the invoice to paid."""
        invoice = self.get_by_id(invoice_id, ctx.company_id)
        if invoice.status == InvoiceStatus.CANCELLED.value:
            raise InvalidStatus("Cannot record payment on a cancelled invoice")

        total = pricing.to_decimal(invoice.final_total)
        amount_paid = pricing.round2(data.amount_paid)
        if amount_paid > total:
            raise OverLimit(
                remaining=total,
                message=f"Amount paid cannot exceed the invoice total of {total:.2f}",
            )

        invoice.amount_paid = amount_paid
        invoice.balance = pricing.round2(total - amount_paid)
        invoice.payment_status = pricing.payment_status(amount_paid, total)
        if data.notes is not None:
            invoice.notes = data.notes

        if invoice.payment_status == "paid":
            invoice.status = InvoiceStatus.PAID.value
            if invoice.paid_date is None:
                invoice.paid_date = datetime.utcnow()
        elif invoice.status == InvoiceStatus.PAID.value:
            invoice.status = InvoiceStatus.PENDING.value
        self.db.flush()
        return invoice

    def mark_overdue(self, company_id: Optional[int] = None, today: Optional[date] = None) -> int:
        """Flag unpaid pending invoices whose due date has passed"""
        query = self.db.query(Invoice).filter(
            Invoice.status == InvoiceStatus.PENDING.value,
            Invoice.due_date < (today or date.today())
        )
        if company_id is not None:
            query = query.filter(Invoice.company_id == company_id)
        updated = query.update({Invoice.status: InvoiceStatus.OVERDUE.value}, synchronize_session=False)
        self.db.flush()
        return updated

    def delete(self, invoice_id: int, ctx: TenantContext) -> Invoice:
        invoice = self.get_by_id(invoice_id, ctx.company_id)
        self.db.query(Order).filter(
            Order.invoice_id == invoice.id,
            Order.company_id == ctx.company_id
        ).update({Order.invoice_id: None}, synchronize_session=False)
        self.db.delete(invoice)
        self.db.flush()
        return invoice

    def stats(self, company_id: int) -> dict:
        by_status = dict(
            self.db.query(Invoice.status, func.count(Invoice.id))
            .filter(Invoice.company_id == company_id)
            .group_by(Invoice.status).all()
        )
        invoiced, paid, outstanding = self.db.query(
            func.coalesce(func.sum(Invoice.final_total), 0),
            func.coalesce(func.sum(Invoice.amount_paid), 0),
            func.coalesce(func.sum(Invoice.balance), 0),
        ).filter(
            Invoice.company_id == company_id,
            Invoice.status != InvoiceStatus.CANCELLED.value
        ).one()
        return {
            "total_invoices": sum(by_status.values()),
            "by_status": {s: by_status.get(s, 0) for s in sorted(INVOICE_STATUSES)},
            "total_invoiced": pricing.round2(invoiced),
            "total_paid": pricing.round2(paid),
            "total_outstanding": pricing.round2(outstanding),
        }
