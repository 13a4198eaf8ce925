"""
Receipt Service - immutable per-payment receipts
"""
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import or_
from sqlalchemy.orm import Session

from woodflow.core.exceptions import NotFound
from woodflow.models import Invoice, Order, OrderPayment, Receipt
from woodflow.services.access_service import TenantContext
from woodflow.services.sequence_service import next_number


def _item_json(item) -> dict:
    return {key: str(value) if isinstance(value, Decimal) else value for key, value in item.snapshot().items()}


class ReceiptService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, receipt_id: int, company_id: int) -> Receipt:
        receipt = self.db.query(Receipt).filter(
            Receipt.id == receipt_id,
            Receipt.company_id == company_id
        ).first()
        if not receipt:
            raise NotFound("Receipt not found")
        return receipt

    def list(self, company_id: int, order_id: Optional[int] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[Receipt]:
        query = self.db.query(Receipt).filter(Receipt.company_id == company_id)
        if order_id is not None:
            query = query.filter(Receipt.order_id == order_id)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Receipt.receipt_number.ilike(pattern),
                Receipt.client_name.ilike(pattern),
                Receipt.order_number.ilike(pattern),
            ))
        return query.order_by(Receipt.created_at.desc(), Receipt.id.desc()).offset(skip).limit(limit).all()

    def get_for_payment(self, order_id: int, payment_id: int, company_id: int) -> Receipt:
        receipt = self.db.query(Receipt).join(OrderPayment, Receipt.payment_id == OrderPayment.id).filter(
            OrderPayment.id == payment_id,
            OrderPayment.order_id == order_id,
            Receipt.company_id == company_id
        ).first()
        if not receipt:
            raise NotFound("Receipt not found")
        return receipt

    def create_for_payment(self, order: Order, payment: OrderPayment, ctx: TenantContext) -> Receipt:
        """
        Snapshot of one payment. ``amount_paid`` is this payment's amount and
        ``balance`` is what remains on the order after it.
        """
        invoice_number = None
        if order.invoice_id:
            invoice_number = self.db.query(Invoice.invoice_number).filter(
                Invoice.id == order.invoice_id,
                Invoice.company_id == ctx.company_id
            ).scalar()

        receipt = Receipt(
            company_id=ctx.company_id,
            user_id=ctx.user_id,
            receipt_number=next_number(self.db, "receipt"),
            payment_id=payment.id,
            order_id=order.id,
            order_number=order.order_number,
            invoice_id=order.invoice_id,
            invoice_number=invoice_number,
            quotation_id=order.quotation_id,
            quotation_number=order.quotation_number,
            client_name=order.client_name,
            client_address=order.client_address,
            nearest_bus_stop=order.nearest_bus_stop,
            phone_number=order.phone_number,
            email=order.email,
            items=[_item_json(item) for item in order.items],
            subtotal=order.total_selling_price,
            discount=order.discount,
            discount_amount=order.discount_amount,
            total_amount=order.total_amount,
            amount_paid=payment.amount,
            balance=order.balance,
            currency=order.currency,
            payment_method=payment.payment_method,
            reference=payment.reference,
            notes=payment.notes,
            receipt_date=payment.payment_date,
        )
        self.db.add(receipt)
        self.db.flush()
        return receipt
