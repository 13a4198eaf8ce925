"""
Payment Service - append-only order payments and their receipts
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import List, Tuple
from sqlalchemy import update
from sqlalchemy.orm import Session

from woodflow.core.exceptions import InvalidInput, InvalidStatus, NotFound, OverLimit
from woodflow.models import Order, OrderPayment, OrderStatus, Receipt
from woodflow.schemas import PaymentCreate
from woodflow.services import pricing
from woodflow.services.access_service import TenantContext
from woodflow.services.receipt_service import ReceiptService

logger = logging.getLogger(__name__)

# Half a cent of slack so float-backed NUMERIC storage (SQLite) compares cleanly
TOLERANCE = Decimal("0.005")


class PaymentService:
    def __init__(self, db: Session):
        self.db = db

    def _increment_paid(self, order_id: int, company_id: int, amount: Decimal) -> bool:
        """
        Add ``amount`` to amount_paid in one conditional UPDATE.

        The overpayment and cancellation checks run inside the statement
        against the current row, so concurrent payments cannot both pass
        against a stale amount_paid.
        """
        result = self.db.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.company_id == company_id,
                Order.status != OrderStatus.CANCELLED.value,
                Order.amount_paid + amount <= Order.total_amount + TOLERANCE,
            )
            .values(
                amount_paid=Order.amount_paid + amount,
                balance=Order.total_amount - (Order.amount_paid + amount),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    def _explain_rejection(self, order_id: int, company_id: int):
        order = self.db.query(Order).filter(
            Order.id == order_id,
            Order.company_id == company_id
        ).populate_existing().first()
        if not order:
            return NotFound("Order not found")
        if order.status == OrderStatus.CANCELLED.value:
            return InvalidStatus("Cannot add payment to a cancelled order")
        remaining = pricing.to_decimal(order.total_amount) - pricing.to_decimal(order.amount_paid)
        return OverLimit(remaining=max(remaining, Decimal("0")))

    def add_payment(self, order_id: int, ctx: TenantContext, data: PaymentCreate) -> Tuple[Order, Receipt]:
        """
        Record a payment, then its receipt, in the caller's transaction.
        Nothing here sends mail or notifications.
        """
        amount = pricing.round2(data.amount)
        if amount <= 0:
            raise InvalidInput("Payment amount must be greater than zero")

        if not self._increment_paid(order_id, ctx.company_id, amount):
            raise self._explain_rejection(order_id, ctx.company_id)

        order = self.db.query(Order).filter(
            Order.id == order_id,
            Order.company_id == ctx.company_id
        ).populate_existing().one()
        order.amount_paid = pricing.round2(order.amount_paid)
        order.balance = pricing.round2(pricing.to_decimal(order.total_amount) - order.amount_paid)
        order.payment_status = pricing.payment_status(order.amount_paid, order.total_amount)

        payment = OrderPayment(
            amount=amount,
            payment_date=data.payment_date or datetime.utcnow(),
            payment_method=data.payment_method,
            reference=data.reference,
            notes=data.notes,
            recorded_by=ctx.user_id,
        )
        order.payments.append(payment)
        self.db.flush()

        receipt = ReceiptService(self.db).create_for_payment(order, payment, ctx)
        logger.info(
            "Payment %s on order %s: paid %s of %s",
            amount, order.order_number, order.amount_paid, order.total_amount
        )
        return order, receipt

    def list_payments(self, order_id: int, company_id: int) -> List[OrderPayment]:
        exists = self.db.query(Order.id).filter(
            Order.id == order_id,
            Order.company_id == company_id
        ).first()
        if not exists:
            raise NotFound("Order not found")
        return self.db.query(OrderPayment).filter(
            OrderPayment.order_id == order_id
        ).order_by(OrderPayment.id).all()
