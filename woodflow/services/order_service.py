"""
Order Service - orders converted from quotations
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from woodflow.core.config import settings
from woodflow.core.exceptions import Conflict, InvalidInput, InvalidStatus, NotFound
from woodflow.models import Order, OrderItem, OrderStatus, QuotationStatus
from woodflow.schemas import OrderCreate, OrderUpdate
from woodflow.services import pricing
from woodflow.services.access_service import TenantContext
from woodflow.services.bom_service import BOMService
from woodflow.services.quotation_service import QuotationService
from woodflow.services.sequence_service import next_number

logger = logging.getLogger(__name__)

ORDER_STATUSES = {status.value for status in OrderStatus}
CONVERTIBLE_QUOTATION_STATUSES = {QuotationStatus.APPROVED.value, QuotationStatus.SENT.value}


class OrderService:
    def __init__(self, db: Session):
        self.db = db

    def _query(self):
        return self.db.query(Order).options(selectinload(Order.items), selectinload(Order.payments))

    def get_by_id(self, order_id: int, company_id: int) -> Order:
        order = self._query().filter(
            Order.id == order_id,
            Order.company_id == company_id
        ).first()
        if not order:
            raise NotFound("Order not found")
        return order

    def get_by_quotation(self, quotation_id: int, company_id: int) -> Optional[Order]:
        return self.db.query(Order).filter(
            Order.quotation_id == quotation_id,
            Order.company_id == company_id
        ).first()

    def list(self, company_id: int, status: Optional[str] = None, payment_status: Optional[str] = None,
             assigned_to: Optional[int] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[Order]:
        query = self._query().filter(Order.company_id == company_id)
        if status:
            query = query.filter(Order.status == status)
        if payment_status:
            query = query.filter(Order.payment_status == payment_status)
        if assigned_to is not None:
            query = query.filter(Order.assigned_to == assigned_to)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Order.client_name.ilike(pattern),
                Order.order_number.ilike(pattern),
                Order.quotation_number.ilike(pattern),
            ))
        return query.order_by(Order.created_at.desc(), Order.id.desc()).offset(skip).limit(limit).all()

    def create_from_quotation(self, ctx: TenantContext, data: OrderCreate) -> Order:
        """
        Snapshot the quotation into a new order and mark the quotation completed.

        The pre-check gives a friendly error; the unique constraint on
        ``orders.quotation_id`` decides when two conversions race.
        """
        quotation = QuotationService(self.db).get_by_id(data.quotation_id, ctx.company_id)

        if quotation.status not in CONVERTIBLE_QUOTATION_STATUSES:
            raise InvalidStatus(
                f"Only approved or sent quotations can be converted to orders (current: {quotation.status})"
            )
        if self.get_by_quotation(quotation.id, ctx.company_id):
            raise Conflict("An order already exists for this quotation")
        if data.start_date and data.end_date and data.end_date < data.start_date:
            raise InvalidInput("End date cannot be before start date")

        total_amount = pricing.to_decimal(quotation.final_total)
        order = Order(
            company_id=ctx.company_id,
            user_id=ctx.user_id,
            order_number=next_number(self.db, "order"),
            quotation_id=quotation.id,
            quotation_number=quotation.quotation_number,
            client_name=quotation.client_name,
            client_address=quotation.client_address,
            nearest_bus_stop=quotation.nearest_bus_stop,
            phone_number=quotation.phone_number,
            email=quotation.email,
            description=quotation.description,
            items=[OrderItem(**item.snapshot()) for item in quotation.items],
            boms=BOMService(self.db).snapshots_for_quotation(quotation.id, ctx.company_id),
            service=dict(quotation.service) if quotation.service else None,
            discount=quotation.discount,
            total_cost=quotation.total_cost,
            total_selling_price=quotation.total_selling_price,
            discount_amount=quotation.discount_amount,
            total_amount=total_amount,
            amount_paid=Decimal("0.00"),
            balance=total_amount,
            currency=data.currency or settings.DEFAULT_CURRENCY,
            payment_status=pricing.payment_status(0, total_amount),
            status=OrderStatus.PENDING.value,
            start_date=data.start_date,
            end_date=data.end_date,
            notes=data.notes,
            internal_notes=data.internal_notes,
        )
        self.db.add(order)
        quotation.status = QuotationStatus.COMPLETED.value

        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            logger.info("Concurrent conversion of quotation %s lost the race", data.quotation_id)
            raise Conflict("An order already exists for this quotation")
        return order

    def update(self, order_id: int, ctx: TenantContext, data: OrderUpdate) -> Order:
        order = self.get_by_id(order_id, ctx.company_id)
        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidStatus("Cancelled orders cannot be modified")

        update_data = data.model_dump(exclude_unset=True)
        start = update_data.get("start_date", order.start_date)
        end = update_data.get("end_date", order.end_date)
        if start and end and end < start:
            raise InvalidInput("End date cannot be before start date")

        for key, value in update_data.items():
            setattr(order, key, value)
        self.db.flush()
        return order

    def update_status(self, order_id: int, ctx: TenantContext, status: str) -> Order:
        if status not in ORDER_STATUSES:
            raise InvalidStatus(f"Invalid status '{status}'. Allowed: {', '.join(sorted(ORDER_STATUSES))}")
        order = self.get_by_id(order_id, ctx.company_id)
        order.status = status
        if status == OrderStatus.COMPLETED.value and order.completed_date is None:
            order.completed_date = datetime.utcnow()
        self.db.flush()
        return order

    def delete(self, order_id: int, ctx: TenantContext) -> Order:
        order = self.get_by_id(order_id, ctx.company_id)
        self.db.delete(order)
        self.db.flush()
        return order

    def stats(self, company_id: int) -> dict:
        by_status = dict(
            self.db.query(Order.status, func.count(Order.id))
            .filter(Order.company_id == company_id)
            .group_by(Order.status).all()
        )
        by_payment = dict(
            self.db.query(Order.payment_status, func.count(Order.id))
            .filter(Order.company_id == company_id)
            .group_by(Order.payment_status).all()
        )
        revenue, collected, outstanding, cost = self.db.query(
            func.coalesce(func.sum(Order.total_amount), 0),
            func.coalesce(func.sum(Order.amount_paid), 0),
            func.coalesce(func.sum(Order.balance), 0),
            func.coalesce(func.sum(Order.total_cost), 0),
        ).filter(
            Order.company_id == company_id,
            Order.status != OrderStatus.CANCELLED.value
        ).one()

        revenue = pricing.to_decimal(revenue)
        cost = pricing.to_decimal(cost)
        return {
            "total_orders": sum(by_status.values()),
            "by_status": {s: by_status.get(s, 0) for s in sorted(ORDER_STATUSES)},
            "by_payment_status": {s: by_payment.get(s, 0) for s in ("unpaid", "partial", "paid")},
            "total_revenue": pricing.round2(revenue),
            "total_collected": pricing.round2(pricing.to_decimal(collected)),
            "total_outstanding": pricing.round2(pricing.to_decimal(outstanding)),
            "total_cost": pricing.round2(cost),
            "profit_margin": pricing.safe_percentage(revenue - cost, revenue),
        }
