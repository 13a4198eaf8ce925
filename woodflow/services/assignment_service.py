"""
Assignment Service - delegating orders to company staff
"""
from datetime import datetime
from typing import Optional, Tuple
from sqlalchemy.orm import Session

from woodflow.core.exceptions import Forbidden, InvalidInput, InvalidStatus, NotFound
from woodflow.models import Membership, Order, OrderStatus
from woodflow.services.access_service import TenantContext, require_owner_or_admin
from woodflow.services.order_service import OrderService


class AssignmentService:
    def __init__(self, db: Session):
        self.db = db

    def assign(self, order_id: int, ctx: TenantContext, staff_id: int, notes: Optional[str] = None) -> Order:
        require_owner_or_admin(ctx)
        order = OrderService(self.db).get_by_id(order_id, ctx.company_id)
        if order.status == OrderStatus.CANCELLED.value:
            raise InvalidStatus("Cannot assign a cancelled order")

        membership = self.db.query(Membership).filter(
            Membership.user_id == staff_id,
            Membership.company_id == ctx.company_id
        ).first()
        if not membership:
            raise NotFound("Staff member not found in this company")
        if not membership.access_granted:
            raise Forbidden("Staff member does not have access to this company")

        order.assigned_to = staff_id
        order.assigned_by = ctx.user_id
        order.assigned_at = datetime.utcnow()
        order.assignment_notes = notes
        self.db.flush()
        return order

    def unassign(self, order_id: int, ctx: TenantContext) -> Tuple[Order, int]:
        """Clear all assignment fields; returns the order and the previous assignee."""
        require_owner_or_admin(ctx)
        order = OrderService(self.db).get_by_id(order_id, ctx.company_id)
        if order.assigned_to is None:
            raise InvalidInput("Order is not assigned")

        previous = order.assigned_to
        order.assigned_to = None
        order.assigned_by = None
        order.assigned_at = None
        order.assignment_notes = None
        self.db.flush()
        return order, previous
