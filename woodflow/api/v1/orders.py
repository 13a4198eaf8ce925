"""
Orders API Routes
"""
import logging
from io import BytesIO
from typing import List, Optional
from fastapi import APIRouter, BackgroundTasks, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from woodflow.core import mailer
from woodflow.core.database import get_db
from woodflow.core.documents import export_orders_xlsx
from woodflow.core.security import AnyPermissionChecker, OwnerOrAdmin, PermissionChecker, get_tenant_context
from woodflow.models import NotificationType, Receipt
from woodflow.schemas import (
    OrderCreate, OrderUpdate, OrderResponse, OrderStats, StatusUpdate, PaymentCreate, PaymentResponse,
    PaymentResult, ReceiptResponse, AssignRequest, MessageResponse, AssignmentEvent, PaymentEvent,
)
from woodflow.services.access_service import TenantContext
from woodflow.services.assignment_service import AssignmentService
from woodflow.services.notification_service import NotificationEvent, NotificationService, document_event
from woodflow.services.order_service import OrderService
from woodflow.services.payment_service import PaymentService
from woodflow.services.receipt_service import ReceiptService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/orders", tags=["Orders"])

order_access = [Depends(PermissionChecker(["order"]))]


def _receipt_text(receipt: Receipt, company_name: str) -> str:
    return (
        f"{company_name}\n"
        f"Receipt {receipt.receipt_number} for order {receipt.order_number}\n"
        f"Amount paid: {receipt.currency} {receipt.amount_paid:,.2f}\n"
        f"Order total: {receipt.currency} {receipt.total_amount:,.2f}\n"
        f"Balance: {receipt.currency} {receipt.balance:,.2f}\n"
        f"Thank you for your payment."
    )


def _send_receipt(email: Optional[str], phone: Optional[str], subject: str, text: str):
    """Best-effort delivery after the payment is committed"""
    if email:
        mailer.send_email(to=email, subject=subject, text=text)
    if phone:
        mailer.send_sms(phone, text)


@router.get("", response_model=List[OrderResponse], dependencies=order_access)
async def list_orders(
    status: Optional[str] = None,
    payment_status: Optional[str] = None,
    assigned_to: Optional[int] = None,
    search: Optional[str] = None,
    skip: int = 0,
    limit: int = 100,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return OrderService(db).list(ctx.company_id, status, payment_status, assigned_to, search, skip, limit)


@router.post("", response_model=OrderResponse, status_code=status.HTTP_201_CREATED, dependencies=order_access)
async def create_order(data: OrderCreate, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    """Convert a quotation into an order"""
    order = OrderService(db).create_from_quotation(ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(
        ctx, document_event("order", "created", order.id, order.order_number, order.client_name)
    )
    return order


@router.get("/mine", response_model=List[OrderResponse])
async def list_my_orders(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Orders assigned to the caller. Needs no module permission."""
    return OrderService(db).list(ctx.company_id, status=status, assigned_to=ctx.user_id)


@router.get("/stats", response_model=OrderStats, dependencies=order_access)
async def get_order_stats(db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return OrderService(db).stats(ctx.company_id)


@router.get("/export", dependencies=order_access)
async def export_orders(
    status: Optional[str] = None,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """Download the order register as an Excel workbook"""
    orders = OrderService(db).list(ctx.company_id, status=status, limit=10000)
    content = export_orders_xlsx(orders, ctx.company_name)
    return StreamingResponse(
        BytesIO(content),
        media_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        headers={"Content-Disposition": "attachment; filename=orders.xlsx"}
    )


@router.get("/{order_id}", response_model=OrderResponse, dependencies=order_access)
async def get_order(order_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return OrderService(db).get_by_id(order_id, ctx.company_id)


@router.put("/{order_id}", response_model=OrderResponse, dependencies=order_access)
async def update_order(
    order_id: int,
    data: OrderUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    order = OrderService(db).update(order_id, ctx, data)
    db.commit()
    NotificationService(db).notify_colleagues(
        ctx, document_event("order", "updated", order.id, order.order_number, order.client_name)
    )
    return order


@router.patch("/{order_id}/status", response_model=OrderResponse, dependencies=order_access)
async def update_order_status(
    order_id: int,
    data: StatusUpdate,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    order = OrderService(db).update_status(order_id, ctx, data.status)
    db.commit()
    NotificationService(db).notify_colleagues(
        ctx, document_event("order", "status_changed", order.id, order.order_number, order.client_name, order.status)
    )
    return order


@router.delete("/{order_id}", response_model=MessageResponse, dependencies=order_access)
async def delete_order(order_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    order = OrderService(db).delete(order_id, ctx)
    number, client_name = order.order_number, order.client_name
    db.commit()
    NotificationService(db).notify_colleagues(ctx, document_event("order", "deleted", order_id, number, client_name))
    return {"message": f"Order {number} deleted"}


# ==================== PAYMENTS ====================

@router.post(
    "/{order_id}/payments",
    response_model=PaymentResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=order_access
)
@router.post(
    "/{order_id}/payment",
    response_model=PaymentResult,
    status_code=status.HTTP_201_CREATED,
    dependencies=order_access,
    include_in_schema=False
)
async def add_payment(
    order_id: int,
    data: PaymentCreate,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    """
    Record a payment against an order.

    The payment and its receipt commit together; the notification and the
    client email/SMS follow and never undo the payment.
    """
    order, receipt = PaymentService(db).add_payment(order_id, ctx, data)
    db.commit()

    NotificationService(db).notify_colleagues(ctx, NotificationEvent(
        type=NotificationType.PAYMENT_RECEIVED,
        title="Payment received",
        message=f"{receipt.currency} {receipt.amount_paid:,.2f} received on order {order.order_number}",
        payload=PaymentEvent(
            order_id=order.id,
            order_number=order.order_number,
            receipt_number=receipt.receipt_number,
            amount=receipt.amount_paid,
            balance=receipt.balance,
            payment_status=order.payment_status,
        ),
    ))
    background_tasks.add_task(
        _send_receipt,
        order.email,
        order.phone_number,
        f"Payment receipt {receipt.receipt_number}",
        _receipt_text(receipt, ctx.company_name),
    )
    return {"message": "Payment recorded successfully", "order": order, "receipt": receipt}


@router.get("/{order_id}/payments", response_model=List[PaymentResponse], dependencies=order_access)
async def list_payments(order_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    return PaymentService(db).list_payments(order_id, ctx.company_id)


@router.get(
    "/{order_id}/payments/{payment_id}/receipt",
    response_model=ReceiptResponse,
    dependencies=[Depends(AnyPermissionChecker(["order", "receipts"]))]
)
async def get_payment_receipt(
    order_id: int,
    payment_id: int,
    db: Session = Depends(get_db),
    ctx: TenantContext = Depends(get_tenant_context)
):
    return ReceiptService(db).get_for_payment(order_id, payment_id, ctx.company_id)


@router.get(
    "/{order_id}/receipts",
    response_model=List[ReceiptResponse],
    dependencies=[Depends(AnyPermissionChecker(["order", "receipts"]))]
)
async def list_order_receipts(order_id: int, db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    OrderService(db).get_by_id(order_id, ctx.company_id)
    return ReceiptService(db).list(ctx.company_id, order_id=order_id)


# ==================== ASSIGNMENT ====================

@router.post("/{order_id}/assign", response_model=OrderResponse)
async def assign_order(
    order_id: int,
    data: AssignRequest,
    ctx: TenantContext = Depends(OwnerOrAdmin()),
    db: Session = Depends(get_db)
):
    order = AssignmentService(db).assign(order_id, ctx, data.staff_id, data.notes)
    db.commit()
    NotificationService(db).notify_user(
        data.staff_id,
        NotificationEvent(
            type=NotificationType.ORDER_ASSIGNED,
            title="Order assigned to you",
            message=f"Order {order.order_number} for {order.client_name} was assigned to you",
            payload=AssignmentEvent(
                order_id=order.id,
                order_number=order.order_number,
                action="assigned",
                staff_id=data.staff_id,
                notes=data.notes,
            ),
        ),
        company_id=ctx.company_id,
        actor_id=ctx.user_id,
        actor_name=ctx.full_name,
    )
    return order


@router.post("/{order_id}/unassign", response_model=OrderResponse)
async def unassign_order(order_id: int, ctx: TenantContext = Depends(OwnerOrAdmin()), db: Session = Depends(get_db)):
    order, previous = AssignmentService(db).unassign(order_id, ctx)
    db.commit()
    NotificationService(db).notify_user(
        previous,
        NotificationEvent(
            type=NotificationType.ORDER_UNASSIGNED,
            title="Order unassigned",
            message=f"Order {order.order_number} is no longer assigned to you",
            payload=AssignmentEvent(
                order_id=order.id,
                order_number=order.order_number,
                action="unassigned",
                staff_id=previous,
            ),
        ),
        company_id=ctx.company_id,
        actor_id=ctx.user_id,
        actor_name=ctx.full_name,
    )
    return order
