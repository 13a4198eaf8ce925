import pytest

from woodflow.core.exceptions import Forbidden, InvalidInput, InvalidStatus, NotFound
from woodflow.models import Notification
from woodflow.schemas import OrderCreate
from woodflow.services.assignment_service import AssignmentService
from woodflow.services.notification_service import (
    NotificationService, catalogue_event, document_event, membership_event,
)
from woodflow.services.order_service import OrderService
from woodflow.services.staff_service import StaffService

from tests.conftest import add_staff, context_for, make_quotation


def _inbox(db, user):
    return db.query(Notification).filter(Notification.user_id == user.id).all()


def test_fan_out_skips_actor_and_revoked_members(db, tenant):
    ctx = tenant["ctx"]
    carpenter = add_staff(db, ctx, "carpenter@example.com")
    revoked = add_staff(db, ctx, "former@example.com")
    member = StaffService(db).get_member_by_user(revoked.id, ctx.company_id)
    StaffService(db).set_access(ctx, member.id, False)
    db.commit()

    event = document_event("quotation", "created", 7, "QT-00007", client_name="Ada Client")
    delivered = NotificationService(db).notify_colleagues(ctx, event)

    assert delivered == 1
    assert _inbox(db, tenant["owner"]) == []
    assert _inbox(db, revoked) == []
    [note] = _inbox(db, carpenter)
    assert note.type == "quotation_created"
    assert note.performed_by == ctx.user_id
    assert note.performed_by_name == "Olu Owner"
    assert note.payload["document_number"] == "QT-00007"
    assert note.payload["kind"] == "document"


def test_one_failed_recipient_does_not_block_the_rest(db, tenant, monkeypatch):
    ctx = tenant["ctx"]
    first = add_staff(db, ctx, "first@example.com")
    second = add_staff(db, ctx, "second@example.com")
    monkeypatch.setattr(
        NotificationService, "recipients",
        lambda self, company_id, exclude_user_id=None: [first.id, None, second.id],
    )

    delivered = NotificationService(db).notify_colleagues(ctx, catalogue_event("product", "created", 1, "Chair"))

    assert delivered == 2
    assert len(_inbox(db, first)) == 1
    assert len(_inbox(db, second)) == 1


def test_status_change_maps_to_updated_type():
    event = document_event("order", "status_changed", 3, "ORD-00003", status="completed")
    assert event.type.value == "order_updated"
    assert event.title == "Order status changed to completed"
    assert event.payload_json()["status"] == "completed"


def test_membership_event_payload():
    event = membership_event("role_changed", 4, "Oak & Iron", "You are now an admin", role="admin")
    payload = event.payload_json()
    assert payload["kind"] == "membership"
    assert payload["role"] == "admin"
    assert payload["company_name"] == "Oak & Iron"


def test_inbox_read_and_delete(db, tenant):
    ctx = tenant["ctx"]
    service = NotificationService(db)
    service.notify_user(ctx.user_id, catalogue_event("product", "updated", 2, "Table"), company_id=ctx.company_id)
    service.notify_user(ctx.user_id, catalogue_event("product", "deleted", 2, "Table"), company_id=ctx.company_id)

    assert service.unread_count(ctx.user_id) == 2
    newest = service.list_for_user(ctx.user_id)[0]
    service.mark_read(newest.id, ctx.user_id)
    assert service.unread_count(ctx.user_id) == 1
    assert len(service.list_for_user(ctx.user_id, unread_only=True)) == 1

    assert service.mark_all_read(ctx.user_id) == 1
    service.delete(newest.id, ctx.user_id)
    db.commit()
    assert len(service.list_for_user(ctx.user_id)) == 1

    with pytest.raises(NotFound):
        service.mark_read(newest.id, ctx.user_id)


def test_notifications_are_private(db, tenant):
    ctx = tenant["ctx"]
    other = add_staff(db, ctx, "other@example.com")
    NotificationService(db).notify_user(other.id, catalogue_event("product", "created", 1, "Stool"))
    [note] = _inbox(db, other)

    with pytest.raises(NotFound):
        NotificationService(db).mark_read(note.id, ctx.user_id)


# ---------- assignment ----------

def _order(db, ctx):
    quotation = make_quotation(db, ctx, status="approved")
    order = OrderService(db).create_from_quotation(ctx, OrderCreate(quotation_id=quotation.id))
    db.commit()
    return order


def test_assign_and_unassign(db, tenant):
    ctx = tenant["ctx"]
    carpenter = add_staff(db, ctx, "carpenter@example.com")
    order = _order(db, ctx)
    service = AssignmentService(db)

    order = service.assign(order.id, ctx, carpenter.id, notes="Start with the legs")
    db.commit()
    assert order.assigned_to == carpenter.id
    assert order.assigned_by == ctx.user_id
    assert order.assigned_at is not None
    assert [o.id for o in OrderService(db).list(ctx.company_id, assigned_to=carpenter.id)] == [order.id]

    order, previous = service.unassign(order.id, ctx)
    assert previous == carpenter.id
    assert (order.assigned_to, order.assigned_by, order.assigned_at, order.assignment_notes) == (None,) * 4

    with pytest.raises(InvalidInput):
        service.unassign(order.id, ctx)


def test_assignment_rules(db, tenant):
    ctx = tenant["ctx"]
    carpenter = add_staff(db, ctx, "carpenter@example.com", permissions={"order": True})
    order = _order(db, ctx)
    service = AssignmentService(db)

    with pytest.raises(Forbidden):
        service.assign(order.id, context_for(db, carpenter), carpenter.id)
    with pytest.raises(NotFound):
        service.assign(order.id, ctx, 999)

    member = StaffService(db).get_member_by_user(carpenter.id, ctx.company_id)
    StaffService(db).set_access(ctx, member.id, False)
    db.commit()
    with pytest.raises(Forbidden):
        service.assign(order.id, ctx, carpenter.id)

    OrderService(db).update_status(order.id, ctx, "cancelled")
    db.commit()
    with pytest.raises(InvalidStatus):
        service.assign(order.id, ctx, ctx.user_id)
