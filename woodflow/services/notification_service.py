"""
Notification Service - per-recipient fan-out and inbox operations
"""
import logging
from dataclasses import dataclass
from typing import List, Optional

from pydantic import TypeAdapter
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from woodflow.core.exceptions import NotFound, UpstreamFailure
from woodflow.models import Membership, Notification, NotificationType
from woodflow.schemas import CatalogueEvent, ClientEvent, DocumentEvent, MembershipEvent, NotificationPayload

logger = logging.getLogger(__name__)

_payload_adapter = TypeAdapter(NotificationPayload)


@dataclass
class NotificationEvent:
    type: NotificationType
    title: str
    message: str
    payload: Optional[NotificationPayload] = None

    def payload_json(self) -> Optional[dict]:
        if self.payload is None:
            return None
        return _payload_adapter.dump_python(self.payload, mode="json")


class NotificationService:
    def __init__(self, db: Session):
        self.db = db

    # ---------- fan-out ----------

    def recipients(self, company_id: int, exclude_user_id: Optional[int] = None) -> List[int]:
        query = self.db.query(Membership.user_id).filter(
            Membership.company_id == company_id,
            Membership.access_granted.is_(True)
        )
        if exclude_user_id is not None:
            query = query.filter(Membership.user_id != exclude_user_id)
        return [row.user_id for row in query.order_by(Membership.id).all()]

    def _deliver(self, user_id: int, company_id: Optional[int], event: NotificationEvent,
                 actor_id: Optional[int], actor_name: Optional[str]) -> bool:
        """Insert one record inside its own savepoint. Failure is logged, not raised."""
        try:
            with self.db.begin_nested():
                self.db.add(Notification(
                    user_id=user_id,
                    company_id=company_id,
                    type=event.type.value,
                    title=event.title,
                    message=event.message,
                    performed_by=actor_id,
                    performed_by_name=actor_name,
                    payload=event.payload_json(),
                ))
            return True
        except SQLAlchemyError as exc:
            logger.warning(
                "Notification %s to user %s failed: %s",
                event.type.value, user_id, UpstreamFailure(str(exc))
            )
            return False

    def notify_company(self, company_id: int, event: NotificationEvent,
                       actor_id: Optional[int] = None, actor_name: Optional[str] = None,
                       exclude_user_id: Optional[int] = None) -> int:
        """
        Create one notification per access-granted member of the company.
        Returns how many were delivered and commits them.
        """
        delivered = 0
        try:
            for user_id in self.recipients(company_id, exclude_user_id):
                if self._deliver(user_id, company_id, event, actor_id, actor_name):
                    delivered += 1
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Company fan-out for %s failed: %s", event.type.value, UpstreamFailure(str(exc)))
        return delivered

    def notify_colleagues(self, ctx, event: NotificationEvent) -> int:
        """Fan out to everyone in the caller's company except the caller"""
        return self.notify_company(
            ctx.company_id, event,
            actor_id=ctx.user_id, actor_name=ctx.full_name, exclude_user_id=ctx.user_id
        )

    def notify_user(self, user_id: int, event: NotificationEvent, company_id: Optional[int] = None,
                    actor_id: Optional[int] = None, actor_name: Optional[str] = None) -> bool:
        delivered = self._deliver(user_id, company_id, event, actor_id, actor_name)
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error("Notification to user %s failed: %s", user_id, UpstreamFailure(str(exc)))
            return False
        return delivered

    # ---------- inbox ----------

    def list_for_user(self, user_id: int, unread_only: bool = False, limit: int = 50) -> List[Notification]:
        query = self.db.query(Notification).filter(Notification.user_id == user_id)
        if unread_only:
            query = query.filter(Notification.is_read.is_(False))
        return query.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(limit).all()

    def unread_count(self, user_id: int) -> int:
        return self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        ).count()

    def get_for_user(self, notification_id: int, user_id: int) -> Notification:
        notification = self.db.query(Notification).filter(
            Notification.id == notification_id,
            Notification.user_id == user_id
        ).first()
        if not notification:
            raise NotFound("Notification not found")
        return notification

    def mark_read(self, notification_id: int, user_id: int) -> Notification:
        notification = self.get_for_user(notification_id, user_id)
        notification.is_read = True
        self.db.flush()
        return notification

    def mark_all_read(self, user_id: int) -> int:
        updated = self.db.query(Notification).filter(
            Notification.user_id == user_id,
            Notification.is_read.is_(False)
        ).update({Notification.is_read: True}, synchronize_session=False)
        self.db.flush()
        return updated

    def delete(self, notification_id: int, user_id: int) -> None:
        self.db.delete(self.get_for_user(notification_id, user_id))
        self.db.flush()


# ---------- event builders ----------

CATALOGUE_LABELS = {"product": "Product", "overhead_cost": "Overhead cost", "material": "Material"}


def document_event(document_type: str, action: str, document_id: int, number: Optional[str],
                   client_name: Optional[str] = None, status: Optional[str] = None) -> NotificationEvent:
    """Event for a quotation, BOM, order or invoice change"""
    kind = "updated" if action == "status_changed" else action
    label = "BOM" if document_type == "bom" else document_type.capitalize()
    verb = f"status changed to {status}" if action == "status_changed" else action
    return NotificationEvent(
        type=NotificationType(f"{document_type}_{kind}"),
        title=f"{label} {verb}",
        message=f"{label} {number or document_id}" + (f" for {client_name}" if client_name else "") + f" was {verb}",
        payload=DocumentEvent(
            document_type=document_type,
            document_id=document_id,
            document_number=number,
            action=action,
            client_name=client_name,
            status=status,
        ),
    )


def catalogue_event(entity: str, action: str, entity_id: int, name: Optional[str]) -> NotificationEvent:
    label = CATALOGUE_LABELS[entity]
    return NotificationEvent(
        type=NotificationType(f"{entity}_{action}"),
        title=f"{label} {action}",
        message=f"{label} '{name}' was {action}" if name else f"{label} was {action}",
        payload=CatalogueEvent(entity=entity, entity_id=entity_id, name=name, action=action),
    )


def client_event(action: str, client_name: str, quotations: int) -> NotificationEvent:
    """Client details are edited or removed across all of their quotations at once"""
    return NotificationEvent(
        type=NotificationType(f"client_{action}"),
        title=f"Client {action}",
        message=f"Client '{client_name}' was {action} on {quotations} quotation(s)",
        payload=ClientEvent(client_name=client_name, action=action, quotations=quotations),
    )


def membership_event(action: str, company_id: int, company_name: str, message: str,
                     permissions: Optional[dict] = None, module: Optional[str] = None,
                     role: Optional[str] = None) -> NotificationEvent:
    return NotificationEvent(
        type=NotificationType(action),
        title=action.replace("_", " ").capitalize(),
        message=message,
        payload=MembershipEvent(
            company_id=company_id,
            company_name=company_name,
            action=action,
            permissions=permissions,
            module=module,
            role=role,
        ),
    )
