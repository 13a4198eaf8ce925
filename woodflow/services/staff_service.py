"""
Staff Service - memberships, roles and module permissions within a company

Owner memberships are immutable through every operation here.
"""
import logging
from typing import Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from woodflow.core.exceptions import Conflict, Forbidden, InvalidInput, NotFound
from woodflow.models import Membership, MembershipRole, User
from woodflow.schemas import StaffInvite
from woodflow.services.access_service import TenantContext, require_owner_or_admin

logger = logging.getLogger(__name__)

OWNER_IMMUTABLE = "Cannot modify owner permissions"


class StaffService:
    def __init__(self, db: Session):
        self.db = db

    def list_staff(self, ctx: TenantContext) -> List[Membership]:
        return self.db.query(Membership).options(joinedload(Membership.user)).filter(
            Membership.company_id == ctx.company_id
        ).order_by(Membership.id).all()

    def get_member(self, membership_id: int, company_id: int) -> Membership:
        membership = self.db.query(Membership).options(joinedload(Membership.user)).filter(
            Membership.id == membership_id,
            Membership.company_id == company_id
        ).first()
        if not membership:
            raise NotFound("Staff member not found")
        return membership

    def get_member_by_user(self, user_id: int, company_id: int) -> Optional[Membership]:
        return self.db.query(Membership).filter(
            Membership.user_id == user_id,
            Membership.company_id == company_id
        ).first()

    def _editable(self, ctx: TenantContext, membership_id: int) -> Membership:
        require_owner_or_admin(ctx)
        membership = self.get_member(membership_id, ctx.company_id)
        if membership.is_owner:
            raise Forbidden(OWNER_IMMUTABLE)
        # Admins manage staff; only the owner manages admins
        if membership.role == MembershipRole.ADMIN.value and not ctx.is_owner:
            raise Forbidden("Only the owner can modify an admin")
        return membership

    def invite(self, ctx: TenantContext, data: StaffInvite) -> Membership:
        require_owner_or_admin(ctx)
        if data.role == MembershipRole.ADMIN.value and not ctx.is_owner:
            raise Forbidden("Only the owner can add an admin")

        user = self.db.query(User).filter(User.email == data.email.lower()).first()
        if not user:
            raise NotFound("No user registered with this email")
        if self.get_member_by_user(user.id, ctx.company_id):
            raise Conflict("User is already a member of this company")

        membership = Membership(
            user_id=user.id,
            company_id=ctx.company_id,
            role=data.role,
            position=data.position,
            permissions=dict(data.permissions),
            access_granted=True,
            invited_by=ctx.user_id,
        )
        self.db.add(membership)
        try:
            self.db.flush()
        except IntegrityError:
            self.db.rollback()
            raise Conflict("User is already a member of this company")
        logger.info("User %s added to company %s as %s", user.id, ctx.company_id, data.role)
        return membership

    def update_permissions(self, ctx: TenantContext, membership_id: int, permissions: Dict[str, bool]) -> Membership:
        membership = self._editable(ctx, membership_id)
        membership.permissions = dict(permissions)
        self.db.flush()
        return membership

    def set_permission(self, ctx: TenantContext, membership_id: int, module: str, granted: bool) -> Membership:
        membership = self._editable(ctx, membership_id)
        permissions = dict(membership.permissions or {})
        permissions[module] = granted
        # Reassign so the JSON column is marked dirty
        membership.permissions = permissions
        self.db.flush()
        return membership

    def change_role(self, ctx: TenantContext, membership_id: int, role: str) -> Membership:
        if role == MembershipRole.OWNER.value:
            raise Forbidden("Ownership cannot be assigned")
        if role not in (MembershipRole.ADMIN.value, MembershipRole.STAFF.value):
            raise InvalidInput(f"Invalid role: {role}")
        if not ctx.is_owner:
            raise Forbidden("Only the owner can change roles")
        membership = self._editable(ctx, membership_id)
        membership.role = role
        self.db.flush()
        return membership

    def set_access(self, ctx: TenantContext, membership_id: int, granted: bool) -> Membership:
        membership = self._editable(ctx, membership_id)
        if membership.user_id == ctx.user_id:
            raise Forbidden("You cannot change your own access")
        membership.access_granted = granted
        self.db.flush()
        return membership

    def remove(self, ctx: TenantContext, membership_id: int) -> Membership:
        membership = self._editable(ctx, membership_id)
        if membership.user_id == ctx.user_id:
            raise Forbidden("You cannot remove yourself")

        user = membership.user
        removed_index = [m.id for m in user.memberships].index(membership.id)
        self.db.delete(membership)
        self.db.flush()

        # Keep the removed user's active index pointing at the same company
        if user.active_company_index > removed_index:
            user.active_company_index -= 1
        elif user.active_company_index == removed_index:
            user.active_company_index = 0
        self.db.flush()
        return membership
