"""
Access Service - tenant context resolution and permission evaluation
"""
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional

from woodflow.core.exceptions import Forbidden, NoActiveCompany
from woodflow.models import Membership, MembershipRole, User

PRIVILEGED_ROLES = {MembershipRole.OWNER.value, MembershipRole.ADMIN.value}


@dataclass
class TenantContext:
    """The caller as seen by every tenant-scoped service call"""
    user_id: int
    full_name: str
    company_id: int
    company_name: str
    role: str
    membership_id: int
    permissions: Dict[str, bool] = field(default_factory=dict)
    access_granted: bool = True

    @property
    def is_privileged(self) -> bool:
        return self.role in PRIVILEGED_ROLES

    @property
    def is_owner(self) -> bool:
        return self.role == MembershipRole.OWNER.value


def active_membership(user: User, memberships: Optional[List[Membership]] = None) -> Membership:
    memberships = list(user.memberships if memberships is None else memberships)
    index = user.active_company_index or 0
    if not memberships or index < 0 or index >= len(memberships):
        raise NoActiveCompany()
    return memberships[index]


def resolve_context(user: User, memberships: Optional[List[Membership]] = None) -> TenantContext:
    membership = active_membership(user, memberships)
    if not membership.access_granted and not membership.is_owner:
        raise Forbidden("Your access to this company has been revoked")

    return TenantContext(
        user_id=user.id,
        full_name=user.full_name,
        company_id=membership.company_id,
        company_name=membership.company.name,
        role=membership.role,
        membership_id=membership.id,
        permissions=dict(membership.permissions or {}),
        access_granted=membership.access_granted,
    )


def has_permission(ctx: TenantContext, module: str) -> bool:
    if ctx.is_privileged:
        return True
    return ctx.permissions.get(module) is True


def check_permission(ctx: TenantContext, module: str) -> None:
    if not has_permission(ctx, module):
        raise Forbidden(f"You do not have permission to access {module}")


def check_any_permission(ctx: TenantContext, modules: Iterable[str]) -> None:
    modules = list(modules)
    if not any(has_permission(ctx, module) for module in modules):
        raise Forbidden(f"You need one of these permissions: {', '.join(modules)}")


def require_owner_or_admin(ctx: TenantContext) -> None:
    if not ctx.is_privileged:
        raise Forbidden("Only the company owner or an admin can perform this action")
