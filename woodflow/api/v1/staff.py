"""
Staff Management API Routes
"""
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import OwnerOrAdmin
from woodflow.models import Membership
from woodflow.schemas import (
    StaffInvite, StaffPermissionsUpdate, SinglePermissionRequest, RoleUpdate, StaffResponse, MessageResponse,
)
from woodflow.services.access_service import TenantContext
from woodflow.services.notification_service import NotificationService, membership_event
from woodflow.services.staff_service import StaffService

router = APIRouter(prefix="/staff", tags=["Staff"])


def _staff_dict(m: Membership) -> dict:
    return {
        **{c: getattr(m, c) for c in (
            "id", "user_id", "company_id", "role", "position", "permissions", "access_granted", "joined_at"
        )},
        "full_name": m.user.full_name,
        "email": m.user.email,
        "phone": m.user.phone,
    }


def _tell(db: Session, ctx: TenantContext, user_id: int, action: str, message: str, **extra):
    NotificationService(db).notify_user(
        user_id,
        membership_event(action, ctx.company_id, ctx.company_name, message, **extra),
        company_id=ctx.company_id,
        actor_id=ctx.user_id,
        actor_name=ctx.full_name,
    )


@router.get("", response_model=List[StaffResponse])
async def list_staff(ctx: TenantContext = Depends(OwnerOrAdmin()), db: Session = Depends(get_db)):
    return [_staff_dict(m) for m in StaffService(db).list_staff(ctx)]


@router.post("", response_model=StaffResponse, status_code=status.HTTP_201_CREATED)
async def invite_staff(
    data: StaffInvite,
    ctx: TenantContext = Depends(OwnerOrAdmin()),
    db: Session = Depends(get_db)
):
    """Add an existing user to the company"""
    service = StaffService(db)
    membership = service.invite(ctx, data)
    db.commit()
    membership = service.get_member(membership.id, ctx.company_id)
    _tell(db, ctx, membership.user_id, "staff_added",
          f"You were added to {ctx.company_name} as {membership.role}",
          permissions=membership.permissions, role=membership.role)
    return _staff_dict(membership)


@router.put("/{membership_id}/permissions", response_model=StaffResponse)
async def update_permissions(
    membership_id: int,
    data: StaffPermissionsUpdate,
    ctx: TenantContext = Depends(OwnerOrAdmin()),
    db: Session = Depends(get_db)
):
    membership = StaffService(db).update_permissions(ctx, membership_id, data.permissions)
    db.commit()
    _tell(db, ctx, membership.user_id, "permissions_updated",
          f"Your permissions in {ctx.company_name} were updated", permissions=membership.permissions)
    return _staff_dict(membership)


@router.post("/{membership_id}/permissions/grant", response_model=StaffResponse)
async def grant_permission(
    membership_id: int,
    data: SinglePermissionRequest,
    ctx: TenantContext = Depends(OwnerOrAdmin()),
    db: Session = Depends(get_db)
):
    membership = StaffService(db).set_permission(ctx, membership_id, data.module, True)
    db.commit()
    _tell(db, ctx, membership.user_id, "permission_granted",
          f"You were granted '{data.module}' access in {ctx.company_name}", module=data.module)
    return _staff_dict(membership)


@router.post("/{membership_id}/permissions/revoke", response_model=StaffResponse)
async def revoke_permission(
    membership_id: int,
    data: SinglePermissionRequest,
    ctx: TenantContext = Depends(OwnerOrAdmin()),
    db: Session = Depends(get_db)
):
    membership = StaffService(db).set_permission(ctx, membership_id, data.module, False)
    db.commit()
    _tell(db, ctx, membership.user_id, "permission_revoked",
          f"Your '{data.module}' access in {ctx.company_name} was revoked", module=data.module)
    return _staff_dict(membership)


@router.put("/{membership_id}/role", response_model=StaffResponse)
async def change_role(
    membership_id: int,
    data: RoleUpdate,
    ctx: TenantContext = Depends(OwnerOrAdmin()),
    db: Session = Depends(get_db)
):
    membership = StaffService(db).change_role(ctx, membership_id, data.role)
    db.commit()
    _tell(db, ctx, membership.user_id, "role_changed",
          f"Your role in {ctx.company_name} is now {data.role}", role=data.role)
    return _staff_dict(membership)


@router.post("/{membership_id}/access/grant", response_model=StaffResponse)
async def grant_access(membership_id: int, ctx: TenantContext = Depends(OwnerOrAdmin()), db: Session = Depends(get_db)):
    membership = StaffService(db).set_access(ctx, membership_id, True)
    db.commit()
    _tell(db, ctx, membership.user_id, "access_granted", f"Your access to {ctx.company_name} was restored")
    return _staff_dict(membership)


@router.post("/{membership_id}/access/revoke", response_model=StaffResponse)
async def revoke_access(membership_id: int, ctx: TenantContext = Depends(OwnerOrAdmin()), db: Session = Depends(get_db)):
    membership = StaffService(db).set_access(ctx, membership_id, False)
    db.commit()
    _tell(db, ctx, membership.user_id, "access_revoked", f"Your access to {ctx.company_name} was revoked")
    return _staff_dict(membership)


@router.delete("/{membership_id}", response_model=MessageResponse)
async def remove_staff(membership_id: int, ctx: TenantContext = Depends(OwnerOrAdmin()), db: Session = Depends(get_db)):
    membership = StaffService(db).remove(ctx, membership_id)
    user_id = membership.user_id
    db.commit()
    _tell(db, ctx, user_id, "staff_removed", f"You were removed from {ctx.company_name}")
    return {"message": "Staff member removed"}
