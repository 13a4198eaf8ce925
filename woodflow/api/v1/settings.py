"""
Company Settings API Routes
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from woodflow.core.database import get_db
from woodflow.core.security import OwnerOrAdmin, get_tenant_context
from woodflow.schemas import SettingsUpdate, SettingsResponse
from woodflow.services.access_service import TenantContext
from woodflow.services.settings_service import SettingsService

router = APIRouter(prefix="/settings", tags=["Settings"])


@router.get("", response_model=SettingsResponse)
async def get_settings(db: Session = Depends(get_db), ctx: TenantContext = Depends(get_tenant_context)):
    row = SettingsService(db).get_or_create(ctx.company_id)
    db.commit()
    return row


@router.put("", response_model=SettingsResponse)
async def update_settings(
    data: SettingsUpdate,
    ctx: TenantContext = Depends(OwnerOrAdmin()),
    db: Session = Depends(get_db)
):
    """Update flags. Values that are not recognisable booleans keep the stored setting."""
    row = SettingsService(db).update(ctx, data)
    db.commit()
    return row
