"""
Settings Service - per-company feature flags
"""
from sqlalchemy.orm import Session

from woodflow.models import CompanySettings
from woodflow.schemas import SettingsUpdate
from woodflow.services.access_service import TenantContext, require_owner_or_admin


class SettingsService:
    def __init__(self, db: Session):
        self.db = db

    def get_or_create(self, company_id: int) -> CompanySettings:
        row = self.db.query(CompanySettings).filter(CompanySettings.company_id == company_id).first()
        if row is None:
            row = CompanySettings(company_id=company_id)
            self.db.add(row)
            self.db.flush()
        return row

    def update(self, ctx: TenantContext, data: SettingsUpdate) -> CompanySettings:
        """Apply recognised flags; None means keep what is stored."""
        require_owner_or_admin(ctx)
        row = self.get_or_create(ctx.company_id)
        for key, value in data.model_dump().items():
            if value is not None:
                setattr(row, key, value)
        row.updated_by = ctx.user_id
        self.db.flush()
        return row
