"""
Overhead Service - recurring workshop costs
"""
from typing import Optional, List
from sqlalchemy import func
from sqlalchemy.orm import Session

from woodflow.core.exceptions import NotFound
from woodflow.models import OverheadCost
from woodflow.schemas import OverheadCostCreate, OverheadCostUpdate
from woodflow.services import pricing
from woodflow.services.access_service import TenantContext


class OverheadService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, cost_id: int, company_id: int) -> OverheadCost:
        cost = self.db.query(OverheadCost).filter(
            OverheadCost.id == cost_id,
            OverheadCost.company_id == company_id
        ).first()
        if not cost:
            raise NotFound("Overhead cost not found")
        return cost

    def list(self, company_id: int, period: Optional[str] = None, category: Optional[str] = None) -> List[OverheadCost]:
        query = self.db.query(OverheadCost).filter(OverheadCost.company_id == company_id)
        if period:
            query = query.filter(OverheadCost.period == period)
        if category:
            query = query.filter(OverheadCost.category == category)
        return query.order_by(OverheadCost.created_at.desc(), OverheadCost.id.desc()).all()

    def totals_by_period(self, company_id: int) -> dict:
        rows = self.db.query(OverheadCost.period, func.coalesce(func.sum(OverheadCost.cost), 0)).filter(
            OverheadCost.company_id == company_id
        ).group_by(OverheadCost.period).all()
        return {period: pricing.round2(total) for period, total in rows}

    def create(self, ctx: TenantContext, data: OverheadCostCreate) -> OverheadCost:
        cost = OverheadCost(company_id=ctx.company_id, user_id=ctx.user_id, **data.model_dump())
        self.db.add(cost)
        self.db.flush()
        return cost

    def update(self, cost_id: int, ctx: TenantContext, data: OverheadCostUpdate) -> OverheadCost:
        cost = self.get_by_id(cost_id, ctx.company_id)
        for key, value in data.model_dump(exclude_unset=True).items():
            setattr(cost, key, value)
        self.db.flush()
        return cost

    def delete(self, cost_id: int, ctx: TenantContext) -> OverheadCost:
        cost = self.get_by_id(cost_id, ctx.company_id)
        self.db.delete(cost)
        self.db.flush()
        return cost
