"""
Quotation Service - client quotations, line items and totals
"""
from typing import Optional, List
from sqlalchemy import func, or_
from sqlalchemy.orm import Session, selectinload

from woodflow.core.exceptions import InvalidInput, InvalidStatus, NotFound
from woodflow.models import BOM, Invoice, Order, Quotation, QuotationItem, QuotationStatus
from woodflow.schemas import ClientDetails, ClientMatch, LineItemCreate, QuotationCreate, QuotationUpdate
from woodflow.services import pricing
from woodflow.services.access_service import TenantContext
from woodflow.services.sequence_service import next_number

QUOTATION_STATUSES = {status.value for status in QuotationStatus}
# Totals are frozen once a quotation is closed
LOCKED_STATUSES = {QuotationStatus.REJECTED.value, QuotationStatus.COMPLETED.value}
PRICED_FIELDS = {"discount", "items", "service"}


def build_line_item(model, data: LineItemCreate):
    """Line item row of ``model`` with its area resolved"""
    values = data.model_dump()
    values["square_meter"] = pricing.resolve_square_meter(values)
    return model(**values)


class QuotationService:
    def __init__(self, db: Session):
        self.db = db

    def get_by_id(self, quotation_id: int, company_id: int) -> Quotation:
        quotation = self.db.query(Quotation).options(selectinload(Quotation.items)).filter(
            Quotation.id == quotation_id,
            Quotation.company_id == company_id
        ).first()
        if not quotation:
            raise NotFound("Quotation not found")
        return quotation

    def list(self, company_id: int, status: Optional[str] = None, search: Optional[str] = None,
             skip: int = 0, limit: int = 100) -> List[Quotation]:
        query = self.db.query(Quotation).options(selectinload(Quotation.items)).filter(
            Quotation.company_id == company_id
        )
        if status:
            query = query.filter(Quotation.status == status)
        if search:
            pattern = f"%{search}%"
            query = query.filter(or_(
                Quotation.client_name.ilike(pattern),
                Quotation.quotation_number.ilike(pattern),
                Quotation.phone_number.ilike(pattern),
            ))
        return query.order_by(Quotation.created_at.desc(), Quotation.id.desc()).offset(skip).limit(limit).all()

    def _ensure_priceable(self, quotation: Quotation):
        if quotation.status in LOCKED_STATUSES:
            raise InvalidStatus(f"Cannot change pricing of a {quotation.status} quotation")

    def recalculate(self, quotation: Quotation) -> Quotation:
        totals = pricing.compute_document_totals(quotation.items, quotation.discount, quotation.service)
        for key, value in totals.items():
            setattr(quotation, key, value)
        return quotation

    def create(self, ctx: TenantContext, data: QuotationCreate) -> Quotation:
        quotation = Quotation(
            company_id=ctx.company_id,
            user_id=ctx.user_id,
            quotation_number=next_number(self.db, "quotation"),
            client_name=data.client_name.strip(),
            client_address=data.client_address,
            nearest_bus_stop=data.nearest_bus_stop,
            phone_number=data.phone_number,
            email=data.email,
            description=data.description,
            service=data.service.model_dump(mode="json") if data.service else None,
            discount=data.discount,
            status=data.status,
            due_date=data.due_date,
            items=[build_line_item(QuotationItem, item) for item in data.items],
        )
        self.recalculate(quotation)
        self.db.add(quotation)
        self.db.flush()
        return quotation

    def update(self, quotation_id: int, ctx: TenantContext, data: QuotationUpdate) -> Quotation:
        quotation = self.get_by_id(quotation_id, ctx.company_id)
        if PRICED_FIELDS & data.model_fields_set:
            self._ensure_priceable(quotation)
        update_data = data.model_dump(exclude_unset=True, exclude={"items", "service"})

        for key, value in update_data.items():
            setattr(quotation, key, value)

        touches_totals = "discount" in update_data
        if "service" in data.model_fields_set:
            quotation.service = data.service.model_dump(mode="json") if data.service else None
            touches_totals = True
        if data.items is not None:
            quotation.items = [build_line_item(QuotationItem, item) for item in data.items]
            touches_totals = True

        if touches_totals:
            self.recalculate(quotation)
        self.db.flush()
        return quotation

    def add_item(self, quotation_id: int, ctx: TenantContext, data: LineItemCreate) -> Quotation:
        quotation = self.get_by_id(quotation_id, ctx.company_id)
        self._ensure_priceable(quotation)
        quotation.items.append(build_line_item(QuotationItem, data))
        self.recalculate(quotation)
        self.db.flush()
        return quotation

    def delete_item(self, quotation_id: int, item_id: int, ctx: TenantContext) -> Quotation:
        quotation = self.get_by_id(quotation_id, ctx.company_id)
        self._ensure_priceable(quotation)
        item = next((i for i in quotation.items if i.id == item_id), None)
        if item is None:
            raise NotFound("Item not found")
        quotation.items.remove(item)
        self.recalculate(quotation)
        self.db.flush()
        return quotation

    def update_status(self, quotation_id: int, ctx: TenantContext, status: str) -> Quotation:
        if status not in QUOTATION_STATUSES:
            raise InvalidStatus(
                f"Invalid status '{status}'. Allowed: {', '.join(sorted(QUOTATION_STATUSES))}"
            )
        quotation = self.get_by_id(quotation_id, ctx.company_id)
        quotation.status = status
        self.db.flush()
        return quotation

    def delete(self, quotation_id: int, ctx: TenantContext) -> Quotation:
        """Orders, invoices and BOMs keep their snapshots; only the weak link is cleared."""
        quotation = self.get_by_id(quotation_id, ctx.company_id)
        for model in (BOM, Order, Invoice):
            self.db.query(model).filter(
                model.quotation_id == quotation.id,
                model.company_id == ctx.company_id
            ).update({model.quotation_id: None}, synchronize_session=False)
        self.db.delete(quotation)
        self.db.flush()
        return quotation

    def boms_for_quotation(self, quotation_id: int, ctx: TenantContext) -> List[BOM]:
        self.get_by_id(quotation_id, ctx.company_id)
        return self.db.query(BOM).filter(
            BOM.quotation_id == quotation_id,
            BOM.company_id == ctx.company_id
        ).order_by(BOM.id).all()

    def clients(self, company_id: int) -> List[dict]:
        """Distinct clients seen on this company's quotations, latest details first"""
        rows = self.db.query(Quotation).filter(
            Quotation.company_id == company_id
        ).order_by(Quotation.created_at.desc(), Quotation.id.desc()).all()

        clients = {}
        for row in rows:
            key = row.client_name.strip().lower()
            if key not in clients:
                clients[key] = {
                    "client_name": row.client_name,
                    "client_address": row.client_address,
                    "nearest_bus_stop": row.nearest_bus_stop,
                    "phone_number": row.phone_number,
                    "email": row.email,
                    "quotation_count": 0,
                    "last_quotation_at": row.created_at,
                }
            clients[key]["quotation_count"] += 1
        return sorted(clients.values(), key=lambda c: c["client_name"].lower())


    def _client_quotations(self, company_id: int, match: ClientMatch) -> List[Quotation]:
        query = self.db.query(Quotation).filter(Quotation.company_id == company_id)
        if match.client_name:
            query = query.filter(func.lower(Quotation.client_name) == match.client_name.strip().lower())
        if match.phone_number:
            query = query.filter(Quotation.phone_number == match.phone_number)
        if match.email:
            query = query.filter(func.lower(Quotation.email) == match.email.lower())
        rows = query.order_by(Quotation.id).all()
        if not rows:
            raise NotFound("Client not found")
        return rows

    def update_client(self, ctx: TenantContext, match: ClientMatch, details: ClientDetails) -> dict:
        """Rewrite client details on every matching quotation; orders and invoices keep their copies"""
        values = details.model_dump(exclude_unset=True)
        if not values:
            raise InvalidInput("Nothing to update")
        if "client_name" in values:
            values["client_name"] = values["client_name"].strip()
        rows = self._client_quotations(ctx.company_id, match)
        for quotation in rows:
            for key, value in values.items():
                setattr(quotation, key, value)
        self.db.flush()
        return {"client_name": rows[-1].client_name, "quotations": len(rows)}

    def delete_client(self, ctx: TenantContext, match: ClientMatch) -> dict:
        rows = self._client_quotations(ctx.company_id, match)
        client_name = rows[-1].client_name
        for quotation in rows:
            self.delete(quotation.id, ctx)
        return {"client_name": client_name, "quotations": len(rows)}
