"""
SQLAlchemy Models for the fabrication workshop backend
"""
from datetime import datetime
from decimal import Decimal
import enum

from sqlalchemy import (
    Column, Integer, String, Text, Boolean, DateTime, Date, Numeric, JSON,
    ForeignKey, Index, UniqueConstraint, CheckConstraint
)
from sqlalchemy.orm import relationship

from woodflow.core.database import Base


# ==================== ENUMS ====================

class MembershipRole(enum.Enum):
    OWNER = "owner"
    ADMIN = "admin"
    STAFF = "staff"


class QuotationStatus(enum.Enum):
    DRAFT = "draft"
    SENT = "sent"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class OrderStatus(enum.Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ON_HOLD = "on_hold"


class InvoiceStatus(enum.Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"
    CANCELLED = "cancelled"


class PaymentStatus(enum.Enum):
    UNPAID = "unpaid"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentMethod(enum.Enum):
    CASH = "cash"
    BANK_TRANSFER = "bank_transfer"
    TRANSFER = "transfer"
    CHEQUE = "cheque"
    CARD = "card"
    OTHER = "other"


class NotificationType(enum.Enum):
    PERMISSIONS_UPDATED = "permissions_updated"
    PERMISSION_GRANTED = "permission_granted"
    PERMISSION_REVOKED = "permission_revoked"
    ACCESS_GRANTED = "access_granted"
    ACCESS_REVOKED = "access_revoked"
    ROLE_CHANGED = "role_changed"
    STAFF_ADDED = "staff_added"
    STAFF_REMOVED = "staff_removed"
    PRODUCT_CREATED = "product_created"
    PRODUCT_UPDATED = "product_updated"
    PRODUCT_DELETED = "product_deleted"
    QUOTATION_CREATED = "quotation_created"
    QUOTATION_UPDATED = "quotation_updated"
    QUOTATION_DELETED = "quotation_deleted"
    BOM_CREATED = "bom_created"
    BOM_UPDATED = "bom_updated"
    BOM_DELETED = "bom_deleted"
    ORDER_CREATED = "order_created"
    ORDER_UPDATED = "order_updated"
    ORDER_DELETED = "order_deleted"
    ORDER_ASSIGNED = "order_assigned"
    ORDER_UNASSIGNED = "order_unassigned"
    PAYMENT_RECEIVED = "payment_received"
    INVOICE_CREATED = "invoice_created"
    INVOICE_UPDATED = "invoice_updated"
    INVOICE_DELETED = "invoice_deleted"
    OVERHEAD_COST_CREATED = "overhead_cost_created"
    OVERHEAD_COST_UPDATED = "overhead_cost_updated"
    OVERHEAD_COST_DELETED = "overhead_cost_deleted"
    MATERIAL_CREATED = "material_created"
    MATERIAL_UPDATED = "material_updated"
    MATERIAL_DELETED = "material_deleted"
    CLIENT_UPDATED = "client_updated"
    CLIENT_DELETED = "client_deleted"


PERMISSION_MODULES = [
    "quotation", "sales", "order", "database", "receipts",
    "invoice", "products", "boms", "backupAlerts",
]

MONEY = Numeric(15, 2)
DIMENSION = Numeric(12, 3)
# Pricing blocks keep full precision; only the headline totals are rounded
PRECISE = Numeric(20, 6)


# ==================== TENANCY ====================

class User(Base):
    """User account. Company access lives on Membership."""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    full_name = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=True)
    hashed_password = Column(String(255), nullable=False)
    is_active = Column(Boolean, default=True)
    active_company_index = Column(Integer, default=0, nullable=False)
    last_login = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    memberships = relationship(
        "Membership",
        back_populates="user",
        foreign_keys="Membership.user_id",
        order_by="Membership.id",
        cascade="all, delete-orphan",
    )


class Company(Base):
    """A tenant. Every document row carries its company_id."""
    __tablename__ = 'companies'

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False, unique=True)
    email = Column(String(255), nullable=True)
    phone = Column(String(50), nullable=True)
    address = Column(Text, nullable=True)
    logo_url = Column(String(500), nullable=True)
    owner_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    owner = relationship("User", foreign_keys=[owner_id])
    memberships = relationship("Membership", back_populates="company", cascade="all, delete-orphan")
    settings = relationship("CompanySettings", back_populates="company", uselist=False, cascade="all, delete-orphan")


class Membership(Base):
    """User <-> Company join carrying role, permissions and the access flag"""
    __tablename__ = 'memberships'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    role = Column(String(20), nullable=False, default=MembershipRole.STAFF.value)
    position = Column(String(100), nullable=True)
    permissions = Column(JSON, nullable=False, default=dict)
    access_granted = Column(Boolean, nullable=False, default=True)
    invited_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    joined_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    user = relationship("User", back_populates="memberships", foreign_keys=[user_id])
    company = relationship("Company", back_populates="memberships")

    __table_args__ = (
        UniqueConstraint('user_id', 'company_id', name='uq_membership_user_company'),
        Index('ix_membership_company', 'company_id'),
    )

    @property
    def is_owner(self) -> bool:
        return self.role == MembershipRole.OWNER.value


class CompanySettings(Base):
    __tablename__ = 'company_settings'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, unique=True)
    cloud_sync_enabled = Column(Boolean, default=True)
    auto_backup_enabled = Column(Boolean, default=True)
    push_notification = Column(Boolean, default=True)
    email_notification = Column(Boolean, default=True)
    quotation_reminders = Column(Boolean, default=True)
    project_deadlines = Column(Boolean, default=True)
    backup_alerts = Column(Boolean, default=False)
    updated_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    company = relationship("Company", back_populates="settings")


class Counter(Base):
    """Per document type sequence; incremented with a single upsert"""
    __tablename__ = 'counters'

    key = Column(String(50), primary_key=True)
    seq = Column(Integer, nullable=False, default=0)


# ==================== CATALOGUE ====================

class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    product_code = Column(String(100), nullable=False)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    sub_category = Column(String(100), nullable=True)
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('company_id', 'product_code', name='uq_product_company_code'),
    )


class OverheadCost(Base):
    __tablename__ = 'overhead_costs'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    category = Column(String(100), nullable=False)
    description = Column(Text, nullable=True)
    cost = Column(MONEY, nullable=False, default=Decimal("0.00"))
    period = Column(String(20), nullable=False, default="monthly")
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint('cost >= 0', name='ck_overhead_cost_non_negative'),
    )


class StockMaterial(Base):
    """Stock material priced per square metre and sold in standard sheets"""
    __tablename__ = 'stock_materials'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    name = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    unit = Column(String(20), nullable=False, default="cm")
    standard_width = Column(DIMENSION, nullable=False)
    standard_length = Column(DIMENSION, nullable=False)
    standard_unit = Column(String(20), nullable=False, default="cm")
    price_per_sqm = Column(MONEY, nullable=False, default=Decimal("0.00"))
    # [{"width": .., "length": ..}], [{"density": .., "unit": ..}], [{"thickness": .., "unit": ..}]
    sizes = Column(JSON, nullable=False, default=list)
    foam_densities = Column(JSON, nullable=False, default=list)
    foam_thicknesses = Column(JSON, nullable=False, default=list)
    # [{"name": .., "price_per_sqm": ..}]; a type price overrides the material price
    types = Column(JSON, nullable=False, default=list)
    waste_threshold = Column(Numeric(5, 4), nullable=False, default=Decimal("0.75"))
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint('company_id', 'name', name='uq_stock_material_company_name'),
        CheckConstraint('price_per_sqm >= 0', name='ck_stock_material_price_non_negative'),
        CheckConstraint('waste_threshold >= 0 AND waste_threshold <= 1', name='ck_stock_material_waste_threshold'),
    )


# ==================== LINE ITEMS ====================

class LineItemMixin:
    """Columns shared by quotation, order and invoice line items"""
    wood_type = Column(String(100), nullable=False)
    foam_type = Column(String(100), nullable=True)
    width = Column(DIMENSION, nullable=True)
    height = Column(DIMENSION, nullable=True)
    length = Column(DIMENSION, nullable=True)
    thickness = Column(DIMENSION, nullable=True)
    unit = Column(String(10), default="cm")
    square_meter = Column(Numeric(14, 4), default=Decimal("0"))
    quantity = Column(Integer, nullable=False, default=1)
    cost_price = Column(MONEY, nullable=False, default=Decimal("0.00"))
    selling_price = Column(MONEY, nullable=False, default=Decimal("0.00"))
    description = Column(Text, nullable=True)
    image_url = Column(String(500), nullable=True)

    def snapshot(self) -> dict:
        return {
            "wood_type": self.wood_type,
            "foam_type": self.foam_type,
            "width": self.width,
            "height": self.height,
            "length": self.length,
            "thickness": self.thickness,
            "unit": self.unit,
            "square_meter": self.square_meter,
            "quantity": self.quantity,
            "cost_price": self.cost_price,
            "selling_price": self.selling_price,
            "description": self.description,
            "image_url": self.image_url,
        }


class ClientMixin:
    client_name = Column(String(255), nullable=False)
    client_address = Column(Text, nullable=True)
    nearest_bus_stop = Column(String(255), nullable=True)
    phone_number = Column(String(50), nullable=True)
    email = Column(String(255), nullable=True)


# ==================== QUOTATIONS ====================

class Quotation(ClientMixin, Base):
    __tablename__ = 'quotations'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    quotation_number = Column(String(20), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    service = Column(JSON, nullable=True)
    discount = Column(Numeric(5, 2), default=Decimal("0.00"))
    total_cost = Column(MONEY, default=Decimal("0.00"))
    total_selling_price = Column(MONEY, default=Decimal("0.00"))
    discount_amount = Column(MONEY, default=Decimal("0.00"))
    final_total = Column(MONEY, default=Decimal("0.00"))
    status = Column(String(20), default=QuotationStatus.DRAFT.value)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship(
        "QuotationItem",
        back_populates="quotation",
        cascade="all, delete-orphan",
        order_by="QuotationItem.id",
    )

    __table_args__ = (
        Index('ix_quotation_company_created', 'company_id', 'created_at'),
        CheckConstraint('discount >= 0 AND discount <= 100', name='ck_quotation_discount_range'),
    )


class QuotationItem(LineItemMixin, Base):
    __tablename__ = 'quotation_items'

    id = Column(Integer, primary_key=True)
    quotation_id = Column(Integer, ForeignKey('quotations.id', ondelete='CASCADE'), nullable=False)

    quotation = relationship("Quotation", back_populates="items")


# ==================== BILLS OF MATERIALS ====================

class BOM(Base):
    __tablename__ = 'boms'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    bom_number = Column(String(20), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)

    # Weak link, kept for lookup only
    quotation_id = Column(Integer, ForeignKey('quotations.id', ondelete='SET NULL'), nullable=True, index=True)

    # Product snapshot, copied when attached
    product_ref_id = Column(Integer, ForeignKey('products.id', ondelete='SET NULL'), nullable=True)
    product_code = Column(String(100), nullable=True)
    product_name = Column(String(255), nullable=True)
    product_description = Column(Text, nullable=True)
    product_image = Column(String(500), nullable=True)

    # Pricing block
    pricing_method = Column(String(50), nullable=True)
    markup_percentage = Column(PRECISE, default=Decimal("0"))
    materials_total = Column(PRECISE, default=Decimal("0"))
    additional_total = Column(PRECISE, default=Decimal("0"))
    overhead_cost = Column(PRECISE, default=Decimal("0"))
    cost_price = Column(PRECISE, default=Decimal("0"))
    selling_price = Column(PRECISE, default=Decimal("0"))

    materials_cost = Column(MONEY, default=Decimal("0.00"))
    additional_costs_total = Column(MONEY, default=Decimal("0.00"))
    total_cost = Column(MONEY, default=Decimal("0.00"))

    expected_duration_value = Column(Integer, nullable=True)
    expected_duration_unit = Column(String(10), nullable=True)
    due_date = Column(Date, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    materials = relationship(
        "BomMaterial", back_populates="bom", cascade="all, delete-orphan", order_by="BomMaterial.id"
    )
    additional_costs = relationship(
        "BomAdditionalCost", back_populates="bom", cascade="all, delete-orphan", order_by="BomAdditionalCost.id"
    )

    __table_args__ = (
        Index('ix_bom_company_created', 'company_id', 'created_at'),
    )

    @property
    def pricing(self) -> dict:
        return {
            "pricing_method": self.pricing_method,
            "markup_percentage": self.markup_percentage,
            "materials_total": self.materials_total,
            "additional_total": self.additional_total,
            "overhead_cost": self.overhead_cost,
            "cost_price": self.cost_price,
            "selling_price": self.selling_price,
        }

    def snapshot(self) -> dict:
        """Frozen copy embedded into an order at conversion time"""
        return {
            "bom_id": self.id,
            "bom_number": self.bom_number,
            "name": self.name,
            "description": self.description,
            "product": {
                "product_id": self.product_code,
                "name": self.product_name,
                "description": self.product_description,
                "image": self.product_image,
            } if self.product_name else None,
            "materials": [m.snapshot() for m in self.materials],
            "additional_costs": [c.snapshot() for c in self.additional_costs],
            "pricing": {key: _jsonable(value) for key, value in self.pricing.items()},
            "materials_cost": _jsonable(self.materials_cost),
            "additional_costs_total": _jsonable(self.additional_costs_total),
            "total_cost": _jsonable(self.total_cost),
        }


class BomMaterial(Base):
    __tablename__ = 'bom_materials'

    id = Column(Integer, primary_key=True)
    bom_id = Column(Integer, ForeignKey('boms.id', ondelete='CASCADE'), nullable=False)
    wood_type = Column(String(100), nullable=False)
    foam_type = Column(String(100), nullable=True)
    material_type = Column(String(20), default="wood")
    width = Column(DIMENSION, nullable=True)
    height = Column(DIMENSION, nullable=True)
    length = Column(DIMENSION, nullable=True)
    thickness = Column(DIMENSION, nullable=True)
    unit = Column(String(10), default="cm")
    square_meter = Column(Numeric(14, 4), default=Decimal("0"))
    price = Column(MONEY, nullable=False, default=Decimal("0.00"))
    quantity = Column(Integer, nullable=False, default=1)
    description = Column(Text, nullable=True)

    bom = relationship("BOM", back_populates="materials")

    def snapshot(self) -> dict:
        return {
            "wood_type": self.wood_type,
            "foam_type": self.foam_type,
            "material_type": self.material_type,
            "width": _jsonable(self.width),
            "height": _jsonable(self.height),
            "length": _jsonable(self.length),
            "thickness": _jsonable(self.thickness),
            "unit": self.unit,
            "square_meter": _jsonable(self.square_meter),
            "price": _jsonable(self.price),
            "quantity": self.quantity,
            "description": self.description,
        }


class BomAdditionalCost(Base):
    __tablename__ = 'bom_additional_costs'

    id = Column(Integer, primary_key=True)
    bom_id = Column(Integer, ForeignKey('boms.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    amount = Column(MONEY, nullable=False, default=Decimal("0.00"))
    description = Column(Text, nullable=True)

    bom = relationship("BOM", back_populates="additional_costs")

    def snapshot(self) -> dict:
        return {"name": self.name, "amount": _jsonable(self.amount), "description": self.description}


# ==================== ORDERS ====================

class Order(ClientMixin, Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    order_number = Column(String(20), nullable=False, unique=True)
    quotation_id = Column(Integer, ForeignKey('quotations.id', ondelete='SET NULL'), nullable=True)
    quotation_number = Column(String(20), nullable=True)
    description = Column(Text, nullable=True)

    service = Column(JSON, nullable=True)
    boms = Column(JSON, nullable=False, default=list)

    discount = Column(Numeric(5, 2), default=Decimal("0.00"))
    total_cost = Column(MONEY, default=Decimal("0.00"))
    total_selling_price = Column(MONEY, default=Decimal("0.00"))
    discount_amount = Column(MONEY, default=Decimal("0.00"))
    total_amount = Column(MONEY, nullable=False, default=Decimal("0.00"))
    amount_paid = Column(MONEY, nullable=False, default=Decimal("0.00"))
    balance = Column(MONEY, nullable=False, default=Decimal("0.00"))
    currency = Column(String(10), default="NGN")
    payment_status = Column(String(20), default=PaymentStatus.UNPAID.value)
    status = Column(String(20), default=OrderStatus.PENDING.value)

    order_date = Column(DateTime, default=datetime.utcnow)
    start_date = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)
    completed_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    internal_notes = Column(Text, nullable=True)

    invoice_id = Column(Integer, ForeignKey('invoices.id', ondelete='SET NULL'), nullable=True)

    assigned_to = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    assigned_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    assigned_at = Column(DateTime, nullable=True)
    assignment_notes = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("OrderItem", back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.id")
    payments = relationship("OrderPayment", back_populates="order", cascade="all, delete-orphan", order_by="OrderPayment.id")
    assignee = relationship("User", foreign_keys=[assigned_to])

    __table_args__ = (
        # One order per quotation, enforced by storage
        UniqueConstraint('quotation_id', name='uq_order_quotation'),
        Index('ix_order_company_created', 'company_id', 'created_at'),
        CheckConstraint('amount_paid >= 0', name='ck_order_amount_paid_non_negative'),
    )


class OrderItem(LineItemMixin, Base):
    __tablename__ = 'order_items'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False)

    order = relationship("Order", back_populates="items")


class OrderPayment(Base):
    """Append-only. Rows are never updated or deleted through the API."""
    __tablename__ = 'order_payments'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    payment_date = Column(DateTime, default=datetime.utcnow)
    payment_method = Column(String(20), default=PaymentMethod.CASH.value)
    reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    recorded_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    recorded_at = Column(DateTime, default=datetime.utcnow)

    order = relationship("Order", back_populates="payments")
    receipt = relationship("Receipt", back_populates="payment", uselist=False)

    __table_args__ = (
        CheckConstraint('amount > 0', name='ck_order_payment_positive'),
    )


# ==================== INVOICES ====================

class Invoice(ClientMixin, Base):
    __tablename__ = 'invoices'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    invoice_number = Column(String(20), nullable=False, unique=True)
    quotation_id = Column(Integer, ForeignKey('quotations.id', ondelete='SET NULL'), nullable=True)
    quotation_number = Column(String(20), nullable=True)
    order_id = Column(Integer, nullable=True, index=True)
    description = Column(Text, nullable=True)

    service = Column(JSON, nullable=True)
    discount = Column(Numeric(5, 2), default=Decimal("0.00"))
    total_cost = Column(MONEY, default=Decimal("0.00"))
    total_selling_price = Column(MONEY, default=Decimal("0.00"))
    discount_amount = Column(MONEY, default=Decimal("0.00"))
    final_total = Column(MONEY, nullable=False, default=Decimal("0.00"))
    amount_paid = Column(MONEY, nullable=False, default=Decimal("0.00"))
    balance = Column(MONEY, nullable=False, default=Decimal("0.00"))
    currency = Column(String(10), default="NGN")
    payment_status = Column(String(20), default=PaymentStatus.UNPAID.value)
    status = Column(String(20), default=InvoiceStatus.PENDING.value)

    invoice_date = Column(DateTime, default=datetime.utcnow)
    due_date = Column(Date, nullable=False)
    paid_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    items = relationship("InvoiceItem", back_populates="invoice", cascade="all, delete-orphan", order_by="InvoiceItem.id")

    __table_args__ = (
        UniqueConstraint('quotation_id', name='uq_invoice_quotation'),
        Index('ix_invoice_company_created', 'company_id', 'created_at'),
    )


class InvoiceItem(LineItemMixin, Base):
    __tablename__ = 'invoice_items'

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey('invoices.id', ondelete='CASCADE'), nullable=False)

    invoice = relationship("Invoice", back_populates="items")


# ==================== RECEIPTS ====================

class Receipt(ClientMixin, Base):
    """One receipt per order payment. amount_paid is this payment, not the running total."""
    __tablename__ = 'receipts'

    id = Column(Integer, primary_key=True)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    receipt_number = Column(String(20), nullable=False, unique=True)
    payment_id = Column(Integer, ForeignKey('order_payments.id', ondelete='SET NULL'), nullable=True, unique=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='SET NULL'), nullable=True, index=True)
    order_number = Column(String(20), nullable=True)
    invoice_id = Column(Integer, ForeignKey('invoices.id', ondelete='SET NULL'), nullable=True)
    invoice_number = Column(String(20), nullable=True)
    quotation_id = Column(Integer, ForeignKey('quotations.id', ondelete='SET NULL'), nullable=True)
    quotation_number = Column(String(20), nullable=True)

    items = Column(JSON, nullable=False, default=list)
    subtotal = Column(MONEY, default=Decimal("0.00"))
    discount = Column(Numeric(5, 2), default=Decimal("0.00"))
    discount_amount = Column(MONEY, default=Decimal("0.00"))
    total_amount = Column(MONEY, nullable=False)
    amount_paid = Column(MONEY, nullable=False)
    balance = Column(MONEY, nullable=False)
    currency = Column(String(10), default="NGN")
    payment_method = Column(String(20), nullable=True)
    reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    receipt_date = Column(DateTime, default=datetime.utcnow)
    created_at = Column(DateTime, default=datetime.utcnow)

    payment = relationship("OrderPayment", back_populates="receipt")

    __table_args__ = (
        Index('ix_receipt_company_created', 'company_id', 'created_at'),
    )


# ==================== NOTIFICATIONS ====================

class Notification(Base):
    __tablename__ = 'notifications'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    company_id = Column(Integer, ForeignKey('companies.id', ondelete='CASCADE'), nullable=True)
    type = Column(String(50), nullable=False)
    title = Column(String(255), nullable=False)
    message = Column(Text, nullable=False)
    performed_by = Column(Integer, ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    performed_by_name = Column(String(255), nullable=True)
    payload = Column(JSON, nullable=True)
    is_read = Column(Boolean, default=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        Index('ix_notification_user_read', 'user_id', 'is_read'),
    )


def _jsonable(value):
    if isinstance(value, Decimal):
        return str(value)
    return value
