"""
Pydantic Schemas for API Validation
"""
from pydantic import BaseModel, EmailStr, Field, ConfigDict, BeforeValidator, field_validator, model_validator
from typing import Annotated, Dict, List, Literal, Optional, Union
from datetime import datetime, date
from decimal import Decimal

from woodflow.models import PERMISSION_MODULES


UnitLiteral = Literal["mm", "cm", "m", "in", "inch", "ft", "feet"]
PaymentMethodLiteral = Literal["cash", "bank_transfer", "transfer", "cheque", "card", "other"]

NonNegative = Annotated[Decimal, Field(ge=0)]


def _reject_null(value):
    if value is None:
        raise ValueError("may be omitted but not null")
    return value


# Optional on update, but a NOT NULL column once stored
UpdatableName = Annotated[Optional[str], BeforeValidator(_reject_null)]


def _check_permission_keys(value: Optional[Dict[str, bool]]) -> Optional[Dict[str, bool]]:
    if value is None:
        return value
    unknown = sorted(set(value) - set(PERMISSION_MODULES))
    if unknown:
        raise ValueError(f"Unknown permission modules: {', '.join(unknown)}")
    return value


# ==================== AUTH SCHEMAS ====================

class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class SignupRequest(BaseModel):
    full_name: str = Field(..., min_length=2, max_length=255)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=50)
    password: str = Field(..., min_length=6)


class MessageResponse(BaseModel):
    message: str


# ==================== USER & COMPANY SCHEMAS ====================

class UserResponse(BaseModel):
    id: int
    email: str
    full_name: str
    phone: Optional[str] = None
    is_active: bool
    active_company_index: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MembershipResponse(BaseModel):
    id: int
    user_id: int
    company_id: int
    role: str
    position: Optional[str] = None
    permissions: Dict[str, bool] = {}
    access_granted: bool
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class CompanyCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    address: Optional[str] = None


class CompanyResponse(BaseModel):
    id: int
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    logo_url: Optional[str] = None
    owner_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MyCompanyResponse(BaseModel):
    index: int
    is_active: bool
    company: CompanyResponse
    membership: MembershipResponse


class SwitchCompanyRequest(BaseModel):
    index: int = Field(..., ge=0)


class StaffInvite(BaseModel):
    email: EmailStr
    role: Literal["admin", "staff"] = "staff"
    position: Optional[str] = Field(None, max_length=100)
    permissions: Dict[str, bool] = {}

    @field_validator("permissions")
    @classmethod
    def known_modules(cls, value):
        return _check_permission_keys(value)


class StaffPermissionsUpdate(BaseModel):
    permissions: Dict[str, bool]

    @field_validator("permissions")
    @classmethod
    def known_modules(cls, value):
        return _check_permission_keys(value)


class SinglePermissionRequest(BaseModel):
    module: str

    @field_validator("module")
    @classmethod
    def known_module(cls, value: str) -> str:
        if value not in PERMISSION_MODULES:
            raise ValueError(f"Unknown permission module: {value}")
        return value


class RoleUpdate(BaseModel):
    role: Literal["admin", "staff"]


class StaffResponse(MembershipResponse):
    full_name: str
    email: str
    phone: Optional[str] = None


# ==================== LINE ITEM SCHEMAS ====================

class DimensionsMixin(BaseModel):
    width: Optional[NonNegative] = None
    height: Optional[NonNegative] = None
    length: Optional[NonNegative] = None
    thickness: Optional[NonNegative] = None
    unit: UnitLiteral = "cm"
    square_meter: Optional[NonNegative] = None


class LineItemCreate(DimensionsMixin):
    wood_type: str = Field(..., min_length=1, max_length=100)
    foam_type: Optional[str] = Field(None, max_length=100)
    quantity: int = Field(1, ge=1)
    cost_price: NonNegative
    selling_price: NonNegative
    description: Optional[str] = None
    image_url: Optional[str] = None


class LineItemResponse(LineItemCreate):
    id: int
    square_meter: Decimal

    model_config = ConfigDict(from_attributes=True)


class ServiceBlock(BaseModel):
    product: Optional[str] = None
    quantity: Optional[int] = Field(None, ge=0)
    discount: Optional[NonNegative] = None
    total_price: Optional[NonNegative] = None


class ClientFields(BaseModel):
    client_address: Optional[str] = None
    nearest_bus_stop: Optional[str] = None
    phone_number: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None


# ==================== QUOTATION SCHEMAS ====================

class QuotationCreate(ClientFields):
    client_name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    items: List[LineItemCreate] = []
    service: Optional[ServiceBlock] = None
    discount: Decimal = Field(Decimal("0"), ge=0, le=100)
    status: Literal["draft", "sent"] = "draft"
    due_date: Optional[date] = None


class QuotationUpdate(ClientFields):
    client_name: UpdatableName = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    items: Optional[List[LineItemCreate]] = None
    service: Optional[ServiceBlock] = None
    discount: Optional[Decimal] = Field(None, ge=0, le=100)
    due_date: Optional[date] = None


class StatusUpdate(BaseModel):
    status: str = Field(..., min_length=1)


class QuotationResponse(BaseModel):
    id: int
    quotation_number: str
    client_name: str
    client_address: Optional[str] = None
    nearest_bus_stop: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    items: List[LineItemResponse] = []
    service: Optional[ServiceBlock] = None
    discount: Decimal
    total_cost: Decimal
    total_selling_price: Decimal
    discount_amount: Decimal
    final_total: Decimal
    status: str
    due_date: Optional[date] = None
    user_id: Optional[int] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ClientResponse(BaseModel):
    client_name: str
    client_address: Optional[str] = None
    nearest_bus_stop: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    quotation_count: int
    last_quotation_at: Optional[datetime] = None


# ==================== BOM SCHEMAS ====================

class MaterialCreate(DimensionsMixin):
    wood_type: str = Field(..., min_length=1, max_length=100)
    foam_type: Optional[str] = Field(None, max_length=100)
    material_type: Literal["wood", "foam", "other"] = "wood"
    price: NonNegative
    quantity: int = Field(1, ge=1)
    description: Optional[str] = None


class MaterialResponse(MaterialCreate):
    id: int
    square_meter: Decimal

    model_config = ConfigDict(from_attributes=True)


class AdditionalCostCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    amount: NonNegative
    description: Optional[str] = None


class AdditionalCostResponse(AdditionalCostCreate):
    id: int

    model_config = ConfigDict(from_attributes=True)


class PricingOverrides(BaseModel):
    """Any value given here is stored as-is and wins over the computed figure."""
    pricing_method: Optional[str] = Field(None, max_length=50)
    markup_percentage: Optional[Decimal] = None
    materials_total: Optional[Decimal] = None
    additional_total: Optional[Decimal] = None
    overhead_cost: Optional[Decimal] = None
    cost_price: Optional[Decimal] = None
    selling_price: Optional[Decimal] = None


class PricingBlock(BaseModel):
    pricing_method: Optional[str] = None
    markup_percentage: Decimal
    materials_total: Decimal
    additional_total: Decimal
    overhead_cost: Decimal
    cost_price: Decimal
    selling_price: Decimal


class BomProductInput(BaseModel):
    """Either reference a catalogue product or describe one inline"""
    product_ref_id: Optional[int] = None
    product_code: Optional[str] = Field(None, max_length=100)
    name: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = None
    image: Optional[str] = None


class ExpectedDuration(BaseModel):
    value: int = Field(..., ge=1)
    unit: Literal["days", "weeks", "months"] = "days"


class BOMCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    quotation_id: Optional[int] = None
    product: Optional[BomProductInput] = None
    materials: List[MaterialCreate] = []
    additional_costs: List[AdditionalCostCreate] = []
    pricing: Optional[PricingOverrides] = None
    expected_duration: Optional[ExpectedDuration] = None
    due_date: Optional[date] = None


class BOMUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    quotation_id: Optional[int] = None
    product: Optional[BomProductInput] = None
    materials: Optional[List[MaterialCreate]] = None
    additional_costs: Optional[List[AdditionalCostCreate]] = None
    pricing: Optional[PricingOverrides] = None
    expected_duration: Optional[ExpectedDuration] = None
    due_date: Optional[date] = None


class BOMResponse(BaseModel):
    id: int
    bom_number: str
    name: str
    description: Optional[str] = None
    quotation_id: Optional[int] = None
    product_ref_id: Optional[int] = None
    product_code: Optional[str] = None
    product_name: Optional[str] = None
    product_description: Optional[str] = None
    product_image: Optional[str] = None
    materials: List[MaterialResponse] = []
    additional_costs: List[AdditionalCostResponse] = []
    pricing: PricingBlock
    materials_cost: Decimal
    additional_costs_total: Decimal
    total_cost: Decimal
    expected_duration_value: Optional[int] = None
    expected_duration_unit: Optional[str] = None
    due_date: Optional[date] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


# ==================== ORDER SCHEMAS ====================

class OrderCreate(BaseModel):
    quotation_id: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    currency: Optional[str] = Field(None, max_length=10)


class OrderUpdate(ClientFields):
    client_name: UpdatableName = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., gt=0)
    payment_method: PaymentMethodLiteral = "cash"
    reference: Optional[str] = Field(None, max_length=255)
    notes: Optional[str] = None
    payment_date: Optional[datetime] = None

    @field_validator("amount")
    @classmethod
    def finite_amount(cls, value: Decimal) -> Decimal:
        if not value.is_finite():
            raise ValueError("Amount must be a finite number")
        return value


class PaymentResponse(BaseModel):
    id: int
    amount: Decimal
    payment_date: datetime
    payment_method: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    recorded_by: Optional[int] = None
    recorded_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AssignRequest(BaseModel):
    staff_id: int
    notes: Optional[str] = None


class OrderResponse(BaseModel):
    id: int
    order_number: str
    quotation_id: Optional[int] = None
    quotation_number: Optional[str] = None
    client_name: str
    client_address: Optional[str] = None
    nearest_bus_stop: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    items: List[LineItemResponse] = []
    boms: List[dict] = []
    service: Optional[ServiceBlock] = None
    discount: Decimal
    total_cost: Decimal
    total_selling_price: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    currency: str
    payment_status: str
    status: str
    payments: List[PaymentResponse] = []
    order_date: datetime
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    completed_date: Optional[datetime] = None
    notes: Optional[str] = None
    internal_notes: Optional[str] = None
    invoice_id: Optional[int] = None
    assigned_to: Optional[int] = None
    assigned_by: Optional[int] = None
    assigned_at: Optional[datetime] = None
    assignment_notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class OrderStats(BaseModel):
    total_orders: int
    by_status: Dict[str, int]
    by_payment_status: Dict[str, int]
    total_revenue: Decimal
    total_collected: Decimal
    total_outstanding: Decimal
    total_cost: Decimal
    profit_margin: Decimal


# ==================== RECEIPT SCHEMAS ====================

class ReceiptResponse(BaseModel):
    id: int
    receipt_number: str
    payment_id: Optional[int] = None
    order_id: Optional[int] = None
    order_number: Optional[str] = None
    invoice_id: Optional[int] = None
    invoice_number: Optional[str] = None
    quotation_id: Optional[int] = None
    quotation_number: Optional[str] = None
    client_name: str
    client_address: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    items: List[dict] = []
    subtotal: Decimal
    discount: Decimal
    discount_amount: Decimal
    total_amount: Decimal
    amount_paid: Decimal
    balance: Decimal
    currency: str
    payment_method: Optional[str] = None
    reference: Optional[str] = None
    notes: Optional[str] = None
    receipt_date: datetime

    model_config = ConfigDict(from_attributes=True)


class PaymentResult(BaseModel):
    message: str
    order: OrderResponse
    receipt: ReceiptResponse


# ==================== INVOICE SCHEMAS ====================

class InvoiceCreate(BaseModel):
    quotation_id: Optional[int] = None
    order_id: Optional[int] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None
    send_email: bool = False

    @model_validator(mode="after")
    def one_source(self):
        if self.quotation_id is None and self.order_id is None:
            raise ValueError("Either quotation_id or order_id is required")
        return self


class InvoiceUpdate(ClientFields):
    client_name: UpdatableName = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    due_date: Optional[date] = None
    notes: Optional[str] = None


class InvoicePaymentUpdate(BaseModel):
    amount_paid: NonNegative
    notes: Optional[str] = None


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    quotation_id: Optional[int] = None
    quotation_number: Optional[str] = None
    order_id: Optional[int] = None
    client_name: str
    client_address: Optional[str] = None
    nearest_bus_stop: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    description: Optional[str] = None
    items: List[LineItemResponse] = []
    service: Optional[ServiceBlock] = None
    discount: Decimal
    total_cost: Decimal
    total_selling_price: Decimal
    discount_amount: Decimal
    final_total: Decimal
    amount_paid: Decimal
    balance: Decimal
    currency: str
    payment_status: str
    status: str
    invoice_date: datetime
    due_date: date
    paid_date: Optional[datetime] = None
    notes: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class InvoiceStats(BaseModel):
    total_invoices: int
    by_status: Dict[str, int]
    total_invoiced: Decimal
    total_paid: Decimal
    total_outstanding: Decimal


# ==================== PRODUCT & OVERHEAD SCHEMAS ====================

class ProductCreate(BaseModel):
    product_code: str = Field(..., min_length=1, max_length=100)
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    sub_category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None


class ProductUpdate(BaseModel):
    product_code: Optional[str] = Field(None, min_length=1, max_length=100)
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    sub_category: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    image_url: Optional[str] = None


class ProductResponse(ProductCreate):
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


PeriodLiteral = Literal["daily", "weekly", "monthly", "yearly"]


class OverheadCostCreate(BaseModel):
    category: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None
    cost: NonNegative
    period: PeriodLiteral = "monthly"


class OverheadCostUpdate(BaseModel):
    category: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    cost: Optional[NonNegative] = None
    period: Optional[PeriodLiteral] = None


class OverheadCostResponse(OverheadCostCreate):
    id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MaterialSize(BaseModel):
    width: NonNegative
    length: NonNegative


class FoamDensity(BaseModel):
    density: NonNegative
    unit: Optional[str] = Field(None, max_length=20)


class FoamThickness(BaseModel):
    thickness: NonNegative
    unit: Optional[str] = Field(None, max_length=20)


class MaterialType(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    price_per_sqm: Optional[NonNegative] = None


class StockMaterialCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    unit: UnitLiteral = "cm"
    standard_width: Decimal = Field(..., gt=0)
    standard_length: Decimal = Field(..., gt=0)
    standard_unit: UnitLiteral = "cm"
    price_per_sqm: NonNegative
    sizes: List[MaterialSize] = []
    foam_densities: List[FoamDensity] = []
    foam_thicknesses: List[FoamThickness] = []
    types: List[MaterialType] = []
    waste_threshold: Decimal = Field(Decimal("0.75"), ge=0, le=1)
    notes: Optional[str] = None


class StockMaterialUpdate(BaseModel):
    name: UpdatableName = Field(None, min_length=1, max_length=255)
    category: Optional[str] = Field(None, max_length=100)
    unit: Optional[UnitLiteral] = None
    standard_width: Optional[Decimal] = Field(None, gt=0)
    standard_length: Optional[Decimal] = Field(None, gt=0)
    standard_unit: Optional[UnitLiteral] = None
    price_per_sqm: Optional[NonNegative] = None
    sizes: Optional[List[MaterialSize]] = None
    foam_densities: Optional[List[FoamDensity]] = None
    foam_thicknesses: Optional[List[FoamThickness]] = None
    types: Optional[List[MaterialType]] = None
    waste_threshold: Optional[Decimal] = Field(None, ge=0, le=1)
    notes: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("unit", "standard_width", "standard_length", "standard_unit", "price_per_sqm",
                     "sizes", "foam_densities", "foam_thicknesses", "types", "waste_threshold", "is_active",
                     mode="before")
    @classmethod
    def not_null(cls, value):
        return _reject_null(value)


class StockMaterialResponse(StockMaterialCreate):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MaterialTypesAdd(BaseModel):
    types: List[MaterialType] = Field(..., min_length=1)


class MaterialCostRequest(DimensionsMixin):
    quantity: int = Field(1, ge=1)
    material_type: Optional[str] = None


class MaterialCostResponse(BaseModel):
    material_id: int
    material_type: Optional[str] = None
    price_per_sqm: Decimal
    square_meter: Decimal
    required_area: Decimal
    sheet_area: Decimal
    sheets: Decimal
    full_sheets: int
    waste_area: Decimal
    total_cost: Decimal


# ==================== CLIENT MAINTENANCE ====================

class ClientMatch(BaseModel):
    """Quotations are matched on every criterion given"""
    client_name: Optional[str] = Field(None, min_length=1)
    phone_number: Optional[str] = None
    email: Optional[str] = None

    @model_validator(mode="after")
    def require_criteria(self):
        if not (self.client_name or self.phone_number or self.email):
            raise ValueError("Match on client_name, phone_number or email")
        return self


class ClientDetails(ClientFields):
    client_name: UpdatableName = Field(None, min_length=1, max_length=255)


class ClientUpdateRequest(BaseModel):
    match: ClientMatch
    update: ClientDetails


class ClientDeleteRequest(BaseModel):
    match: ClientMatch


class ClientChangeResult(BaseModel):
    client_name: str
    quotations: int

# ==================== SETTINGS SCHEMAS ====================

_TRUE_STRINGS = {"true", "1", "yes", "on"}
_FALSE_STRINGS = {"false", "0", "no", "off"}


def parse_flag(value):
    """
    Parse a settings flag. Unrecognised input becomes None so the stored
    value is kept.
    """
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, (int, float)):
        return {1: True, 0: False}.get(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    return None


Flag = Annotated[Optional[bool], BeforeValidator(parse_flag)]


class SettingsUpdate(BaseModel):
    cloud_sync_enabled: Flag = None
    auto_backup_enabled: Flag = None
    push_notification: Flag = None
    email_notification: Flag = None
    quotation_reminders: Flag = None
    project_deadlines: Flag = None
    backup_alerts: Flag = None


class SettingsResponse(BaseModel):
    company_id: int
    cloud_sync_enabled: bool
    auto_backup_enabled: bool
    push_notification: bool
    email_notification: bool
    quotation_reminders: bool
    project_deadlines: bool
    backup_alerts: bool
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


# ==================== NOTIFICATION SCHEMAS ====================

class _Payload(BaseModel):
    schema_version: int = 1


class DocumentEvent(_Payload):
    kind: Literal["document"] = "document"
    document_type: Literal["quotation", "bom", "order", "invoice"]
    document_id: int
    document_number: Optional[str] = None
    action: Literal["created", "updated", "deleted", "status_changed"]
    client_name: Optional[str] = None
    status: Optional[str] = None


class PaymentEvent(_Payload):
    kind: Literal["payment"] = "payment"
    order_id: int
    order_number: str
    receipt_number: str
    amount: Decimal
    balance: Decimal
    payment_status: str


class AssignmentEvent(_Payload):
    kind: Literal["assignment"] = "assignment"
    order_id: int
    order_number: str
    action: Literal["assigned", "unassigned"]
    staff_id: int
    notes: Optional[str] = None


class MembershipEvent(_Payload):
    kind: Literal["membership"] = "membership"
    company_id: int
    company_name: str
    action: Literal[
        "staff_added", "staff_removed", "permissions_updated", "permission_granted",
        "permission_revoked", "access_granted", "access_revoked", "role_changed",
    ]
    permissions: Optional[Dict[str, bool]] = None
    module: Optional[str] = None
    role: Optional[str] = None


class CatalogueEvent(_Payload):
    kind: Literal["catalogue"] = "catalogue"
    entity: Literal["product", "overhead_cost", "material"]
    entity_id: int
    name: Optional[str] = None
    action: Literal["created", "updated", "deleted"]


class ClientEvent(_Payload):
    kind: Literal["client"] = "client"
    client_name: str
    action: Literal["updated", "deleted"]
    quotations: int


NotificationPayload = Annotated[
    Union[DocumentEvent, PaymentEvent, AssignmentEvent, MembershipEvent, CatalogueEvent, ClientEvent],
    Field(discriminator="kind"),
]


class NotificationResponse(BaseModel):
    id: int
    type: str
    title: str
    message: str
    company_id: Optional[int] = None
    performed_by: Optional[int] = None
    performed_by_name: Optional[str] = None
    payload: Optional[NotificationPayload] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    unread: int
