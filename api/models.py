"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
Response models mirror the domain dataclasses field for field, so they are
built with `Model.model_validate(entity, from_attributes=True)`.
Update models carry only optional fields; routers pass
`model_dump(exclude_unset=True)` to the repositories as the change set.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar, List, Optional, Tuple

from pydantic import BaseModel, Field, model_validator

from domain.account import AccountType
from domain.dispenser import DispenserStatus
from domain.invoice import InvoiceKind
from domain.voucher import VoucherKind


class EntityResponse(BaseModel):
    """Base for responses built from domain dataclasses."""

    class Config:
        from_attributes = True


class PartialUpdate(BaseModel):
    """
    Base for PATCH bodies.

    Omitted fields are left unchanged. Fields named in `not_nullable` back
    required domain values, so an explicit null for them is rejected with a
    422 rather than clearing the value.
    """

    not_nullable: ClassVar[Tuple[str, ...]] = ()

    @model_validator(mode="before")
    @classmethod
    def _reject_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            nulled = sorted(k for k in cls.not_nullable if k in data and data[k] is None)
            if nulled:
                raise ValueError(f"Fields cannot be null: {', '.join(nulled)}")
        return data


class ErrorResponse(BaseModel):
    """Body of every error response."""
    error: str
    detail: str
    status_code: int

    class Config:
        json_schema_extra = {
            "example": {
                "error": "InsufficientStock",
                "detail": "Insufficient stock in tank T-1. Available: 40, Required: 55",
                "status_code": 409
            }
        }


# ============================================================================
# Reading Models
# ============================================================================

class ReadingRequest(BaseModel):
    """Nozzle meter reading submission."""
    nozzle_id: str = Field(..., min_length=1)
    current_reading: Decimal = Field(..., ge=0, description="Meter value now")
    previous_reading: Optional[Decimal] = Field(
        None,
        ge=0,
        description="Meter value the form was loaded with; defaults to the nozzle's last reading"
    )
    new_price: Optional[Decimal] = Field(None, gt=0, description="Optional sales price override")
    tank_id: Optional[str] = Field(None, description="Optional override of the nozzle's tank")

    class Config:
        json_schema_extra = {
            "example": {
                "nozzle_id": "N-1",
                "previous_reading": "1200.00",
                "current_reading": "1250.50",
                "new_price": "272.50"
            }
        }


class ReadingResponse(EntityResponse):
    reading_id: str
    nozzle_id: str
    dispenser_id: str
    product_id: str
    tank_id: str
    previous_reading: Decimal
    current_reading: Decimal
    sales_volume: Decimal
    unit_price: Decimal
    sales_amount: Decimal
    timestamp: datetime


class ReadingResultResponse(EntityResponse):
    """Committed reading plus the state it left behind."""
    reading: ReadingResponse
    tank_remaining_stock: Decimal
    nozzle_total_sales: Decimal
    price_updated: bool
    low_stock: bool


class ReadingHistoryItem(EntityResponse):
    reading: ReadingResponse
    recorded: str


# ============================================================================
# Tank / Product Models
# ============================================================================

class TankCreate(BaseModel):
    tank_id: str = ""
    name: str = Field(..., min_length=1)
    product_id: Optional[str] = None
    capacity: Decimal = Field(..., gt=0)
    remaining_stock: Decimal = Field(Decimal("0"), ge=0)
    alert_threshold: Decimal = Field(Decimal("0"), ge=0)
    code: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Tank 1",
                "product_id": "P-PETROL",
                "capacity": "20000",
                "remaining_stock": "12500",
                "alert_threshold": "2000",
                "code": "T1"
            }
        }


class TankUpdate(PartialUpdate):
    not_nullable = ("name", "capacity", "remaining_stock", "alert_threshold")

    name: Optional[str] = None
    product_id: Optional[str] = None
    capacity: Optional[Decimal] = Field(None, gt=0)
    remaining_stock: Optional[Decimal] = Field(None, ge=0)
    alert_threshold: Optional[Decimal] = Field(None, ge=0)
    code: Optional[str] = None


class TankResponse(EntityResponse):
    tank_id: str
    name: str
    product_id: Optional[str]
    capacity: Decimal
    remaining_stock: Decimal
    alert_threshold: Decimal
    code: Optional[str]
    version: int
    fill_ratio: Decimal
    is_below_threshold: bool


class PriceChangeResponse(EntityResponse):
    price: Decimal
    changed_at: datetime


class ProductCreate(BaseModel):
    product_id: str = ""
    name: str = Field(..., min_length=1)
    sales_price: Decimal = Field(..., ge=0)
    purchase_price: Decimal = Field(Decimal("0"), ge=0)
    category: Optional[str] = None
    opening_quantity: Decimal = Field(Decimal("0"), ge=0)
    tank_id: Optional[str] = None
    brand: Optional[str] = None
    batch_no: Optional[str] = None


class ProductUpdate(PartialUpdate):
    not_nullable = ("name", "sales_price", "purchase_price", "opening_quantity")

    name: Optional[str] = None
    sales_price: Optional[Decimal] = Field(None, ge=0)
    purchase_price: Optional[Decimal] = Field(None, ge=0)
    category: Optional[str] = None
    opening_quantity: Optional[Decimal] = Field(None, ge=0)
    tank_id: Optional[str] = None
    brand: Optional[str] = None
    batch_no: Optional[str] = None


class ProductResponse(EntityResponse):
    product_id: str
    name: str
    sales_price: Decimal
    purchase_price: Decimal
    category: Optional[str]
    opening_quantity: Decimal
    tank_id: Optional[str]
    brand: Optional[str]
    batch_no: Optional[str]
    price_history: List[PriceChangeResponse]


# ============================================================================
# Dispenser / Nozzle Models
# ============================================================================

class DispenserCreate(BaseModel):
    dispenser_id: str = ""
    name: str = Field(..., min_length=1)
    location: Optional[str] = None
    status: DispenserStatus = DispenserStatus.ACTIVE
    code: Optional[str] = None
    last_maintenance: Optional[datetime] = None


class DispenserUpdate(PartialUpdate):
    not_nullable = ("name", "status")

    name: Optional[str] = None
    location: Optional[str] = None
    status: Optional[DispenserStatus] = None
    code: Optional[str] = None
    last_maintenance: Optional[datetime] = None


class DispenserResponse(EntityResponse):
    dispenser_id: str
    name: str
    location: Optional[str]
    status: DispenserStatus
    code: Optional[str]
    last_maintenance: Optional[datetime]


class NozzleCreate(BaseModel):
    """New nozzle; tank_id defaults to the product's tank."""
    nozzle_id: str = ""
    dispenser_id: str = Field(..., min_length=1)
    product_id: str = Field(..., min_length=1)
    tank_id: Optional[str] = None
    position: Optional[str] = Field(None, description="Nozzle position on the dispenser, 1-4")


class NozzleUpdate(PartialUpdate):
    not_nullable = ("dispenser_id", "product_id")

    dispenser_id: Optional[str] = None
    product_id: Optional[str] = None
    tank_id: Optional[str] = None
    position: Optional[str] = None


class NozzleResponse(EntityResponse):
    nozzle_id: str
    dispenser_id: str
    product_id: str
    tank_id: Optional[str]
    position: Optional[str]
    last_reading: Decimal
    total_sales: Decimal
    last_updated: Optional[datetime]
    version: int


# ============================================================================
# Dip Chart Models
# ============================================================================

class DipRecordRequest(BaseModel):
    """Exactly one of dip_mm / dip_inches."""
    tank_id: str = Field(..., min_length=1)
    dip_mm: Optional[Decimal] = Field(None, ge=0)
    dip_inches: Optional[Decimal] = Field(None, ge=0)
    recorded_at: Optional[datetime] = None

    class Config:
        json_schema_extra = {
            "example": {"tank_id": "T-1", "dip_mm": "1250"}
        }


class DipImportRequest(BaseModel):
    tank_id: str = Field(..., min_length=1)
    text: str = Field(..., description="One 'inches,liters' pair per line")

    class Config:
        json_schema_extra = {
            "example": {"tank_id": "T-1", "text": "10,1520\n11,1690\n12,1865"}
        }


class DipImportResponse(BaseModel):
    tank_id: str
    imported: int


class DipEntryResponse(EntityResponse):
    entry_id: str
    tank_id: str
    dip_mm: Decimal
    dip_inches: Decimal
    dip_liters: Decimal
    recorded_at: datetime
    chart_code: Optional[str]


class VolumeResponse(BaseModel):
    dip_mm: Decimal
    dip_liters: Decimal


# ============================================================================
# Report Models
# ============================================================================

class ProductSalesRowResponse(EntityResponse):
    product_id: str
    product_name: str
    category: str
    unit_price: Decimal
    total_volume: Decimal
    total_amount: Decimal
    previous_reading_sum: Decimal
    current_reading_sum: Decimal
    reading_count: int


class CategorySummaryResponse(EntityResponse):
    category: str
    products: List[ProductSalesRowResponse]
    subtotal_volume: Decimal
    subtotal_amount: Decimal


class SalesComparisonResponse(EntityResponse):
    previous_total: Decimal
    current_total: Decimal
    difference: Decimal
    percent_change: Decimal


class TankDipRowResponse(EntityResponse):
    tank_id: str
    tank_name: str
    product_name: str
    capacity: Decimal
    remaining_stock: Decimal
    dip_mm: Decimal
    dip_liters: Decimal
    recorded_at: datetime
    discrepancy: Decimal
    loss: Decimal
    gain_loss: Decimal


class SalesReportResponse(EntityResponse):
    start: datetime
    end: datetime
    granularity: str
    categories: List[CategorySummaryResponse]
    grand_total: Decimal
    total_volume: Decimal
    comparison: Optional[SalesComparisonResponse]
    dip_rows: List[TankDipRowResponse]
    total_loss: Decimal


# ============================================================================
# Account / Invoice / Voucher Models
# ============================================================================

class AccountCreate(BaseModel):
    account_id: str = ""
    name: str = Field(..., min_length=1)
    account_type: AccountType
    code: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    opening_debit: Decimal = Field(Decimal("0"), ge=0)
    opening_credit: Decimal = Field(Decimal("0"), ge=0)
    status: str = Field("active", pattern="^(active|inactive)$")


class AccountUpdate(PartialUpdate):
    not_nullable = ("name", "account_type", "opening_debit", "opening_credit", "status")

    name: Optional[str] = None
    account_type: Optional[AccountType] = None
    code: Optional[str] = None
    address: Optional[str] = None
    city: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    opening_debit: Optional[Decimal] = Field(None, ge=0)
    opening_credit: Optional[Decimal] = Field(None, ge=0)
    status: Optional[str] = Field(None, pattern="^(active|inactive)$")


class AccountResponse(EntityResponse):
    account_id: str
    name: str
    account_type: AccountType
    code: Optional[str]
    address: Optional[str]
    city: Optional[str]
    phone: Optional[str]
    email: Optional[str]
    opening_debit: Decimal
    opening_credit: Decimal
    opening_balance: Decimal
    status: str
    created_at: Optional[datetime]
    updated_at: Optional[datetime]


class InvoiceCreate(BaseModel):
    """party_id: supplier (purchase side) or customer (sale side) account."""
    invoice_id: str = ""
    party_id: str = Field(..., min_length=1)
    product_id: Optional[str] = None
    quantity: Decimal = Field(..., ge=0)
    unit_price: Decimal = Field(..., ge=0)
    date: datetime
    tank_id: Optional[str] = None
    reference: Optional[str] = None


class InvoiceUpdate(PartialUpdate):
    not_nullable = ("party_id", "quantity", "unit_price", "date")

    party_id: Optional[str] = None
    product_id: Optional[str] = None
    quantity: Optional[Decimal] = Field(None, ge=0)
    unit_price: Optional[Decimal] = Field(None, ge=0)
    date: Optional[datetime] = None
    tank_id: Optional[str] = None
    reference: Optional[str] = None


class InvoiceResponse(EntityResponse):
    invoice_id: str
    kind: InvoiceKind
    party_id: str
    product_id: Optional[str]
    quantity: Decimal
    unit_price: Decimal
    total: Decimal
    date: datetime
    tank_id: Optional[str]
    reference: Optional[str]


class VoucherCreate(BaseModel):
    voucher_id: str = ""
    reference: str = Field(..., min_length=1)
    date: datetime
    amount: Optional[Decimal] = None
    description: Optional[str] = None


class VoucherUpdate(PartialUpdate):
    not_nullable = ("reference", "date")

    reference: Optional[str] = None
    date: Optional[datetime] = None
    amount: Optional[Decimal] = None
    description: Optional[str] = None


class VoucherResponse(EntityResponse):
    voucher_id: str
    kind: VoucherKind
    reference: str
    date: datetime
    amount: Optional[Decimal]
    description: Optional[str]


# ============================================================================
# Settings Models
# ============================================================================

class CompanySettingsUpdate(PartialUpdate):
    not_nullable = ("name",)

    name: Optional[str] = None
    location: Optional[str] = None
    company_email: Optional[str] = None
    company_phone: Optional[str] = None
    logo_url: Optional[str] = None


class CompanySettingsResponse(EntityResponse):
    name: str
    location: Optional[str]
    company_email: Optional[str]
    company_phone: Optional[str]
    logo_url: Optional[str]
    updated_at: Optional[datetime]
