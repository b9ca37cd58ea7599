from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from pydantic import BaseModel, Field, field_validator, model_validator

from app.utils.formatting import line_total

# Largest values the numeric(10,2) and numeric(14,2) columns hold
MAX_QUANTITY = Decimal("99999999.99")
MAX_AMOUNT = Decimal("999999999999.99")


class BudgetItemInput(BaseModel):
    name: str = ""
    quantity: Decimal = Field(default=Decimal("1"), ge=0, le=MAX_QUANTITY)
    unit_price: Decimal = Field(default=Decimal("0"), ge=0, le=MAX_AMOUNT)

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def blank_as_zero(cls, v):
        # Empty form cells arrive as "" or null
        if v is None or v == "":
            return Decimal("0")
        return v

    @model_validator(mode="after")
    def total_fits(self):
        if line_total(self.quantity, self.unit_price) > MAX_AMOUNT:
            raise ValueError(f"Line total of '{self.name}' is too large")
        return self


class BudgetBase(BaseModel):
    plate: str = ""
    owner: str = ""
    make: Optional[str] = None
    model: Optional[str] = None
    mileage: Optional[str] = None
    vin: Optional[str] = None
    description: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("plate", mode="before")
    @classmethod
    def normalize_plate(cls, v):
        if v is None:
            return ""
        return str(v).strip().upper()

    @field_validator("mileage", mode="before")
    @classmethod
    def mileage_as_text(cls, v):
        if v is None:
            return None
        return str(v)


class BudgetCreate(BudgetBase):
    parts: List[BudgetItemInput] = []
    labor: List[BudgetItemInput] = []

    @model_validator(mode="after")
    def total_fits(self):
        total = sum(
            (line_total(item.quantity, item.unit_price)
             for item in self.parts + self.labor if item.name.strip()),
            Decimal("0"),
        )
        if total > MAX_AMOUNT:
            raise ValueError("Budget total is too large")
        return self


class BudgetUpdate(BudgetCreate):
    """Edits replace every field and the whole item list."""
    pass


class BudgetItemResponse(BaseModel):
    id: str
    kind: str
    position: int
    name: str
    quantity: float
    unit_price: float
    total: float


class BudgetSummaryResponse(BaseModel):
    id: str
    number: int
    date: date
    owner: str
    plate: str
    total: float


class BudgetResponse(BudgetBase):
    id: str
    number: int
    date: date
    created_at: datetime
    updated_at: datetime
    parts_subtotal: float
    labor_subtotal: float
    total: float
    parts: List[BudgetItemResponse]
    labor: List[BudgetItemResponse]
    message: Optional[str] = None


class BudgetListResponse(BaseModel):
    count: int
    limit: int
    offset: int
    items: List[BudgetSummaryResponse]


class VehicleInfoResponse(BaseModel):
    plate: str
    make: Optional[str] = None
    model: Optional[str] = None
    owner: Optional[str] = None
    mileage: Optional[str] = None
    vin: Optional[str] = None
