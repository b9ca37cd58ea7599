import enum
import uuid
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from app.db import Base


class ItemKind(enum.Enum):
    """Enum for line item kinds"""
    PART = "part"
    LABOR = "labor"


class BudgetItem(Base):
    __tablename__ = "budget_items"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    budget_id = Column(UUID(as_uuid=False), ForeignKey('budgets.id', ondelete='CASCADE'), nullable=False, index=True)
    kind = Column(SQLEnum(ItemKind, name='budget_item_kind_enum', values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    name = Column(String, nullable=False)
    quantity = Column(Numeric(precision=10, scale=2), nullable=False, default=1)
    unit_price = Column(Numeric(precision=14, scale=2), nullable=False, default=0)
    total = Column(Numeric(precision=14, scale=2), nullable=False, default=0)
