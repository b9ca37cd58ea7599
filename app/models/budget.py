import uuid
from datetime import date, datetime, timezone
from sqlalchemy import Column, Date, DateTime, Integer, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
from app.db import Base
from app.models.budget_item import ItemKind


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Budget(Base):
    """A repair quote for one vehicle visit"""
    __tablename__ = "budgets"

    id = Column(UUID(as_uuid=False), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)
    number = Column(Integer, nullable=False, unique=True)
    date = Column(Date, nullable=False, default=date.today)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)

    # Vehicle and owner
    plate = Column(String(20), nullable=False, index=True)
    make = Column(String, nullable=True)
    model = Column(String, nullable=True)
    owner = Column(String, nullable=False)
    mileage = Column(String(20), nullable=True)
    vin = Column(String(32), nullable=True)

    description = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    parts_subtotal = Column(Numeric(precision=14, scale=2), nullable=False, default=0)
    labor_subtotal = Column(Numeric(precision=14, scale=2), nullable=False, default=0)
    total = Column(Numeric(precision=14, scale=2), nullable=False, default=0)

    # Relationship
    items = relationship(
        "BudgetItem",
        backref="budget",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="BudgetItem.position",
    )

    @property
    def parts(self):
        return [item for item in self.items if item.kind == ItemKind.PART]

    @property
    def labor(self):
        return [item for item in self.items if item.kind == ItemKind.LABOR]
