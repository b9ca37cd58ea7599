"""
Budget Service
Handles creation, search, edition and deletion of repair budgets and their
line items.
"""
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy import and_, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import raiseload

from app.exceptions import BadRequestError, BudgetNotFoundError
from app.models.budget import Budget
from app.models.budget_item import BudgetItem, ItemKind
from app.schemas.budget import BudgetCreate, BudgetItemInput
from app.logging_config import get_logger
from app.utils.formatting import line_total, only_digits, quantize_money

logger = get_logger(__name__)


@dataclass
class LineRow:
    name: str
    quantity: Decimal
    unit_price: Decimal
    total: Decimal


@dataclass
class BudgetTotals:
    parts: List[LineRow] = field(default_factory=list)
    labor: List[LineRow] = field(default_factory=list)
    parts_subtotal: Decimal = Decimal("0.00")
    labor_subtotal: Decimal = Decimal("0.00")
    total: Decimal = Decimal("0.00")


def _line_rows(items: Iterable[BudgetItemInput]) -> List[LineRow]:
    rows = []
    for item in items:
        name = (item.name or "").strip()
        # Untouched rows of the form carry no name
        if not name:
            continue
        # Stored with two decimals, so the total is computed on the rounded values
        quantity = quantize_money(item.quantity)
        unit_price = quantize_money(item.unit_price)
        rows.append(LineRow(
            name=name,
            quantity=quantity,
            unit_price=unit_price,
            total=line_total(quantity, unit_price),
        ))
    return rows


def compute_totals(
    parts: Iterable[BudgetItemInput],
    labor: Iterable[BudgetItemInput],
) -> BudgetTotals:
    """
    Compute line totals and the budget subtotals.

    Nameless lines are dropped, quantity * unit price is rounded to cents
    per line, and the subtotals are the sums of the rounded line totals.

    Args:
        parts: Part lines as submitted
        labor: Labor lines as submitted

    Returns:
        BudgetTotals: the kept lines and the three money figures
    """
    part_rows = _line_rows(parts)
    labor_rows = _line_rows(labor)
    parts_subtotal = quantize_money(sum((row.total for row in part_rows), Decimal("0")))
    labor_subtotal = quantize_money(sum((row.total for row in labor_rows), Decimal("0")))
    return BudgetTotals(
        parts=part_rows,
        labor=labor_rows,
        parts_subtotal=parts_subtotal,
        labor_subtotal=labor_subtotal,
        total=parts_subtotal + labor_subtotal,
    )


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_required(data: BudgetCreate) -> None:
    if not data.plate.strip() or not data.owner.strip():
        raise BadRequestError("Plate and owner are required.")


def _apply_fields(budget: Budget, data: BudgetCreate, totals: BudgetTotals) -> None:
    budget.plate = data.plate.strip().upper()
    budget.owner = data.owner.strip()
    budget.make = _clean(data.make)
    budget.model = _clean(data.model)
    budget.mileage = only_digits(data.mileage) or None
    budget.vin = _clean(data.vin)
    budget.description = _clean(data.description)
    budget.notes = _clean(data.notes)
    budget.parts_subtotal = totals.parts_subtotal
    budget.labor_subtotal = totals.labor_subtotal
    budget.total = totals.total


def _build_items(totals: BudgetTotals) -> List[BudgetItem]:
    items = []
    for kind, rows in ((ItemKind.PART, totals.parts), (ItemKind.LABOR, totals.labor)):
        for position, row in enumerate(rows):
            items.append(BudgetItem(
                kind=kind,
                position=position,
                name=row.name,
                quantity=row.quantity,
                unit_price=row.unit_price,
                total=row.total,
            ))
    return items


async def _next_number(session: AsyncSession) -> int:
    result = await session.execute(select(func.coalesce(func.max(Budget.number), 0)))
    return int(result.scalar_one()) + 1


class BudgetQueryBuilder:
    """Builder class for constructing budget history queries."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.conditions = []

    def with_plate_contains(self, plate: Optional[str] = None) -> 'BudgetQueryBuilder':
        """Add case-insensitive plate substring filter."""
        if plate and plate.strip():
            like_expr = f"%{plate.strip().upper()}%"
            self.conditions.append(Budget.plate.ilike(like_expr))
        return self

    def _filtered(self, stmt):
        if self.conditions:
            stmt = stmt.filter(and_(*self.conditions))
        return stmt

    async def count(self) -> int:
        """Get count of budgets matching filters."""
        stmt = self._filtered(select(func.count(Budget.id)))
        result = await self.session.execute(stmt)
        return result.scalar_one()

    async def fetch(self, limit: int = 50, offset: int = 0) -> List[Budget]:
        """Fetch budgets newest first, without their items."""
        stmt = self._filtered(select(Budget)).options(raiseload(Budget.items))
        stmt = stmt.order_by(Budget.date.desc(), Budget.number.desc())
        stmt = stmt.offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())


async def search_budgets(
    session: AsyncSession,
    plate: Optional[str] = None,
    limit: int = 50,
    offset: int = 0,
) -> Tuple[List[Budget], int]:
    """
    List budgets, optionally filtered by plate.

    Args:
        session: SQLAlchemy async session
        plate: Plate fragment; blank returns the latest budgets
        limit: Page size
        offset: Rows to skip

    Returns:
        Tuple of (budgets on the page, total matching budgets)
    """
    builder = BudgetQueryBuilder(session).with_plate_contains(plate)
    budgets = await builder.fetch(limit=limit, offset=offset)
    count = await builder.count()
    return budgets, count


async def get_budget(session: AsyncSession, budget_id: str) -> Budget:
    """Get a budget with its items, or raise BudgetNotFoundError."""
    try:
        # Braced, urn and hyphen-less ids are bound in canonical form
        canonical_id = str(uuid.UUID(str(budget_id)))
    except ValueError:
        raise BudgetNotFoundError(budget_id)

    result = await session.execute(select(Budget).filter(Budget.id == canonical_id))
    budget = result.scalar_one_or_none()
    if not budget:
        raise BudgetNotFoundError(budget_id)
    return budget


async def create_budget(session: AsyncSession, data: BudgetCreate) -> Budget:
    """
    Create a budget and its line items in a single transaction.

    Raises:
        BadRequestError: plate or owner missing
    """
    _validate_required(data)
    totals = compute_totals(data.parts, data.labor)

    try:
        budget = Budget(number=await _next_number(session))
        _apply_fields(budget, data, totals)
        budget.items = _build_items(totals)
        session.add(budget)
        await session.commit()
    except Exception as e:
        logger.error(f"Error saving budget for plate {data.plate}: {e}")
        await session.rollback()
        raise

    logger.info(f"Created budget #{budget.number} ({budget.id}) with {len(budget.items)} items")
    return budget


async def update_budget(session: AsyncSession, budget_id: str, data: BudgetCreate) -> Budget:
    """
    Update a budget and replace all of its line items.

    The number, date and creation time are kept.

    Raises:
        BudgetNotFoundError: no budget with that id
        BadRequestError: plate or owner missing
    """
    budget = await get_budget(session, budget_id)
    _validate_required(data)
    totals = compute_totals(data.parts, data.labor)

    try:
        _apply_fields(budget, data, totals)
        # Old items are deleted as orphans, new ones inserted
        budget.items = _build_items(totals)
        budget.updated_at = datetime.now(timezone.utc)
        await session.commit()
    except Exception as e:
        logger.error(f"Error updating budget {budget_id}: {e}")
        await session.rollback()
        raise

    logger.info(f"Updated budget #{budget.number} ({budget.id}), {len(budget.items)} items")
    return budget


async def delete_budget(session: AsyncSession, budget_id: str) -> None:
    """Delete a budget together with its line items."""
    budget = await get_budget(session, budget_id)
    number = budget.number

    try:
        await session.delete(budget)
        await session.commit()
    except Exception as e:
        logger.error(f"Error deleting budget {budget_id}: {e}")
        await session.rollback()
        raise

    logger.info(f"Deleted budget #{number} ({budget_id})")


async def find_vehicle_by_plate(session: AsyncSession, plate: str) -> Optional[Dict[str, Any]]:
    """
    Find the vehicle data recorded on the latest budget for a plate.

    Used to prefill a new budget for a returning vehicle.

    Args:
        session: SQLAlchemy async session
        plate: Exact plate, any case

    Returns:
        Dict with plate, make, model, owner, mileage and vin, or None
    """
    plate = (plate or "").strip().upper()
    if not plate:
        return None

    stmt = (
        select(Budget)
        .filter(Budget.plate == plate)
        .options(raiseload(Budget.items))
        .order_by(Budget.created_at.desc())
        .limit(1)
    )
    budget = (await session.execute(stmt)).scalar_one_or_none()
    if not budget:
        logger.info(f"No previous budget for plate {plate}")
        return None

    return {
        "plate": plate,
        "make": budget.make,
        "model": budget.model,
        "owner": budget.owner,
        "mileage": only_digits(budget.mileage) or None,
        "vin": budget.vin,
    }
