from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.db import get_db_session
from app.models.budget import Budget
from app.schemas.budget import (
    BudgetCreate,
    BudgetListResponse,
    BudgetResponse,
    BudgetUpdate,
    VehicleInfoResponse,
)
from app.services.budget_service import (
    create_budget,
    delete_budget,
    find_vehicle_by_plate,
    get_budget,
    search_budgets,
    update_budget,
)
from app.utils.pdf_generator import BudgetPDFGenerator
from app.logging_config import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/budgets", tags=["Budgets"])


def _serialize_item(item):
    return {
        "id": item.id,
        "kind": item.kind.value,
        "position": item.position,
        "name": item.name,
        "quantity": float(item.quantity) if item.quantity is not None else 0.0,
        "unit_price": float(item.unit_price) if item.unit_price is not None else 0.0,
        "total": float(item.total) if item.total is not None else 0.0,
    }


def _serialize_summary(budget: Budget):
    return {
        "id": budget.id,
        "number": budget.number,
        "date": budget.date,
        "owner": budget.owner,
        "plate": budget.plate,
        "total": float(budget.total) if budget.total is not None else 0.0,
    }


def _serialize_budget(budget: Budget, message: Optional[str] = None):
    """Serialize a Budget with its items split by kind."""
    return {
        "id": budget.id,
        "number": budget.number,
        "date": budget.date,
        "created_at": budget.created_at,
        "updated_at": budget.updated_at,
        "plate": budget.plate,
        "owner": budget.owner,
        "make": budget.make,
        "model": budget.model,
        "mileage": budget.mileage,
        "vin": budget.vin,
        "description": budget.description,
        "notes": budget.notes,
        "parts_subtotal": float(budget.parts_subtotal),
        "labor_subtotal": float(budget.labor_subtotal),
        "total": float(budget.total),
        "parts": [_serialize_item(item) for item in budget.parts],
        "labor": [_serialize_item(item) for item in budget.labor],
        "message": message,
    }


@router.get("", response_model=BudgetListResponse)
async def list_budgets_route(
    plate: Optional[str] = Query(default=None, description="Plate fragment, case-insensitive"),
    limit: int = Query(default=settings.HISTORY_PAGE_SIZE, ge=1, le=settings.HISTORY_MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    session: AsyncSession = Depends(get_db_session),
):
    """Budget history, newest first, optionally filtered by plate."""
    try:
        budgets, count = await search_budgets(session, plate=plate, limit=limit, offset=offset)
    except Exception as e:
        logger.error(f"Error loading budget history: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load budget history"
        )

    return {
        "count": count,
        "limit": limit,
        "offset": offset,
        "items": [_serialize_summary(b) for b in budgets],
    }


@router.post("", response_model=BudgetResponse, status_code=status.HTTP_201_CREATED)
async def create_budget_route(
    budget_data: BudgetCreate,
    session: AsyncSession = Depends(get_db_session),
):
    """Create a budget with its parts and labor."""
    try:
        budget = await create_budget(session, budget_data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating budget: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save budget"
        )

    return _serialize_budget(budget, message=f"Budget #{budget.number} saved.")


@router.get("/vehicles/{plate}", response_model=VehicleInfoResponse)
async def get_vehicle_route(
    plate: str,
    session: AsyncSession = Depends(get_db_session),
):
    """Vehicle data from the latest budget for a plate."""
    try:
        vehicle = await find_vehicle_by_plate(session, plate)
    except Exception as e:
        logger.error(f"Error looking up plate {plate}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to look up vehicle"
        )

    if not vehicle:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"No previous information for plate {plate.strip().upper()}"
        )
    return vehicle


@router.get("/{budget_id}", response_model=BudgetResponse)
async def get_budget_route(
    budget_id: str,
    session: AsyncSession = Depends(get_db_session),
):
    """Get a single budget with its items."""
    try:
        budget = await get_budget(session, budget_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error loading budget {budget_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to load budget"
        )

    return _serialize_budget(budget)


@router.put("/{budget_id}", response_model=BudgetResponse)
async def update_budget_route(
    budget_id: str,
    budget_data: BudgetUpdate,
    session: AsyncSession = Depends(get_db_session),
):
    """Update a budget, replacing all of its items."""
    try:
        budget = await update_budget(session, budget_id, budget_data)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error updating budget {budget_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to save budget changes"
        )

    return _serialize_budget(budget, message=f"Budget #{budget.number} updated.")


@router.delete("/{budget_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_budget_route(
    budget_id: str,
    session: AsyncSession = Depends(get_db_session),
):
    """Delete a budget and its items."""
    try:
        await delete_budget(session, budget_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error deleting budget {budget_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete budget"
        )

    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{budget_id}/pdf")
async def get_budget_pdf_route(
    budget_id: str,
    session: AsyncSession = Depends(get_db_session),
):
    """Download the printable PDF of a budget."""
    try:
        budget = await get_budget(session, budget_id)
        generator = BudgetPDFGenerator(
            budget,
            shop_name=settings.SHOP_NAME,
            logo_path=settings.SHOP_LOGO_PATH,
        )
        pdf_bytes = generator.generate()
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error generating PDF for budget {budget_id}: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to generate PDF"
        )

    return Response(
        content=pdf_bytes,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{generator.filename}"'},
    )
