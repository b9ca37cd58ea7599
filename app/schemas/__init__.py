from app.schemas.budget import (
    BudgetItemInput,
    BudgetCreate,
    BudgetUpdate,
    BudgetItemResponse,
    BudgetSummaryResponse,
    BudgetResponse,
    BudgetListResponse,
    VehicleInfoResponse,
)

__all__ = [
    "BudgetItemInput",
    "BudgetCreate",
    "BudgetUpdate",
    "BudgetItemResponse",
    "BudgetSummaryResponse",
    "BudgetResponse",
    "BudgetListResponse",
    "VehicleInfoResponse",
]
