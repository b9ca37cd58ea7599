from app.db import Base
from app.models.budget import Budget
from app.models.budget_item import BudgetItem, ItemKind

__all__ = [
    "Base",
    "Budget",
    "BudgetItem",
    "ItemKind",
]
