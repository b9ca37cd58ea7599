"""
Insert a handful of demo budgets through the budget service.

Usage:
    python scripts/seed_budgets.py            # 10 budgets
    python scripts/seed_budgets.py --count 40
"""
import argparse
import asyncio
import random

from app.db import AsyncSessionLocal, engine
from app.logging_config import setup_logging, get_logger
from app.schemas.budget import BudgetCreate, BudgetItemInput
from app.services.budget_service import create_budget

logger = get_logger(__name__)

VEHICLES = [
    ("ABC123", "Toyota", "Hilux 2019", "Carlos Pérez"),
    ("XYZ987", "Chevrolet", "Spark 2016", "Laura Gómez"),
    ("JKL456", "Mazda", "3 2021", "Andrés Ruiz"),
    ("MNO321", "Renault", "Duster 2018", "Paula Torres"),
]

PARTS = [
    ("Aceite 20W50", 4, 38000),
    ("Filtro de aceite", 1, 25000),
    ("Pastillas de freno", 1, 120000),
    ("Llanta 195/65 R15", 2, 310000),
    ("Batería 12V", 1, 450000),
]

LABOR = [
    ("Cambio de aceite", 1, 40000),
    ("Revisión de frenos", 1, 60000),
    ("Alineación y balanceo", 1, 90000),
    ("Diagnóstico con escáner", 1, 70000),
]


def build_budget() -> BudgetCreate:
    plate, make, model, owner = random.choice(VEHICLES)
    parts = random.sample(PARTS, k=random.randint(1, 3))
    labor = random.sample(LABOR, k=random.randint(1, 2))
    return BudgetCreate(
        plate=plate,
        owner=owner,
        make=make,
        model=model,
        mileage=str(random.randint(20, 180) * 1000),
        description="Revisión general solicitada por el cliente",
        parts=[BudgetItemInput(name=n, quantity=q, unit_price=p) for n, q, p in parts],
        labor=[BudgetItemInput(name=n, quantity=q, unit_price=p) for n, q, p in labor],
    )


async def seed(count: int) -> None:
    async with AsyncSessionLocal() as session:
        for _ in range(count):
            budget = await create_budget(session, build_budget())
            logger.info(f"Seeded budget #{budget.number} for {budget.plate}")
    await engine.dispose()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Insert demo budgets")
    parser.add_argument("--count", type=int, default=10)
    args = parser.parse_args()

    setup_logging("INFO")
    asyncio.run(seed(args.count))
