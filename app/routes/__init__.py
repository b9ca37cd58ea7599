from fastapi import APIRouter

api_router = APIRouter()

# Import route modules here
from app.routes import budgets

api_router.include_router(budgets.router)
