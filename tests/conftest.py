import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.db import get_db_session
from app.main import app
from app.models import Base


@pytest.fixture
async def engine(tmp_path):
    """Fresh SQLite database per test"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'budgets.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(bind=engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def client(session_factory):
    """HTTP client against the app with the test database"""
    async def override_get_db_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = override_get_db_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def budget_payload():
    return {
        "plate": " abc123 ",
        "owner": "Carlos Pérez",
        "make": "Toyota",
        "model": "Hilux 2019",
        "mileage": "85.000",
        "vin": "JTFDE626000123456",
        "description": "Ruido en la suspensión delantera",
        "notes": "",
        "parts": [
            {"name": "Aceite 20W50", "quantity": 4, "unit_price": 38000},
            {"name": "Filtro de aceite", "quantity": 1, "unit_price": 25000},
            {"name": "  ", "quantity": 1, "unit_price": 99999},
        ],
        "labor": [
            {"name": "Cambio de aceite", "quantity": 1, "unit_price": 40000},
        ],
    }
