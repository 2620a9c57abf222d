import os
import tempfile

# Settings are read at import time; point them at a throwaway database first
os.environ.setdefault("DB_TYPE", "sqlite")
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "complaintdesk_test.db"),
)

import anyio
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from complaintdesk.core.db import Base, enable_sqlite_foreign_keys, get_db
from complaintdesk.models.complaint_models import ComplaintType
from complaintdesk.schemas.complaint_schemas import ComplaintCreate
from complaintdesk.schemas.customer_schemas import CustomerCreate
from complaintdesk.schemas.product_schemas import ProductCreate
from complaintdesk.services.admin_services.settings_service import seed_default_settings


def _make_engine(path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool)
    event.listen(engine.sync_engine, "connect", enable_sqlite_foreign_keys)
    return engine


def _make_session_factory(engine):
    return sessionmaker(
        bind=engine,
        class_=AsyncSession,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


async def _prepare(engine):
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    async with _make_session_factory(engine)() as session:
        await seed_default_settings(session)


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
async def db(tmp_path):
    engine = _make_engine(tmp_path / "complaints.db")
    await _prepare(engine)
    async with _make_session_factory(engine)() as session:
        yield session
    await engine.dispose()


@pytest.fixture
def client(tmp_path):
    from main import app

    engine = _make_engine(tmp_path / "complaints_api.db")
    anyio.run(_prepare, engine)
    factory = _make_session_factory(engine)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def complaint_in():
    """Builds intake payloads; each call may vary phone, serial, type or engineer."""

    def build(
        phone="9800000001",
        serial="SN-1001",
        complaint_type=ComplaintType.WARRANTY,
        engineer_id=None,
        name="Asha Rao",
        branch="Kochi",
        description="Washing machine does not drain",
    ):
        return ComplaintCreate(
            customer=CustomerCreate(name=name, branch=branch, phone=phone),
            product=ProductCreate(brand="Voltas", type="Washing machine", model="WM-7", serial=serial),
            description=description,
            type=complaint_type,
            engineer_id=engineer_id,
        )

    return build
