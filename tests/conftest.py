"""
PeopleDesk HR - Test Configuration

Pytest fixtures and configuration.
"""

import os
import tempfile

# Settings are read at import time
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key")
os.environ.setdefault("DATABASE_URL_ASYNC", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "testing")
os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("BACKUP_DIR", tempfile.mkdtemp(prefix="peopledesk-backups-"))

from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional, Sequence
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool

import app.models  # noqa: F401
from app.database import Base, get_async_session
from app.models.employee import EmployeeProfile, EmployeeStatus, SystemRole
from app.models.payroll_config import ConfigStatus, PayGrade
from app.services.employee_service import EmployeeService
from app.utils.security import create_access_token, get_password_hash
from main import app


TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
TEST_PASSWORD = "TestPassword123!"


def _enable_savepoints(engine) -> None:
    """pysqlite/aiosqlite only emit SAVEPOINT correctly with manual BEGIN."""

    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")


@pytest_asyncio.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh in-memory database and session for each test."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    _enable_savepoints(test_engine)

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """Create a test client with database session override."""

    async def override_get_session():
        yield db_session

    app.dependency_overrides[get_async_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
def backup_dir(tmp_path) -> str:
    return str(tmp_path / "config_setup")


# ===========================================
# DATA FIXTURES
# ===========================================

@pytest_asyncio.fixture
async def pay_grade(db_session: AsyncSession) -> PayGrade:
    """Approved pay grade with a 5000.00 base salary."""
    grade = PayGrade(
        grade="Senior Engineer",
        base_salary=Decimal("5000.00"),
        gross_salary=Decimal("6000.00"),
        status=ConfigStatus.APPROVED,
    )
    db_session.add(grade)
    await db_session.commit()
    await db_session.refresh(grade)
    return grade


@pytest_asyncio.fixture
async def make_employee(db_session: AsyncSession):
    """Factory creating employee profiles, banked and active by default."""
    counter = {"n": 0}

    async def _make(
        pay_grade: Optional[PayGrade] = None,
        with_bank: bool = True,
        status: EmployeeStatus = EmployeeStatus.ACTIVE,
        first_name: str = "Test",
        last_name: Optional[str] = None,
        department_id=None,
    ) -> EmployeeProfile:
        counter["n"] += 1
        number = counter["n"]
        employee = EmployeeProfile(
            id=uuid4(),
            employee_number=f"EMP-{number:04d}",
            first_name=first_name,
            last_name=last_name or f"Employee{number}",
            work_email=f"employee{number}@example.com",
            hashed_password=get_password_hash(TEST_PASSWORD),
            status=status,
            pay_grade_id=pay_grade.id if pay_grade else None,
            primary_department_id=department_id,
            bank_name="First Bank" if with_bank else None,
            bank_account_number="0123456789" if with_bank else None,
        )
        db_session.add(employee)
        await db_session.commit()
        await db_session.refresh(employee)
        return employee

    return _make


@pytest_asyncio.fixture
async def make_user(db_session: AsyncSession, make_employee):
    """Factory creating an employee holding the given system roles."""

    async def _make(*roles: SystemRole, **kwargs) -> EmployeeProfile:
        employee = await make_employee(**kwargs)
        if roles:
            await EmployeeService(db_session).assign_roles(employee.id, list(roles))
        return employee

    return _make


def make_token(
    employee: Optional[EmployeeProfile] = None,
    roles: Sequence[str] = (),
    include_employee_id: bool = True,
) -> str:
    data = {"sub": str(employee.id) if employee else "candidate-1", "roles": list(roles)}
    if employee is not None and include_employee_id:
        data["employeeId"] = str(employee.id)
    return create_access_token(data=data)


def auth_headers(
    employee: Optional[EmployeeProfile] = None,
    roles: Sequence[str] = (),
    include_employee_id: bool = True,
) -> Dict[str, str]:
    return {"Authorization": f"Bearer {make_token(employee, roles, include_employee_id)}"}


@pytest.fixture
def headers_for():
    """Bearer headers for an employee (live roles) or a bare token (token roles)."""
    return auth_headers
