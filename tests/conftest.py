"""
Pytest configuration and fixtures.

This module provides:
- An in-memory SQLite database (aiosqlite) created fresh for every test
- Test session management
- FastAPI test client with dependency overrides
- Factory fixtures for creating test data
"""

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from tests.testapp.database import get_session
from tests.testapp.main import app
from tests.testapp.models import Person, Project, Role


# =============================================================================
# Database fixtures
# =============================================================================


@pytest.fixture
async def test_engine() -> AsyncGenerator[AsyncEngine, None]:
    """
    Create an async engine bound to a private in-memory SQLite database.

    StaticPool keeps a single connection so every session sees the same
    in-memory database. Tables are created from the SQLModel metadata.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,  # Set to True for SQL query debugging
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
async def test_session(test_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a single test."""
    async with AsyncSession(test_engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
async def client(test_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Provide an async HTTP client for testing FastAPI endpoints.

    The database session dependency is overridden so API calls and direct
    database operations in a test share one session.
    """

    async def override_get_session():
        yield test_session

    app.dependency_overrides[get_session] = override_get_session

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


# =============================================================================
# Factory fixtures for creating test data
# =============================================================================


@pytest.fixture
async def person_factory(test_session: AsyncSession):
    """
    Factory fixture for creating Person instances in the test database.

    Usage:
        person = await person_factory(first_name="Ada", last_name="Lovelace")
    """

    async def _create_person(**kwargs) -> Person:
        defaults = {
            "first_name": "Test",
            "last_name": "Person",
        }
        defaults.update(kwargs)

        person = Person(**defaults)
        test_session.add(person)
        await test_session.commit()
        await test_session.refresh(person)
        return person

    return _create_person


@pytest.fixture
async def role_factory(test_session: AsyncSession):
    """
    Factory fixture for creating Role instances in the test database.

    Usage:
        role = await role_factory(person_id=person.id, name="admin")
    """

    async def _create_role(person_id: int, name: str, **kwargs) -> Role:
        role = Role(person_id=person_id, name=name, **kwargs)
        test_session.add(role)
        await test_session.commit()
        await test_session.refresh(role)
        return role

    return _create_role


@pytest.fixture
async def project_factory(test_session: AsyncSession):
    """
    Factory fixture for creating Project instances in the test database.

    Usage:
        project = await project_factory(name="Migration", owner_id=person.id)
    """

    async def _create_project(**kwargs) -> Project:
        defaults = {
            "name": "Test Project",
            "status": "open",
        }
        defaults.update(kwargs)

        project = Project(**defaults)
        test_session.add(project)
        await test_session.commit()
        await test_session.refresh(project)
        return project

    return _create_project


@pytest.fixture
async def people(person_factory) -> list[Person]:
    """Five people with distinct names and ages, inserted in id order."""
    rows = [
        ("Ada", "Lovelace", "ada@example.com", 36),
        ("Alan", "Turing", "alan@example.com", 41),
        ("Grace", "Hopper", "grace@example.org", 85),
        ("Edsger", "Dijkstra", "edsger@example.org", 72),
        ("Tim", "Berners-Lee", None, 17),
    ]
    return [
        await person_factory(first_name=first, last_name=last, email=email, age=age)
        for first, last, email, age in rows
    ]
