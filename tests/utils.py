"""
Test utility functions and assertions.

This module provides helper functions for common testing patterns:
- Response assertions (status codes, error codes, pagination)
- Database query helpers (counting, existence checks)
- Ordering checks
"""

from typing import Any, Optional, Type

from httpx import Response
from sqlalchemy import func, select
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession


# =============================================================================
# Response assertion helpers
# =============================================================================


def assert_status_code(response: Response, expected: int):
    """
    Assert that the response has the expected status code.

    Args:
        response: The HTTP response
        expected: Expected status code

    Raises:
        AssertionError: If status code doesn't match
    """
    assert response.status_code == expected, (
        f"Expected status code {expected}, got {response.status_code}. "
        f"Response body: {response.text}"
    )


def assert_error_code(response: Response, code: str):
    """
    Assert that the response contains a specific error code.

    Args:
        response: The HTTP response
        code: Expected error code

    Raises:
        AssertionError: If error code doesn't match
    """
    data = response.json()
    assert "error" in data, "Response does not contain 'error' field"
    assert data["error"].get("code") == code, (
        f"Expected error code '{code}', got '{data['error'].get('code')}'"
    )


def assert_pagination_structure(
    response: Response, expected_total: Optional[int] = None
):
    """
    Assert that the response has proper pagination structure.

    Args:
        response: The HTTP response
        expected_total: Optional expected total count

    Raises:
        AssertionError: If pagination structure is invalid
    """
    assert_status_code(response, 200)
    data = response.json()

    for field in ("items", "total", "start", "limit", "page"):
        assert field in data, f"Response missing '{field}' field"

    assert isinstance(data["items"], list), "'items' should be a list"
    for field in ("total", "start", "limit", "page"):
        assert isinstance(data[field], int), f"'{field}' should be an integer"

    if expected_total is not None:
        assert data["total"] == expected_total, (
            f"Expected total={expected_total}, got {data['total']}"
        )


def assert_sorted_by(items: list[Any], field: str, descending: bool = False):
    """
    Assert that a list of dicts or model instances is sorted by a field.

    Raises:
        AssertionError: If list is not properly sorted
    """
    if len(items) < 2:
        return  # Nothing to check

    values = [
        item[field] if isinstance(item, dict) else getattr(item, field)
        for item in items
    ]
    expected = sorted(values, reverse=descending)
    order = "descending" if descending else "ascending"
    assert values == expected, (
        f"Items not sorted by '{field}' ({order}). "
        f"Expected order: {expected}, got: {values}"
    )


# =============================================================================
# Database query helpers
# =============================================================================


async def count_records(session: AsyncSession, model_class: Type[SQLModel]) -> int:
    """Count the number of records for a given model."""
    result = await session.execute(select(func.count()).select_from(model_class))
    return result.scalar_one()


async def record_exists(
    session: AsyncSession, model_class: Type[SQLModel], pk: Any
) -> bool:
    """
    Check if a record exists by its primary key.

    Args:
        session: Database session
        model_class: SQLModel class
        pk: Primary key value, or a tuple for composite keys

    Returns:
        True if record exists, False otherwise
    """
    session.expunge_all()
    record = await session.get(model_class, pk)
    return record is not None


def compile_sql(stmt) -> str:
    """Render a statement with literal values, for asserting on generated SQL."""
    return str(stmt.compile(compile_kwargs={"literal_binds": True}))
