"""Dispatch-table helpers for writing ``controller_search``/``controller_sort`` hooks.

A model hook maps request parameters to clauses through a table of small
functions::

    class Project(SQLModel, table=True):
        ...

        @classmethod
        def controller_search(cls, stmt, params):
            return build_search(stmt, {
                "status": lambda value: SearchClause(where=[cls.status == value]),
                "owner": lambda value: SearchClause(
                    where=[Person.last_name.icontains(value)],
                    joins=[Project.owner],
                ),
            }, params)
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.sql import Select

from doespaging.config import settings
from doespaging.params import ParamsType, normalize_params

logger = logging.getLogger(__name__)


@dataclass
class SearchClause:
    """Clauses contributed by one dispatch-table entry."""

    where: List[Any] = field(default_factory=list)
    joins: List[Any] = field(default_factory=list)
    options: List[Any] = field(default_factory=list)
    order_by: List[Any] = field(default_factory=list)


SearchFn = Callable[[str], Optional[SearchClause]]
SortFn = Callable[[str], Optional[SearchClause]]
DefaultSortFn = Callable[[str, str], Optional[SearchClause]]


def _apply(stmt: Select, clause: SearchClause, joined: set) -> Select:
    for target in clause.joins:
        # The same relationship may be requested by several entries
        if id(target) in joined:
            continue
        joined.add(id(target))
        stmt = stmt.join(target)
    if clause.where:
        stmt = stmt.where(*clause.where)
    if clause.options:
        stmt = stmt.options(*clause.options)
    return stmt


def build_search(
    stmt: Select,
    dispatch_table: Dict[str, SearchFn],
    params: ParamsType,
) -> Select:
    """Apply the dispatch-table entry of every parameter that has a value."""
    q = normalize_params(params)
    joined: set = set()

    for key in q.keys():
        fn = dispatch_table.get(key)
        value = q.get(key)
        if fn is None or not value:
            continue
        clause = fn(value)
        if clause is not None:
            stmt = _apply(stmt, clause, joined)

    return stmt


def build_sort(
    stmt: Select,
    dispatch_table: Dict[str, SortFn],
    default: DefaultSortFn,
    params: ParamsType,
    sort_param: Optional[str] = None,
    dir_param: Optional[str] = None,
) -> Select:
    """Order by the dispatch-table entry named by ``sort``, or by ``default``.

    The entry receives the direction; ``default`` receives the sort key and
    direction and is only used when both are present. The resulting
    ``order_by`` replaces any existing ordering. Without a usable sort
    parameter the statement is returned unchanged.
    """
    q = normalize_params(params)
    sort = q.get(sort_param or settings.SORT_PARAM)
    direction = q.get(dir_param or settings.DIR_PARAM)
    if direction:
        direction = direction.lower()

    clause = None
    fn = dispatch_table.get(sort) if sort else None
    if fn is not None:
        clause = fn(direction)
    elif sort and direction:
        clause = default(sort, direction)

    if clause is None:
        return stmt

    stmt = _apply(stmt, clause, set())
    if clause.order_by:
        logger.debug(f"Sorting by {sort} {direction}")
        stmt = stmt.order_by(None).order_by(*clause.order_by)
    return stmt
