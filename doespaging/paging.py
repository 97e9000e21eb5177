import datetime
import logging
from typing import Any, List, Optional, Sequence, Tuple

import sqlalchemy as sa
from sqlalchemy.orm import Mapper
from sqlalchemy.sql import Select
from sqlmodel.ext.asyncio.session import AsyncSession

from doespaging.config import settings
from doespaging.exceptions import (
    InvalidPageSize,
    MissingHookError,
    MissingParameterException,
    ValidationException,
)
from doespaging.params import ParamsType, non_empty_values, normalize_params
from doespaging.schemas import PageInfo

logger = logging.getLogger(__name__)

SORT_DIRECTIONS = ("asc", "desc")
TRUE_VALUES = ("1", "true", "t", "yes", "y", "on")
FALSE_VALUES = ("0", "false", "f", "no", "n", "off")


class DoesPaging:
    """Paginate, search, sort and bulk-delete SQLAlchemy statements from request parameters.

    Every query operation takes the request parameters and a ``Select`` over
    a mapped entity (the result set) and returns a new ``Select``. The entity
    may be a model class or an ``aliased()`` form of one; columns are always
    taken from that entity.

    Use it as a mixin on a controller class or as a plain instance::

        paging = DoesPaging(page_size=50)

        @router.get("")
        async def list_people(q: PagingQueryParams = Depends(), session=Depends(get_session)):
            stmt = paging.page_and_sort(q.params, paging.search(q.params, select(Person)))
            items, total = await paging.fetch(session, stmt)
    """

    def __init__(
        self,
        page_size: Optional[int] = None,
        ignored_params: Optional[Sequence[str]] = None,
        limit_param: Optional[str] = None,
        start_param: Optional[str] = None,
        sort_param: Optional[str] = None,
        dir_param: Optional[str] = None,
        delete_param: Optional[str] = None,
    ):
        if page_size is not None and page_size < 1:
            raise ValueError("page_size must be a positive integer")
        self.page_size = page_size or settings.PAGE_SIZE
        self.ignored_params = list(
            ignored_params if ignored_params is not None else settings.IGNORED_PARAMS
        )
        self.limit_param = limit_param or settings.LIMIT_PARAM
        self.start_param = start_param or settings.START_PARAM
        self.sort_param = sort_param or settings.SORT_PARAM
        self.dir_param = dir_param or settings.DIR_PARAM
        self.delete_param = delete_param or settings.DELETE_PARAM

    # ===== Result set introspection =====

    @staticmethod
    def entity(stmt: Select) -> Any:
        """Return the mapped entity (class or alias) the statement selects from."""
        descriptions = stmt.column_descriptions
        entity = descriptions[0].get("entity") if descriptions else None
        if entity is None:
            raise TypeError("Statement does not select a mapped entity")
        return entity

    @classmethod
    def mapper(cls, stmt: Select) -> Mapper:
        return sa.inspect(cls.entity(stmt)).mapper

    @classmethod
    def primary_columns(cls, stmt: Select) -> List[str]:
        """Attribute names of the entity's primary key, in declaration order."""
        mapper = cls.mapper(stmt)
        return [mapper.get_property_by_column(col).key for col in mapper.primary_key]

    @classmethod
    def column(cls, stmt: Select, name: str) -> Optional[Any]:
        """Column attribute ``name`` of the statement's entity, or None."""
        mapper = cls.mapper(stmt)
        if name not in mapper.column_attrs:
            return None
        return getattr(cls.entity(stmt), name)

    # ===== Paging =====

    def page_info(self, params: ParamsType) -> PageInfo:
        """Compute the requested page from the limit/start parameters.

        Args:
            params: Request parameters

        Returns:
            PageInfo with the row count and 1-based page number

        Raises:
            InvalidPageSize: If limit is zero, negative or not an integer
            ValidationException: If start is negative or not an integer
        """
        q = normalize_params(params)

        raw_limit = q.get(self.limit_param)
        if raw_limit is None or raw_limit == "":
            rows = self.page_size
        else:
            try:
                rows = int(raw_limit)
            except ValueError:
                raise InvalidPageSize(raw_limit)
            if rows < 1:
                raise InvalidPageSize(raw_limit)

        raw_start = q.get(self.start_param)
        start = 0
        if raw_start:
            try:
                start = int(raw_start)
            except ValueError:
                raise ValidationException(f"Invalid {self.start_param}: {raw_start!r}")
            if start < 0:
                raise ValidationException(f"Invalid {self.start_param}: {raw_start!r}")

        return PageInfo(rows=rows, page=start // rows + 1)

    def paginate(self, params: ParamsType, stmt: Select) -> Select:
        """Limit the statement to the page named by the limit/start parameters."""
        info = self.page_info(params)
        logger.debug(f"Paginating {self.mapper(stmt).class_.__name__}: rows={info.rows} page={info.page}")
        return stmt.limit(info.rows).offset(info.offset)

    def page_and_sort(self, params: ParamsType, stmt: Select) -> Select:
        """Sort the statement, then paginate it."""
        return self.paginate(params, self.sort(params, stmt))

    # ===== Searching and sorting =====

    def search(self, params: ParamsType, stmt: Select) -> Select:
        """Filter with the model's ``controller_search`` hook, or ``simple_search``."""
        q = normalize_params(params)
        hook = getattr(self.mapper(stmt).class_, "controller_search", None)
        if hook is not None:
            return hook(stmt, q)
        return self.simple_search(q, stmt)

    def sort(self, params: ParamsType, stmt: Select) -> Select:
        """Order with the model's ``controller_sort`` hook, or ``simple_sort``."""
        q = normalize_params(params)
        hook = getattr(self.mapper(stmt).class_, "controller_sort", None)
        if hook is not None:
            return hook(stmt, q)
        return self.simple_sort(q, stmt)

    def search_values(self, params: ParamsType, key: str) -> List[str]:
        """Values of a filter parameter that simple_search should match."""
        return non_empty_values(normalize_params(params), key)

    def simple_search(self, params: ParamsType, stmt: Select) -> Select:
        """Add a case-insensitive substring filter for every non-ignored parameter.

        Several values for one parameter are combined with OR, different
        parameters with AND. Parameters that do not name a column of the
        entity are skipped.

        Only filters are added: unlike the Catalyst DoesPaging role it was
        modelled on, no sorting or paging happens here. Compose with
        ``page_and_sort`` explicitly.
        """
        q = normalize_params(params)
        skips = set(self.ignored_params)
        clauses = []

        for key in q.keys():
            if key in skips:
                continue
            values = self.search_values(q, key)
            if not values:
                continue
            col = self.column(stmt, key)
            if col is None:
                logger.debug(f"Skipping search on unknown column: {key}")
                continue
            if not isinstance(col.expression.type, sa.String):
                col = sa.cast(col, sa.String)
            clauses.append(sa.or_(*[col.icontains(value, autoescape=True) for value in values]))

        if clauses:
            stmt = stmt.where(*clauses)
        return stmt

    def simple_sort(self, params: ParamsType, stmt: Select) -> Select:
        """Order by the sort/dir parameters, defaulting to the primary key.

        Raises:
            ValidationException: If sort does not name a column or dir is not asc/desc
        """
        q = normalize_params(params)
        sort = q.get(self.sort_param)
        direction = q.get(self.dir_param)

        if sort and direction:
            col = self.column(stmt, sort)
            if col is None:
                logger.warning(f"Rejected sort on unknown column: {sort}")
                raise ValidationException(f"Cannot sort by unknown column '{sort}'")
            direction = direction.lower()
            if direction not in SORT_DIRECTIONS:
                raise ValidationException(f"Invalid sort direction '{direction}'")
            order_by = [col.desc() if direction == "desc" else col.asc()]
        else:
            entity = self.entity(stmt)
            order_by = [getattr(entity, key) for key in self.primary_columns(stmt)]

        return stmt.order_by(None).order_by(*order_by)

    # ===== Deletion =====

    def deletion_keys(self, stmt: Select) -> List[str]:
        """Attribute names matched against the to_delete values."""
        return self.primary_columns(stmt)

    def parse_deletion(self, params: ParamsType, stmt: Select) -> List[Any]:
        """Parse and coerce the to_delete parameter.

        Returns:
            Scalars for a single key, tuples for a composite key

        Raises:
            MissingParameterException: If to_delete is absent or empty
            ValidationException: If a value does not fit its key column
        """
        q = normalize_params(params)
        raw = non_empty_values(q, self.delete_param)
        if not raw:
            raise MissingParameterException(self.delete_param)

        mapper = self.mapper(stmt)
        keys = self.deletion_keys(stmt)
        types = [mapper.column_attrs[key].columns[0].type for key in keys]

        if len(keys) == 1:
            values = [v.strip() for value in raw for v in value.split(",") if v.strip()]
            if not values:
                raise MissingParameterException(self.delete_param)
            return [_coerce(types[0], keys[0], value) for value in values]

        tuples = []
        for value in raw:
            parts = [part.strip() for part in value.split(",")]
            if len(parts) != len(keys):
                raise ValidationException(
                    f"Expected {len(keys)} comma separated values ({', '.join(keys)}), got {value!r}"
                )
            tuples.append(
                tuple(_coerce(type_, key, part) for type_, key, part in zip(types, keys, parts))
            )
        return tuples

    async def simple_deletion(
        self,
        params: ParamsType,
        stmt: Select,
        session: AsyncSession,
    ) -> List[Any]:
        """Delete the rows whose key matches the to_delete parameter.

        Only rows the statement selects are deleted, so its WHERE clause,
        joins and aliases further restrict the deletion.
        Runs inside the caller's transaction; committing is up to the caller.

        Args:
            params: Request parameters
            stmt: Statement over the entity to delete from
            session: Database session

        Returns:
            The requested identifiers

        Raises:
            MissingParameterException: If to_delete is absent or empty
            ValidationException: If a value does not fit its key column
        """
        to_delete = self.parse_deletion(params, stmt)
        model = self.mapper(stmt).class_
        entity = self.entity(stmt)
        keys = self.deletion_keys(stmt)
        cols = [getattr(model, key) for key in keys]

        # Rows the statement selects, with its aliases and joins kept inside the subquery
        scope = (
            stmt.with_only_columns(*[getattr(entity, key) for key in keys])
            .order_by(None)
            .limit(None)
            .offset(None)
            .correlate(None)
        )

        if len(cols) == 1:
            condition = cols[0].in_(to_delete)
            in_scope = cols[0].in_(scope)
        else:
            condition = sa.or_(
                *[sa.and_(*[col == value for col, value in zip(cols, row)]) for row in to_delete]
            )
            in_scope = sa.tuple_(*cols).in_(scope)

        query = sa.delete(model).where(condition, in_scope)

        result = await session.execute(query.execution_options(synchronize_session="fetch"))
        logger.info(f"Deleted {result.rowcount} {model.__name__} row(s) for {len(to_delete)} identifier(s)")
        return to_delete

    # ===== Execution =====

    async def fetch(self, session: AsyncSession, stmt: Select) -> Tuple[List[Any], int]:
        """Execute a paged statement.

        Returns:
            Tuple of (items list, total count ignoring limit and offset)
        """
        unpaged = stmt.limit(None).offset(None).order_by(None)
        count_query = sa.select(sa.func.count()).select_from(unpaged.subquery())
        total_result = await session.execute(count_query)
        total = total_result.scalar_one()

        result = await session.execute(stmt)
        items = list(result.scalars().all())
        return items, total


class ConventionPaging(DoesPaging):
    """Paging helper for models that follow the house conventions.

    Models must define both ``controller_search`` and ``controller_sort``,
    rows are deleted by their ``id`` column, ``simple_search`` matches one
    value per parameter and ``page_and_sort`` always uses ``simple_sort``.
    """

    def __init__(self, pages: Optional[int] = None, **kwargs):
        if pages is not None:
            kwargs.setdefault("page_size", pages)
        super().__init__(**kwargs)

    @property
    def pages(self) -> int:
        return self.page_size

    def page_and_sort(self, params: ParamsType, stmt: Select) -> Select:
        return self.paginate(params, self.simple_sort(params, stmt))

    def search(self, params: ParamsType, stmt: Select) -> Select:
        model = self.mapper(stmt).class_
        hook = getattr(model, "controller_search", None)
        if hook is None:
            raise MissingHookError(model, "controller_search")
        return hook(stmt, normalize_params(params))

    def sort(self, params: ParamsType, stmt: Select) -> Select:
        model = self.mapper(stmt).class_
        hook = getattr(model, "controller_sort", None)
        if hook is None:
            raise MissingHookError(model, "controller_sort")
        return hook(stmt, normalize_params(params))

    def search_values(self, params: ParamsType, key: str) -> List[str]:
        return non_empty_values(normalize_params(params), key)[:1]

    def deletion_keys(self, stmt: Select) -> List[str]:
        return ["id"]


def _coerce(type_: sa.types.TypeEngine, key: str, value: str) -> Any:
    try:
        python_type = type_.python_type
    except NotImplementedError:
        return value
    if python_type is str:
        return value
    try:
        if python_type is bool:
            lowered = value.lower()
            if lowered in TRUE_VALUES:
                return True
            if lowered in FALSE_VALUES:
                return False
            raise ValueError(value)
        if python_type in (datetime.datetime, datetime.date, datetime.time):
            return python_type.fromisoformat(value)
        return python_type(value)
    except (TypeError, ValueError):
        raise ValidationException(f"Invalid value for {key}: {value!r}")
