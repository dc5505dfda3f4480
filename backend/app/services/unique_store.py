"""SQLAlchemy Unique Store — the single count read behind every uniqueness check.

Invariants:
    - Exactly one SELECT count(*) per count() call
    - Branches are OR-ed, keys inside a branch are AND-ed
    - Every failure (unmapped entity, unknown column, bad value, driver error)
      surfaces as StoreAccessError — never as a count
    - A missing scalar is reported as 0

Design Decisions:
    - String values from route/query context are coerced to the column's Python
      type (uuid.UUID, int, ...) so builders can pass raw path params through
    - NotEqual uses SQL `!=`: rows whose column is NULL are not matched by it
"""

import logging
from typing import Any

from sqlalchemy import and_, func, inspect, or_, select
from sqlalchemy.exc import NoInspectionAvailable, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import StoreAccessError
from app.core.unique_filters import Filter, In, NotEqual, describe_filters

logger = logging.getLogger(__name__)

_UNCOERCED_TYPES = (str, bool)


class SqlAlchemyUniqueStore:
    """UniqueStore backed by an AsyncSession borrowed from the request."""

    def __init__(self, db: AsyncSession):
        self._db = db

    async def count(self, entity: type, filters: list[Filter]) -> int:
        entity_name = getattr(entity, "__name__", repr(entity))
        if not filters:
            raise StoreAccessError("no filter branches", entity_name)
        branches = [self._branch_clause(entity, entity_name, b) for b in filters]
        try:
            query = select(func.count()).select_from(entity).where(or_(*branches))
            result = await self._db.execute(query)
        except SQLAlchemyError as e:
            logger.error(
                f"Uniqueness count on {entity_name} failed: {e}",
                extra={"entity": entity_name, "branches": describe_filters(filters)},
            )
            raise StoreAccessError(
                f"count query failed ({e.__class__.__name__})", entity_name,
            ) from e
        return result.scalar() or 0

    def _branch_clause(self, entity: type, entity_name: str, branch: Filter):
        if not branch:
            raise StoreAccessError("empty filter branch", entity_name)
        try:
            mapper = inspect(entity)
        except NoInspectionAvailable:
            raise StoreAccessError("entity is not a mapped class", entity_name)
        clauses = []
        for key, value in branch.items():
            if key not in mapper.column_attrs:
                raise StoreAccessError(f"unknown field '{key}'", entity_name)
            column = mapper.column_attrs[key].columns[0]
            attr = getattr(entity, key)
            clauses.append(_clause(attr, column, value, entity_name))
        return and_(*clauses)


def _clause(attr, column, value: Any, entity_name: str):
    if isinstance(value, NotEqual):
        target = _coerce(column, value.value, entity_name)
        return attr.is_not(None) if target is None else attr != target
    if isinstance(value, In):
        return attr.in_([_coerce(column, v, entity_name) for v in value.values])
    if value is None:
        return attr.is_(None)
    return attr == _coerce(column, value, entity_name)


def _coerce(column, value: Any, entity_name: str) -> Any:
    if not isinstance(value, str):
        return value
    try:
        python_type = column.type.python_type
    except NotImplementedError:
        return value
    if python_type in _UNCOERCED_TYPES or isinstance(value, python_type):
        return value
    try:
        return python_type(value)
    except (TypeError, ValueError):
        raise StoreAccessError(
            f"value {value!r} does not fit column '{column.key}'", entity_name,
        )
