"""Unique Predicates — reusable predicate builders that read request context.

Invariants:
    - Builders only read the envelope; they never touch the store
    - A missing route param never narrows the check: the builder contributes
      nothing for it, so the check falls back to the wider (stricter) scope

Design Decisions:
    - Factories return plain functions: any callable (sync or async) with the
      same signature works as a predicate builder
"""

from typing import Any, Callable, Mapping

from app.core.unique_filters import NotEqual


def scope_by_route_param(param: str, field_key: str | None = None) -> Callable:
    """Limit the check to records whose field_key equals the route param."""
    key = field_key or param

    def builder(ctx) -> dict[str, Any]:
        value = ctx.params.get(param)
        return {} if value is None else {key: value}

    return builder


def scope_by_query_param(param: str, field_key: str | None = None) -> Callable:
    """Limit the check to records whose field_key equals the query param."""
    key = field_key or param

    def builder(ctx) -> dict[str, Any]:
        value = ctx.query.get(param)
        return {} if value is None else {key: value}

    return builder


def exclude_route_param(param: str, field_key: str = "id") -> Callable:
    """Ignore the record being updated (its id comes from the route)."""

    def builder(ctx) -> dict[str, Any]:
        value = ctx.params.get(param)
        return {} if value is None else {field_key: NotEqual(value)}

    return builder


def merge_predicates(*builders: Callable) -> Callable:
    """AND several single-branch synchronous builders into one."""

    def builder(ctx) -> dict[str, Any]:
        merged: dict[str, Any] = {}
        for part in builders:
            result = part(ctx)
            if result is None:
                continue
            if not isinstance(result, Mapping):
                raise TypeError("merge_predicates only combines single-branch builders")
            merged.update(result)
        return merged

    return builder
