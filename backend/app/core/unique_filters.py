"""Unique Filters — filter expressions and the pure filter-assembly step of a uniqueness check.

Invariants:
    - A Filter maps store field name -> required value or FilterExpression
    - Keys within one Filter are AND-ed; Filters in a list are OR-ed
    - assemble_filters always returns >= 1 branch, and every branch carries
      the checked field set to the candidate value (authoritative override)
    - Builder output is copied, never mutated

Design Decisions:
    - Expressions are plain frozen dataclasses: the store translates them to SQL,
      so the core never imports SQLAlchemy
    - An empty list from a builder means "no extra scope", not "match nothing"
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence, Union


class FilterExpression:
    """Marker base for non-equality filter values."""


@dataclass(frozen=True)
class NotEqual(FilterExpression):
    """Match rows whose field differs from value (used for self-exclusion)."""
    value: Any


@dataclass(frozen=True)
class In(FilterExpression):
    """Match rows whose field is one of values."""
    values: tuple


Filter = dict[str, Any]
BuilderResult = Union[Mapping[str, Any], Sequence[Mapping[str, Any]], None]


def not_equal(value: Any) -> NotEqual:
    return NotEqual(value)


def one_of(values) -> In:
    return In(tuple(values))


def normalize_builder_result(result: BuilderResult) -> list[Filter]:
    """Turn a predicate builder's return value into a list of filter branches."""
    if result is None:
        return [{}]
    if isinstance(result, Mapping):
        return [dict(result)]
    if isinstance(result, (list, tuple)):
        branches = []
        for branch in result:
            if not isinstance(branch, Mapping):
                raise TypeError(
                    f"predicate builder returned a non-mapping filter: {branch!r}",
                )
            branches.append(dict(branch))
        return branches or [{}]
    raise TypeError(
        f"predicate builder must return a mapping or a list of mappings, "
        f"got {type(result).__name__}",
    )


def assemble_filters(
    field_key: str, value: Any, builder_result: BuilderResult = None,
) -> list[Filter]:
    """Build the OR-list of filters for one uniqueness check."""
    branches = normalize_builder_result(builder_result)
    for branch in branches:
        # checked field always wins over whatever the builder set
        branch[field_key] = value
    return branches


def describe_filters(filters: list[Filter]) -> list[dict[str, str]]:
    """Render filters for logging (values repr'd, never raw objects)."""
    return [{key: repr(val) for key, val in branch.items()} for branch in filters]
