"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in Protocol: the store does IO, but core functions that prepare
      its input (unique_filters) are never async themselves
"""

from typing import Protocol

from app.core.unique_filters import Filter


class UniqueStore(Protocol):
    """Contract for the uniqueness count read — implemented by shell.

    count() receives OR-combined filter branches and returns the number of
    matching records (>= 0). Any failure to read must raise StoreAccessError.
    """
    async def count(self, entity: type, filters: list[Filter]) -> int: ...
