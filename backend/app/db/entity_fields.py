"""Entity Field Lookup — mapper-based checks used when uniqueness is declared.

Invariants:
    - Only mapped column attributes count as fields (relationships do not)
    - Unmapped classes never pass the check
"""

from sqlalchemy import inspect
from sqlalchemy.exc import NoInspectionAvailable


def entity_has_field(entity: type, field_key: str) -> bool:
    """True when entity is a mapped class with a column attribute named field_key."""
    try:
        mapper = inspect(entity)
    except NoInspectionAvailable:
        return False
    column_attrs = getattr(mapper, "column_attrs", None)
    if column_attrs is None:
        return False
    return field_key in column_attrs.keys()
