"""ORM Models — SQLAlchemy declarative models for all stored entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - Unique columns carry a DB constraint as well as a Unique declaration on
      their write schema; the constraint is the last line against check/write races

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.workspace import Workspace  # noqa: F401
from app.models.account import Account  # noqa: F401
from app.models.project import Project  # noqa: F401
