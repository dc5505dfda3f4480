"""Persistence Helpers — lookups and commits shared by the write routes.

Invariants:
    - A unique-constraint violation at commit becomes ConcurrencyError (409):
      the uniqueness check passed, but another write took the value first
    - Missing rows become ResourceNotFoundError (404)
"""

import logging
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ConcurrencyError, ResourceNotFoundError

logger = logging.getLogger(__name__)


async def get_or_404(db: AsyncSession, model: type, resource_id: UUID):
    """Load model by primary key or raise ResourceNotFoundError."""
    result = await db.execute(select(model).where(model.id == resource_id))
    row = result.scalar_one_or_none()
    if row is None:
        raise ResourceNotFoundError(model.__name__, str(resource_id))
    return row


async def commit_or_conflict(db: AsyncSession, resource_type: str) -> None:
    """Commit, turning a lost check/write race into ConcurrencyError."""
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        logger.warning(
            f"{resource_type} write rejected by unique constraint: {e.orig}",
            extra={"entity": resource_type, "error_code": "CONCURRENCY_CONFLICT"},
        )
        raise ConcurrencyError(
            f"{resource_type} conflicts with a record written concurrently",
        )
