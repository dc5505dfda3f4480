"""Account Routes — account creation and replacement with unique email/username.

Invariants:
    - PUT validates with the account's own row excluded (route param account_id)
    - Uniqueness is decided before the route body runs; the DB constraint only
      catches writes that race past the check (409)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.payload_context import unique_payload
from app.api.routes.persistence_helpers import commit_or_conflict, get_or_404
from app.core.request_context import PayloadEnvelope
from app.infrastructure.database import get_db
from app.models.account import Account
from app.schemas.account import AccountCreate, AccountResponse, AccountUpdate

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/accounts", tags=["accounts"])


@router.post(
    "", response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_account(
    envelope: PayloadEnvelope = Depends(unique_payload(AccountCreate)),
    db: AsyncSession = Depends(get_db),
):
    """Create an account; 400 when email or username is taken."""
    account = Account(**envelope.payload.model_dump())
    db.add(account)
    await commit_or_conflict(db, "Account")
    await db.refresh(account)
    logger.info(f"Account {account.id} created")
    return account


@router.get("/{account_id}", response_model=AccountResponse)
async def get_account(account_id: UUID, db: AsyncSession = Depends(get_db)):
    return await get_or_404(db, Account, account_id)


@router.put("/{account_id}", response_model=AccountResponse)
async def replace_account(
    account_id: UUID,
    envelope: PayloadEnvelope = Depends(unique_payload(AccountUpdate, account_id=UUID)),
    db: AsyncSession = Depends(get_db),
):
    """Replace an account; its current email/username stay available to it."""
    account = await get_or_404(db, Account, account_id)
    for key, value in envelope.payload.model_dump().items():
        setattr(account, key, value)
    await commit_or_conflict(db, "Account")
    await db.refresh(account)
    return account
