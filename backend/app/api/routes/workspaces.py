"""Workspace Routes — create and read workspaces (name unique globally)."""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.payload_context import unique_payload
from app.api.routes.persistence_helpers import commit_or_conflict, get_or_404
from app.core.request_context import PayloadEnvelope
from app.infrastructure.database import get_db
from app.models.workspace import Workspace
from app.schemas.workspace import WorkspaceCreate, WorkspaceResponse

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/workspaces", tags=["workspaces"])


@router.post(
    "", response_model=WorkspaceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_workspace(
    envelope: PayloadEnvelope = Depends(unique_payload(WorkspaceCreate)),
    db: AsyncSession = Depends(get_db),
):
    workspace = Workspace(**envelope.payload.model_dump())
    db.add(workspace)
    await commit_or_conflict(db, "Workspace")
    await db.refresh(workspace)
    logger.info(f"Workspace {workspace.id} created")
    return workspace


@router.get("/{workspace_id}", response_model=WorkspaceResponse)
async def get_workspace(workspace_id: UUID, db: AsyncSession = Depends(get_db)):
    return await get_or_404(db, Workspace, workspace_id)
