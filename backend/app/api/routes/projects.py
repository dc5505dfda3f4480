"""Project Routes — projects nested under a workspace, slug unique per workspace.

Invariants:
    - The workspace scope of every slug check is the workspace_id route param
    - PUT/PATCH exclude the project being edited (project_id route param)
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.payload_context import unique_payload
from app.api.routes.persistence_helpers import commit_or_conflict, get_or_404
from app.core.errors import ResourceNotFoundError
from app.core.request_context import PayloadEnvelope
from app.infrastructure.database import get_db
from app.models.project import Project
from app.models.workspace import Workspace
from app.schemas.project import (
    ProjectCreate, ProjectPatch, ProjectResponse, ProjectUpdate,
)

logger = logging.getLogger(__name__)
router = APIRouter(
    prefix="/api/v1/workspaces/{workspace_id}/projects", tags=["projects"],
)


async def _get_project_in_workspace(
    db: AsyncSession, workspace_id: UUID, project_id: UUID,
) -> Project:
    project = await get_or_404(db, Project, project_id)
    if project.workspace_id != workspace_id:
        raise ResourceNotFoundError("Project", str(project_id))
    return project


@router.post(
    "", response_model=ProjectResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_project(
    workspace_id: UUID,
    envelope: PayloadEnvelope = Depends(unique_payload(ProjectCreate, workspace_id=UUID)),
    db: AsyncSession = Depends(get_db),
):
    """Create a project; 400 when the slug is taken inside this workspace."""
    await get_or_404(db, Workspace, workspace_id)
    project = Project(workspace_id=workspace_id, **envelope.payload.model_dump())
    db.add(project)
    await commit_or_conflict(db, "Project")
    await db.refresh(project)
    logger.info(f"Project {project.id} created in workspace {workspace_id}")
    return project


@router.get("")
async def list_projects(
    workspace_id: UUID,
    slug: str | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List projects of a workspace, optionally filtered by exact slug."""
    await get_or_404(db, Workspace, workspace_id)
    query = select(Project).where(Project.workspace_id == workspace_id)
    if slug:
        query = query.where(Project.slug == slug)
    query = query.order_by(Project.created_at.desc()).limit(limit).offset(offset)
    result = await db.execute(query)
    return {
        "projects": [
            ProjectResponse.model_validate(p).model_dump(mode="json")
            for p in result.scalars().all()
        ],
        "pagination": {"limit": limit, "offset": offset},
    }


@router.put("/{project_id}", response_model=ProjectResponse)
async def replace_project(
    workspace_id: UUID,
    project_id: UUID,
    envelope: PayloadEnvelope = Depends(
        unique_payload(ProjectUpdate, workspace_id=UUID, project_id=UUID),
    ),
    db: AsyncSession = Depends(get_db),
):
    project = await _get_project_in_workspace(db, workspace_id, project_id)
    for key, value in envelope.payload.model_dump().items():
        setattr(project, key, value)
    await commit_or_conflict(db, "Project")
    await db.refresh(project)
    return project


@router.patch("/{project_id}", response_model=ProjectResponse)
async def patch_project(
    workspace_id: UUID,
    project_id: UUID,
    envelope: PayloadEnvelope = Depends(
        unique_payload(ProjectPatch, workspace_id=UUID, project_id=UUID),
    ),
    db: AsyncSession = Depends(get_db),
):
    """Partial update; slug is only checked when it is part of the body."""
    project = await _get_project_in_workspace(db, workspace_id, project_id)
    for key, value in envelope.payload.model_dump(exclude_unset=True).items():
        setattr(project, key, value)
    await commit_or_conflict(db, "Project")
    await db.refresh(project)
    return project
