"""Project Schemas — slugs unique per workspace, scoped by the route.

Invariants:
    - The workspace scope comes from the `workspace_id` route param, never the body
    - ProjectUpdate additionally excludes the project named by `project_id`
    - ProjectPatch only checks slug when one is supplied
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.unique_predicates import (
    exclude_route_param, merge_predicates, scope_by_route_param,
)
from app.models.project import Project
from app.schemas.unique import ContextualPayload, Unique

_SLUG_PATTERN = r"^[a-z0-9][a-z0-9-]{1,79}$"

_in_workspace = scope_by_route_param("workspace_id")


def _slug_taken(args) -> str:
    return f"slug '{args.value}' is already used in this workspace"


class ProjectCreate(ContextualPayload):
    slug: Annotated[
        str,
        Field(pattern=_SLUG_PATTERN),
        Unique(Project, "slug", predicate=_in_workspace, message=_slug_taken),
    ]
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)


class ProjectUpdate(ContextualPayload):
    slug: Annotated[
        str,
        Field(pattern=_SLUG_PATTERN),
        Unique(
            Project, "slug",
            predicate=merge_predicates(
                _in_workspace, exclude_route_param("project_id"),
            ),
            message=_slug_taken,
        ),
    ]
    title: str = Field(min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)


class ProjectPatch(ContextualPayload):
    slug: Annotated[
        str | None,
        Field(pattern=_SLUG_PATTERN),
        Unique(
            Project, "slug",
            predicate=merge_predicates(
                _in_workspace, exclude_route_param("project_id"),
            ),
            message=_slug_taken,
            when=lambda payload: payload.slug is not None,
        ),
    ] = None
    title: str | None = Field(None, min_length=1, max_length=200)
    description: str | None = Field(None, max_length=5000)

    @field_validator("slug", "title")
    @classmethod
    def reject_explicit_null(cls, v):
        if v is None:
            raise ValueError("cannot be null; omit the field to keep it")
        return v


class ProjectResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    workspace_id: UUID
    slug: str
    title: str
    description: str | None = None
    created_at: datetime
