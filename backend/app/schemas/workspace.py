"""Workspace Schemas — globally unique workspace names."""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.workspace import Workspace
from app.schemas.unique import ContextualPayload, Unique


class WorkspaceCreate(ContextualPayload):
    """Workspace creation — name must not be taken by another workspace."""
    name: Annotated[
        str,
        Field(min_length=2, max_length=120),
        Unique(Workspace, "name", message="workspace name is already taken"),
    ]

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty or whitespace")
        return v


class WorkspaceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime
