"""Account Schemas — unique email and username, with self-exclusion on update.

Invariants:
    - email is lower-cased and stripped before the uniqueness check
    - AccountUpdate ignores the account named by the `account_id` route param,
      so keeping one's own email/username validates

Design Decisions:
    - Regex email check over email-validator: only shape matters here, the
      uniqueness check is what guards the column
"""

from datetime import datetime
from typing import Annotated, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.core.unique_predicates import exclude_route_param
from app.models.account import Account
from app.schemas.unique import ContextualPayload, Unique

_EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_USERNAME_PATTERN = r"^[A-Za-z0-9_.-]{3,64}$"


def _email_taken(args) -> str:
    return f"email {args.value} is already registered"


class AccountCreate(ContextualPayload):
    """Account creation — email and username must be free."""
    email: Annotated[
        str,
        Field(max_length=320, pattern=_EMAIL_PATTERN),
        Unique(Account, "email", message=_email_taken),
    ]
    username: Annotated[
        str,
        Field(pattern=_USERNAME_PATTERN),
        Unique(Account, "username"),
    ]
    display_name: str | None = Field(None, max_length=200)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class AccountUpdate(ContextualPayload):
    """Account replacement — the account's own values do not count as taken."""
    email: Annotated[
        str,
        Field(max_length=320, pattern=_EMAIL_PATTERN),
        Unique(
            Account, "email",
            predicate=exclude_route_param("account_id"),
            message=_email_taken,
        ),
    ]
    username: Annotated[
        str,
        Field(pattern=_USERNAME_PATTERN),
        Unique(Account, "username", predicate=exclude_route_param("account_id")),
    ]
    display_name: str | None = Field(None, max_length=200)
    status: Literal["active", "disabled"] = "active"

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class AccountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    display_name: str | None = None
    status: str
    created_at: datetime
