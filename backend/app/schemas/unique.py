"""Unique Declarations — the Unique field marker and the payload base class that registers it.

Invariants:
    - Unique markers are collected once, when a ContextualPayload subclass is defined
    - Two Unique markers on one field raise DescriptorConfigError at class definition
    - descriptor_registry is the single process-wide registry; read-only after import
    - `_params` / `_query` keys in an inbound body are accepted and dropped;
      they never reach model fields, so they are never persisted

Design Decisions:
    - Annotated metadata over decorators: declaration sits on the field it
      guards, and Pydantic keeps unknown metadata on FieldInfo.metadata
    - extra="forbid" on payloads: only the reserved context keys are tolerated
      beyond the declared fields

Usage:
    class AccountUpdate(ContextualPayload):
        username: Annotated[str, Unique(
            Account, "username",
            predicate=lambda ctx: {"id": NotEqual(ctx.params.get("account_id"))},
        )]
"""

from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, model_validator

from app.core.errors import DescriptorConfigError
from app.core.request_context import strip_reserved
from app.core.unique_descriptors import (
    DescriptorRegistry, MessageFactory, PredicateBuilder,
    ValidationDescriptor, ValidationOptions,
)
from app.db.entity_fields import entity_has_field

descriptor_registry = DescriptorRegistry(has_field=entity_has_field)


class Unique:
    """Field marker: the annotated value must not already exist in entity.field_key."""

    __slots__ = ("descriptor",)

    def __init__(
        self,
        entity: type,
        field_key: str,
        *,
        context_type: type | None = None,
        predicate: PredicateBuilder | None = None,
        message: str | MessageFactory | None = None,
        when=None,
    ):
        self.descriptor = ValidationDescriptor(
            entity=entity,
            field_key=field_key,
            context_type=context_type,
            predicate_builder=predicate,
            options=ValidationOptions(message=message, when=when),
        )

    def __repr__(self) -> str:
        d = self.descriptor
        return f"Unique({d.entity_name}.{d.field_key})"


class ContextualPayload(BaseModel):
    """Base for write payloads that declare Unique fields."""

    model_config = ConfigDict(extra="forbid")

    unique_registry: ClassVar[DescriptorRegistry] = descriptor_registry

    @model_validator(mode="before")
    @classmethod
    def drop_reserved_context(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return strip_reserved(data)
        return data

    @classmethod
    def __pydantic_init_subclass__(cls, **kwargs: Any) -> None:
        super().__pydantic_init_subclass__(**kwargs)
        for field_name, field_info in cls.model_fields.items():
            markers = [m for m in field_info.metadata if isinstance(m, Unique)]
            if len(markers) > 1:
                raise DescriptorConfigError(
                    "uniqueness is declared more than once on this field",
                    cls.__name__, field_name,
                )
            for marker in markers:
                cls.unique_registry.register(cls, field_name, marker.descriptor)
