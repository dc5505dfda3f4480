"""Unique Descriptors — declarative per-field uniqueness configuration and its registry.

Invariants:
    - One descriptor per (payload type, field name); a second declaration raises
      DescriptorConfigError at registration time, never at request time
    - field_key must name a field of the entity (checked via the injected has_field)
    - context_type, when given, must be the payload type or one of its bases
    - Descriptors are frozen; the registry only grows during startup

Design Decisions:
    - Entity field lookup injected as a callable: keeps core free of SQLAlchemy
      (db/entity_fields.py supplies the mapper-based check)
    - Predicate builders must only read their context; the registry documents
      this but does not enforce it
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Union

from app.core.errors import DescriptorConfigError
from app.core.unique_filters import BuilderResult

DEFAULT_UNIQUE_MESSAGE = "value unavailable"

PredicateBuilder = Callable[[Any], Union[BuilderResult, Awaitable[BuilderResult]]]
MessageFactory = Callable[["FailureArguments"], str]


@dataclass(frozen=True)
class FailureArguments:
    """Values available to a message factory when a check fails."""
    field: str
    value: Any
    entity: str
    payload: Any


@dataclass(frozen=True)
class ValidationOptions:
    """Per-declaration options: custom message and applicability condition."""
    message: str | MessageFactory | None = None
    when: Callable[[Any], bool] | None = None

    def render_message(self, args: FailureArguments, default: str) -> str:
        if self.message is None:
            return default
        if callable(self.message):
            return self.message(args)
        return self.message

    def applies_to(self, payload: Any) -> bool:
        return self.when is None or bool(self.when(payload))


@dataclass(frozen=True)
class ValidationDescriptor:
    """Uniqueness check configuration attached to one payload field."""
    entity: type
    field_key: str
    context_type: type | None = None
    predicate_builder: PredicateBuilder | None = None
    options: ValidationOptions = field(default_factory=ValidationOptions)

    @property
    def entity_name(self) -> str:
        return getattr(self.entity, "__name__", repr(self.entity))


class DescriptorRegistry:
    """Process-wide mapping (payload type, field name) -> ValidationDescriptor."""

    def __init__(self, has_field: Callable[[type, str], bool] | None = None):
        self._has_field = has_field
        self._descriptors: dict[tuple[type, str], ValidationDescriptor] = {}

    def register(
        self,
        payload_type: type,
        field_name: str,
        descriptor: ValidationDescriptor,
    ) -> ValidationDescriptor:
        key = (payload_type, field_name)
        type_name = payload_type.__name__
        if key in self._descriptors:
            raise DescriptorConfigError(
                "uniqueness is already declared on this field", type_name, field_name,
            )
        if self._has_field is not None and not self._has_field(
            descriptor.entity, descriptor.field_key,
        ):
            raise DescriptorConfigError(
                f"'{descriptor.field_key}' is not a field of entity "
                f"{descriptor.entity_name}",
                type_name, field_name,
            )
        if descriptor.context_type is not None and not (
            isinstance(descriptor.context_type, type)
            and issubclass(payload_type, descriptor.context_type)
        ):
            raise DescriptorConfigError(
                f"context type {descriptor.context_type!r} does not describe "
                f"{type_name}",
                type_name, field_name,
            )
        if descriptor.predicate_builder is not None and not callable(
            descriptor.predicate_builder,
        ):
            raise DescriptorConfigError(
                "predicate builder must be callable", type_name, field_name,
            )
        self._descriptors[key] = descriptor
        return descriptor

    def get(self, payload_type: type, field_name: str) -> ValidationDescriptor | None:
        return self._descriptors.get((payload_type, field_name))

    def for_type(self, payload_type: type) -> dict[str, ValidationDescriptor]:
        """All descriptors declared on payload_type, keyed by field name."""
        return {
            name: descriptor
            for (owner, name), descriptor in self._descriptors.items()
            if owner is payload_type
        }

    def __contains__(self, key: tuple[type, str]) -> bool:
        return key in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)
