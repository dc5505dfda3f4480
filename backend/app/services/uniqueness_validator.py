"""Uniqueness Validator — the asynchronous rule that checks a field value against the store.

Invariants:
    - One store read per checked field, no retries, no locking
    - Valid iff the store counts zero matching records
    - The checked field is always part of every filter branch (see unique_filters)
    - Store failures raise StoreAccessError; they are never reported as valid
      or as "not unique"
    - Not-unique is returned as a FieldFailure, never raised from check_field

Design Decisions:
    - Predicate builders may be sync or async: awaitables are awaited before
      the filter is assembled
    - Fields of one payload are checked one after another: they share the
      request's AsyncSession, which does not allow concurrent statements
    - asyncio.CancelledError is not intercepted, so an aborted request abandons
      the in-flight read
"""

import inspect
import logging
from typing import Any

from app.core.errors import (
    FieldFailure, PayloadValidationError, ScopedUniqueError, StoreAccessError,
)
from app.core.repository_protocols import UniqueStore
from app.core.request_context import PayloadEnvelope
from app.core.unique_descriptors import (
    DEFAULT_UNIQUE_MESSAGE, DescriptorRegistry, FailureArguments, ValidationDescriptor,
)
from app.core.unique_filters import assemble_filters, describe_filters

logger = logging.getLogger(__name__)


class UniquenessValidator:
    """Runs the uniqueness declarations of a payload type against a UniqueStore."""

    def __init__(
        self,
        store: UniqueStore,
        registry: DescriptorRegistry,
        default_message: str = DEFAULT_UNIQUE_MESSAGE,
    ):
        self._store = store
        self._registry = registry
        self._default_message = default_message

    async def is_unique(
        self, value: Any, envelope: PayloadEnvelope, descriptor: ValidationDescriptor,
    ) -> bool:
        """Build the filter for value, count matches, and report count == 0."""
        builder_result = None
        if descriptor.predicate_builder is not None:
            builder_result = descriptor.predicate_builder(envelope)
            if inspect.isawaitable(builder_result):
                builder_result = await builder_result
        filters = assemble_filters(descriptor.field_key, value, builder_result)
        entity_name = descriptor.entity_name
        try:
            count = await self._store.count(descriptor.entity, filters)
        except ScopedUniqueError:
            raise
        except Exception as e:
            logger.error(
                f"Uniqueness store unreachable for {entity_name}: {e}",
                extra={"entity": entity_name, "field": descriptor.field_key},
            )
            raise StoreAccessError(str(e) or e.__class__.__name__, entity_name) from e
        logger.debug(
            f"Uniqueness check {entity_name}.{descriptor.field_key}: {count} match(es)",
            extra={
                "entity": entity_name,
                "field": descriptor.field_key,
                "match_count": count,
                "branches": describe_filters(filters),
            },
        )
        return not count

    async def check_field(
        self,
        envelope: PayloadEnvelope,
        field_name: str,
        descriptor: ValidationDescriptor | None = None,
    ) -> FieldFailure | None:
        """Check one declared field; return its failure or None when it passes."""
        payload = envelope.payload
        if descriptor is None:
            descriptor = self._registry.get(type(payload), field_name)
        if descriptor is None:
            raise LookupError(
                f"no uniqueness declared on {type(payload).__name__}.{field_name}",
            )
        if not descriptor.options.applies_to(payload):
            return None
        value = getattr(payload, field_name)
        if await self.is_unique(value, envelope, descriptor):
            return None
        message = descriptor.options.render_message(
            FailureArguments(
                field=field_name, value=value,
                entity=descriptor.entity_name, payload=payload,
            ),
            self._default_message,
        )
        logger.info(
            f"Rejected non-unique {type(payload).__name__}.{field_name}",
            extra={"entity": descriptor.entity_name, "field": field_name},
        )
        return FieldFailure(field=field_name, message=message)

    async def validate(self, envelope: PayloadEnvelope) -> list[FieldFailure]:
        """Check every declared field of the payload; collect failures."""
        failures = []
        declared = self._registry.for_type(type(envelope.payload))
        for field_name, descriptor in declared.items():
            failure = await self.check_field(envelope, field_name, descriptor)
            if failure is not None:
                failures.append(failure)
        return failures

    async def ensure_valid(self, envelope: PayloadEnvelope) -> None:
        """Raise PayloadValidationError when any declared field is taken."""
        failures = await self.validate(envelope)
        if failures:
            raise PayloadValidationError(failures)
