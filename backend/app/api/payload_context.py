"""Payload Context — FastAPI dependencies that enrich and validate write payloads.

Invariants:
    - Enrichment runs after body parsing and before any uniqueness check
    - Enrichment never suspends: it only copies route/query params into the envelope
    - Typed route params are validated during enrichment; a malformed one is a
      400 VALIDATION_ERROR and never reaches the store
    - A failed uniqueness check raises PayloadValidationError before the route body runs
    - Store failures propagate as StoreAccessError (503), never as a verdict

Design Decisions:
    - Dependency factories keyed by payload model: FastAPI parses the body with
      the model's own schema, the envelope carries the context beside it
    - Route param types are passed to the factory: FastAPI resolves the
      dependency before it validates the endpoint's own path params
    - Validator built per request around the request's AsyncSession: the store
      borrows the session for one read and holds nothing afterwards
"""

from typing import Any

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.core.request_context import PayloadEnvelope, RequestContext
from app.infrastructure.database import get_db
from app.schemas.unique import ContextualPayload, descriptor_registry
from app.services.unique_store import SqlAlchemyUniqueStore
from app.services.uniqueness_validator import UniquenessValidator


def request_context(request: Request) -> RequestContext:
    """Snapshot route and query params of the current request."""
    return RequestContext.from_mappings(request.path_params, request.query_params)


def typed_route_params(
    path_params: dict[str, Any], adapters: dict[str, TypeAdapter],
) -> dict[str, Any]:
    """Validate the typed route params; collect every failure into one error."""
    typed = dict(path_params)
    errors = []
    for name, adapter in adapters.items():
        if name not in typed:
            continue
        try:
            typed[name] = adapter.validate_python(typed[name])
        except ValidationError as e:
            errors.extend(
                {**err, "loc": ("path", name, *err["loc"])} for err in e.errors()
            )
    if errors:
        raise RequestValidationError(errors)
    return typed


def enriched_payload(model: type[ContextualPayload], **route_types: type):
    """Dependency: parse the body as model and wrap it with the request context.

    route_types maps route param names to the type the endpoint declares for
    them (``account_id=UUID``); builders then receive the validated value.
    """
    adapters = {name: TypeAdapter(tp) for name, tp in route_types.items()}

    async def dependency(request: Request, body: model) -> PayloadEnvelope:
        context = RequestContext.from_mappings(
            typed_route_params(request.path_params, adapters),
            request.query_params,
        )
        return PayloadEnvelope(payload=body, context=context)

    dependency.__name__ = f"enriched_{model.__name__}"
    return dependency


async def get_unique_validator(
    db: AsyncSession = Depends(get_db),
) -> UniquenessValidator:
    """FastAPI dependency: validator reading through the request's session."""
    return UniquenessValidator(
        SqlAlchemyUniqueStore(db),
        descriptor_registry,
        default_message=get_settings().unique_default_message,
    )


def unique_payload(model: type[ContextualPayload], **route_types: type):
    """Dependency: enriched payload whose Unique fields have all passed."""
    enrich = enriched_payload(model, **route_types)

    async def dependency(
        envelope: PayloadEnvelope = Depends(enrich),
        validator: UniquenessValidator = Depends(get_unique_validator),
    ) -> PayloadEnvelope:
        await validator.ensure_valid(envelope)
        return envelope

    dependency.__name__ = f"unique_{model.__name__}"
    return dependency
