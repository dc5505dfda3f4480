"""Request Context — the typed envelope that carries route/query context next to a payload.

Invariants:
    - Context is never merged into the payload object itself
    - enrich_body returns None for a missing body and never mutates its input
    - Enriching twice with the same context yields the same result (idempotent)
    - RESERVED_KEYS are the only keys the legacy enriched view adds
    - A repeated query key keeps only its last value (`?tag=a&tag=b` -> "b"),
      the same as indexing Starlette's QueryParams
    - Route params hold whatever the enricher validated them into (UUID, int, str)

Design Decisions:
    - PayloadEnvelope over underscore keys on the body: what is persisted
      (payload) and what is transient (context) stay separate types
    - to_enriched_dict keeps the `_params` / `_query` wire view for clients and
      builders written against it
"""

from dataclasses import dataclass, field
from typing import Any, Generic, Mapping, TypeVar

RESERVED_PARAMS_KEY = "_params"
RESERVED_QUERY_KEY = "_query"
RESERVED_KEYS = (RESERVED_PARAMS_KEY, RESERVED_QUERY_KEY)

T = TypeVar("T")


@dataclass(frozen=True)
class RequestContext:
    """Ambient request values available to predicate builders."""
    route_params: dict[str, Any] = field(default_factory=dict)
    query_params: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_mappings(
        cls,
        route_params: Mapping[str, Any] | None,
        query_params: Mapping[str, Any] | None,
    ) -> "RequestContext":
        return cls(
            route_params=dict(route_params or {}),
            query_params=dict(query_params or {}),
        )


@dataclass(frozen=True)
class PayloadEnvelope(Generic[T]):
    """A validated payload plus the request context it arrived with."""
    payload: T
    context: RequestContext = field(default_factory=RequestContext)

    @property
    def params(self) -> dict[str, Any]:
        return self.context.route_params

    @property
    def query(self) -> dict[str, str]:
        return self.context.query_params

    def to_enriched_dict(self) -> dict:
        """Legacy view: payload fields plus `_params` and `_query`."""
        dump = getattr(self.payload, "model_dump", None)
        body = dump() if dump is not None else dict(self.payload)
        return enrich_body(body, self.context)


def enrich_body(body: Mapping[str, Any] | None, context: RequestContext) -> dict | None:
    """Copy body and attach route/query params under the reserved keys."""
    if body is None:
        return None
    enriched = dict(body)
    enriched[RESERVED_PARAMS_KEY] = dict(context.route_params)
    enriched[RESERVED_QUERY_KEY] = dict(context.query_params)
    return enriched


def strip_reserved(body: Mapping[str, Any]) -> dict:
    """Drop the reserved context keys from an inbound body."""
    return {k: v for k, v in body.items() if k not in RESERVED_KEYS}
