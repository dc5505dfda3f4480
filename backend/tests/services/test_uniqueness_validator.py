"""Uniqueness Validator — tests for the asynchronous uniqueness rule.

Tests cover:
    - Absent values validate, present values fail (real SQLite store)
    - Self-exclusion through a route-param builder keeps a record's own value valid
    - Count 0 -> valid, count 5 -> invalid, no result -> valid
    - Sync and async builders, OR branches, authoritative checked field
    - Exactly one store read per check
    - Store failures surface as StoreAccessError, never as a verdict
    - Cancellation propagates unwrapped
    - Messages: validator default, fixed, computed; `when` skips the check

Design Decisions:
    - Payloads here are plain BaseModels registered through an explicit
      registry.register() call, so they never touch the process-wide registry
"""

import asyncio

import pytest
from pydantic import BaseModel

from app.core.errors import FieldFailure, PayloadValidationError, StoreAccessError
from app.core.request_context import PayloadEnvelope, RequestContext
from app.core.unique_descriptors import (
    DescriptorRegistry, ValidationDescriptor, ValidationOptions,
)
from app.core.unique_filters import NotEqual
from app.db.entity_fields import entity_has_field
from app.models.account import Account
from app.services.unique_store import SqlAlchemyUniqueStore
from app.services.uniqueness_validator import UniquenessValidator


class AccountNamePayload(BaseModel):
    username: str


class AccountContactPayload(BaseModel):
    username: str
    email: str


class FakeStore:
    """Records every count() call and answers with a fixed count."""

    def __init__(self, count=0, error: Exception | None = None):
        self._count = count
        self._error = error
        self.calls: list[tuple[type, list[dict]]] = []

    async def count(self, entity, filters):
        self.calls.append((entity, filters))
        if self._error is not None:
            raise self._error
        return self._count


def _envelope(payload, params=None, query=None) -> PayloadEnvelope:
    return PayloadEnvelope(payload, RequestContext.from_mappings(params, query))


def _registry() -> DescriptorRegistry:
    return DescriptorRegistry(has_field=entity_has_field)


def _self_excluding(ctx):
    return {"id": NotEqual(ctx.params["id"])}


# ─── Store-backed verdicts ───────────────────────────────────────

async def test_absent_value_is_valid(test_db):
    validator = UniquenessValidator(SqlAlchemyUniqueStore(test_db), _registry())
    descriptor = ValidationDescriptor(Account, "username")
    envelope = _envelope(AccountNamePayload(username="bob"))
    assert await validator.is_unique("bob", envelope, descriptor) is True


async def test_present_value_is_invalid(test_db, seed_account):
    validator = UniquenessValidator(SqlAlchemyUniqueStore(test_db), _registry())
    descriptor = ValidationDescriptor(Account, "username")
    envelope = _envelope(AccountNamePayload(username="alice"))
    assert await validator.is_unique("alice", envelope, descriptor) is False


async def test_update_keeping_own_value_is_valid(test_db, seed_account):
    registry = _registry()
    registry.register(
        AccountNamePayload, "username",
        ValidationDescriptor(Account, "username", predicate_builder=_self_excluding),
    )
    validator = UniquenessValidator(SqlAlchemyUniqueStore(test_db), registry)
    envelope = _envelope(
        AccountNamePayload(username="alice"), params={"id": str(seed_account.id)},
    )
    assert await validator.check_field(envelope, "username") is None


async def test_other_record_taking_value_is_invalid(test_db, seed_account):
    registry = _registry()
    registry.register(
        AccountNamePayload, "username",
        ValidationDescriptor(Account, "username", predicate_builder=_self_excluding),
    )
    validator = UniquenessValidator(SqlAlchemyUniqueStore(test_db), registry)
    other_id = "00000000-0000-0000-0000-000000000001"
    envelope = _envelope(AccountNamePayload(username="alice"), params={"id": other_id})
    failure = await validator.check_field(envelope, "username")
    assert failure == FieldFailure(field="username", message="value unavailable")


# ─── Filter assembly and count mapping ───────────────────────────

async def test_without_builder_store_gets_single_key_filter():
    store = FakeStore()
    validator = UniquenessValidator(store, _registry())
    descriptor = ValidationDescriptor(Account, "username")
    await validator.is_unique("bob", _envelope(AccountNamePayload(username="bob")), descriptor)
    assert store.calls == [(Account, [{"username": "bob"}])]


@pytest.mark.parametrize("count, expected", [(0, True), (5, False), (None, True)])
async def test_count_maps_to_verdict(count, expected):
    validator = UniquenessValidator(FakeStore(count=count), _registry())
    descriptor = ValidationDescriptor(Account, "username")
    envelope = _envelope(AccountNamePayload(username="bob"))
    assert await validator.is_unique("bob", envelope, descriptor) is expected


async def test_exactly_one_read_per_check():
    store = FakeStore(count=0)
    validator = UniquenessValidator(store, _registry())
    descriptor = ValidationDescriptor(
        Account, "username", predicate_builder=lambda ctx: [{"status": "active"}, {}],
    )
    await validator.is_unique("bob", _envelope(AccountNamePayload(username="bob")), descriptor)
    assert len(store.calls) == 1


async def test_async_builder_is_awaited():
    async def builder(ctx):
        return {"status": ctx.query["status"]}

    store = FakeStore()
    validator = UniquenessValidator(store, _registry())
    descriptor = ValidationDescriptor(Account, "username", predicate_builder=builder)
    envelope = _envelope(AccountNamePayload(username="bob"), query={"status": "active"})
    await validator.is_unique("bob", envelope, descriptor)
    assert store.calls[0][1] == [{"status": "active", "username": "bob"}]


async def test_builder_cannot_replace_checked_value():
    store = FakeStore()
    validator = UniquenessValidator(store, _registry())
    descriptor = ValidationDescriptor(
        Account, "username", predicate_builder=lambda ctx: {"username": "someone-else"},
    )
    await validator.is_unique("bob", _envelope(AccountNamePayload(username="bob")), descriptor)
    assert store.calls[0][1] == [{"username": "bob"}]


async def test_builder_list_becomes_or_branches():
    store = FakeStore()
    validator = UniquenessValidator(store, _registry())
    descriptor = ValidationDescriptor(
        Account, "username",
        predicate_builder=lambda ctx: [{"status": "active"}, {"status": "disabled"}],
    )
    await validator.is_unique("bob", _envelope(AccountNamePayload(username="bob")), descriptor)
    assert store.calls[0][1] == [
        {"status": "active", "username": "bob"},
        {"status": "disabled", "username": "bob"},
    ]


async def test_builder_reads_sibling_fields():
    store = FakeStore()
    validator = UniquenessValidator(store, _registry())
    descriptor = ValidationDescriptor(
        Account, "username",
        predicate_builder=lambda ctx: {"email": NotEqual(ctx.payload.email)},
    )
    payload = AccountContactPayload(username="bob", email="bob@example.com")
    await validator.is_unique("bob", _envelope(payload), descriptor)
    assert store.calls[0][1] == [
        {"email": NotEqual("bob@example.com"), "username": "bob"},
    ]


# ─── Store failures ──────────────────────────────────────────────

async def test_store_access_error_propagates():
    error = StoreAccessError("count query failed", "Account")
    validator = UniquenessValidator(FakeStore(error=error), _registry())
    descriptor = ValidationDescriptor(Account, "username")
    with pytest.raises(StoreAccessError) as exc:
        await validator.is_unique("bob", _envelope(AccountNamePayload(username="bob")), descriptor)
    assert exc.value is error


async def test_unexpected_store_failure_becomes_store_access_error():
    validator = UniquenessValidator(
        FakeStore(error=ConnectionError("connection reset")), _registry(),
    )
    descriptor = ValidationDescriptor(Account, "username")
    with pytest.raises(StoreAccessError) as exc:
        await validator.is_unique("bob", _envelope(AccountNamePayload(username="bob")), descriptor)
    assert isinstance(exc.value.__cause__, ConnectionError)


async def test_store_failure_is_not_a_field_failure():
    registry = _registry()
    registry.register(AccountNamePayload, "username", ValidationDescriptor(Account, "username"))
    validator = UniquenessValidator(
        FakeStore(error=ConnectionError("down")), registry,
    )
    with pytest.raises(StoreAccessError):
        await validator.validate(_envelope(AccountNamePayload(username="bob")))


async def test_cancellation_propagates_unwrapped():
    validator = UniquenessValidator(
        FakeStore(error=asyncio.CancelledError()), _registry(),
    )
    descriptor = ValidationDescriptor(Account, "username")
    with pytest.raises(asyncio.CancelledError) as exc:
        await validator.is_unique("bob", _envelope(AccountNamePayload(username="bob")), descriptor)
    assert not isinstance(exc.value, StoreAccessError)


# ─── Field-level results ─────────────────────────────────────────

async def test_validator_default_message_is_configurable():
    registry = _registry()
    registry.register(AccountNamePayload, "username", ValidationDescriptor(Account, "username"))
    validator = UniquenessValidator(FakeStore(count=1), registry, default_message="taken")
    failure = await validator.check_field(
        _envelope(AccountNamePayload(username="bob")), "username",
    )
    assert failure.message == "taken"


async def test_custom_message_factory_receives_value():
    registry = _registry()
    registry.register(
        AccountNamePayload, "username",
        ValidationDescriptor(
            Account, "username",
            options=ValidationOptions(message=lambda a: f"{a.value} is busy"),
        ),
    )
    validator = UniquenessValidator(FakeStore(count=1), registry)
    failure = await validator.check_field(
        _envelope(AccountNamePayload(username="bob")), "username",
    )
    assert failure.message == "bob is busy"


async def test_when_condition_skips_store_read():
    store = FakeStore(count=1)
    registry = _registry()
    registry.register(
        AccountNamePayload, "username",
        ValidationDescriptor(
            Account, "username",
            options=ValidationOptions(when=lambda p: p.username != "bob"),
        ),
    )
    validator = UniquenessValidator(store, registry)
    assert await validator.check_field(
        _envelope(AccountNamePayload(username="bob")), "username",
    ) is None
    assert store.calls == []


async def test_validate_collects_every_failing_field():
    registry = _registry()
    registry.register(AccountContactPayload, "username", ValidationDescriptor(Account, "username"))
    registry.register(AccountContactPayload, "email", ValidationDescriptor(Account, "email"))
    validator = UniquenessValidator(FakeStore(count=2), registry)
    payload = AccountContactPayload(username="bob", email="bob@example.com")
    failures = await validator.validate(_envelope(payload))
    assert {f.field for f in failures} == {"username", "email"}


async def test_ensure_valid_raises_payload_validation_error():
    registry = _registry()
    registry.register(AccountNamePayload, "username", ValidationDescriptor(Account, "username"))
    validator = UniquenessValidator(FakeStore(count=1), registry)
    with pytest.raises(PayloadValidationError) as exc:
        await validator.ensure_valid(_envelope(AccountNamePayload(username="bob")))
    assert exc.value.failures == [FieldFailure("username", "value unavailable")]


async def test_ensure_valid_passes_for_payload_without_declarations():
    store = FakeStore(count=3)
    validator = UniquenessValidator(store, _registry())
    await validator.ensure_valid(_envelope(AccountNamePayload(username="bob")))
    assert store.calls == []


async def test_check_field_without_declaration_raises_lookup_error():
    validator = UniquenessValidator(FakeStore(), _registry())
    with pytest.raises(LookupError):
        await validator.check_field(_envelope(AccountNamePayload(username="bob")), "username")
