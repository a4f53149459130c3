"""Unit tests for EntityRecordService — CRUD with audit recording."""

import pytest

from recordkeeper.application.services import (
    EntityRecordService,
    HistoryReader,
    HistoryRecorder,
    VersionAllocator,
)
from recordkeeper.domain.entities import (
    AUDIT_LOGS_COLLECTION,
    AuditEntityType,
    AuditOperation,
    AuditUser,
    RequestContext,
)
from recordkeeper.domain.exceptions import (
    EntityAlreadyExistsError,
    EntityNotFoundError,
    UnknownEntityTypeError,
)
from recordkeeper.infrastructure.memory import InMemoryDocumentStore

ACTOR = AuditUser(uid="u1", display_name="Alice", email="alice@example.com")


class FailingRecorder(HistoryRecorder):
    async def record_history(self, *args, **kwargs):
        raise RuntimeError("recorder exploded")


@pytest.fixture
def store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture
def service(store) -> EntityRecordService:
    ticks = iter(f"2024-01-0{day}T00:00:00.000Z" for day in range(1, 10))
    recorder = HistoryRecorder(store, VersionAllocator(store))
    return EntityRecordService(store, recorder, now=lambda: next(ticks))


@pytest.mark.asyncio
async def test_create_stamps_timestamps_and_records(service, store):
    created = await service.create_entity(
        AuditEntityType.CUSTOMER,
        {"id": "ignored", "name": "田中", "createdAt": "bogus"},
        ACTOR,
        entity_id="c1",
        context=RequestContext(user_agent="pytest"),
    )

    assert created == {
        "id": "c1",
        "name": "田中",
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": "2024-01-01T00:00:00.000Z",
    }
    assert await service.get_entity("Customer", "c1") == created

    history = await HistoryReader(store).get_history("Customer", "c1")
    assert len(history) == 1
    assert history[0].operation == AuditOperation.CREATE
    assert [c.field for c in history[0].changes] == ["name"]

    logs = await HistoryReader(store).search_audit_logs()
    assert logs[0].user_agent == "pytest"


@pytest.mark.asyncio
async def test_create_generates_id(service):
    created = await service.create_entity("Deal", {"title": "x"}, ACTOR)
    assert len(created["id"]) == 36


@pytest.mark.asyncio
async def test_mutations_without_actor_skip_history(service, store):
    await service.create_entity("Customer", {"name": "a"}, entity_id="c1")
    await service.update_entity("Customer", "c1", {"name": "b"})
    assert await service.delete_entity("Customer", "c1") is True

    assert await HistoryReader(store).get_history_count("Customer", "c1") == 0
    assert await store.count(AUDIT_LOGS_COLLECTION) == 0


@pytest.mark.asyncio
async def test_update_merges_and_records_diff(service, store):
    await service.create_entity("Customer", {"name": "a", "phone": "1"}, ACTOR, entity_id="c1")

    updated = await service.update_entity("Customer", "c1", {"phone": "2", "updatedAt": "bogus"}, ACTOR)

    assert updated["name"] == "a"
    assert updated["phone"] == "2"
    assert updated["updatedAt"] == "2024-01-02T00:00:00.000Z"
    assert updated["createdAt"] == "2024-01-01T00:00:00.000Z"

    entry = await HistoryReader(store).get_history_by_version("Customer", "c1", 2)
    assert entry.operation == AuditOperation.UPDATE
    assert [(c.field, c.old_value, c.new_value) for c in entry.changes] == [("phone", "1", "2")]
    assert entry.snapshot == updated


@pytest.mark.asyncio
async def test_update_without_changes_writes_no_history(service, store):
    await service.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")

    await service.update_entity("Customer", "c1", {"name": "a"}, ACTOR)

    assert await HistoryReader(store).get_latest_version("Customer", "c1") == 1


@pytest.mark.asyncio
async def test_delete_records_tombstone(service, store):
    await service.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")

    assert await service.delete_entity("Customer", "c1", ACTOR) is True

    with pytest.raises(EntityNotFoundError):
        await service.get_entity("Customer", "c1")
    entry = await HistoryReader(store).get_history_by_version("Customer", "c1", 2)
    assert entry.operation == AuditOperation.DELETE
    assert entry.snapshot == {"deleted": True, "deletedAt": "2024-01-02T00:00:00.000Z"}
    assert [(c.field, c.old_value, c.new_value) for c in entry.changes] == [("name", "a", None)]


@pytest.mark.asyncio
async def test_missing_entity_raises(service):
    with pytest.raises(EntityNotFoundError):
        await service.update_entity("Customer", "nope", {"name": "x"}, ACTOR)
    with pytest.raises(EntityNotFoundError):
        await service.delete_entity("Customer", "nope", ACTOR)


@pytest.mark.asyncio
async def test_create_with_taken_id_is_rejected(service, store):
    await service.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")

    with pytest.raises(EntityAlreadyExistsError):
        await service.create_entity("Customer", {"name": "b"}, ACTOR, entity_id="c1")

    assert (await service.get_entity("Customer", "c1"))["name"] == "a"
    assert await HistoryReader(store).get_history_count("Customer", "c1") == 1


@pytest.mark.asyncio
async def test_unknown_entity_type_raises(service):
    with pytest.raises(UnknownEntityTypeError):
        await service.create_entity("Temple", {"name": "x"}, ACTOR)


@pytest.mark.asyncio
async def test_list_entities_newest_first(service):
    await service.create_entity("Customer", {"name": "first"}, entity_id="c1")
    await service.create_entity("Customer", {"name": "second"}, entity_id="c2")
    await service.create_entity("Customer", {"name": "third"}, entity_id="c3")

    listed = await service.list_entities("Customer", limit=2)

    assert [doc["id"] for doc in listed] == ["c3", "c2"]


@pytest.mark.asyncio
async def test_recorder_failure_does_not_fail_mutation(store):
    service = EntityRecordService(store, FailingRecorder(store, VersionAllocator(store)))

    created = await service.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")

    assert created["name"] == "a"
    assert await store.get(AuditEntityType.CUSTOMER.collection_name, "c1") is not None
