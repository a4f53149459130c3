"""Unit tests for RollbackService — rollback, restore-deleted, and failure results."""

import pytest

from recordkeeper.application.services import (
    EntityRecordService,
    HistoryReader,
    HistoryRecorder,
    RollbackService,
    VersionAllocator,
)
from recordkeeper.application.services.rollback_service import (
    NO_HISTORY_ERROR,
    NO_RESTORABLE_VERSION_ERROR,
    SAME_VERSION_ERROR,
)
from recordkeeper.domain.entities import (
    AuditEntityType,
    AuditOperation,
    AuditUser,
    FieldChange,
    HistoryQueryOptions,
    RollbackRequest,
)
from recordkeeper.infrastructure.memory import InMemoryDocumentStore

ACTOR = AuditUser(uid="u1", display_name="山田 太郎", email="yamada@example.co.jp")
NOW = "2024-06-01T12:00:00.000Z"


class BrokenWriteStore(InMemoryDocumentStore):
    """Store whose live-document writes fail after setup is done."""

    broken = False

    async def put(self, collection, document_id, data):
        if self.broken:
            raise ConnectionError("deadline exceeded")
        return await super().put(collection, document_id, data)


class Harness:
    def __init__(self, store: InMemoryDocumentStore | None = None):
        self.store = store or InMemoryDocumentStore()
        self.reader = HistoryReader(self.store)
        self.recorder = HistoryRecorder(self.store, VersionAllocator(self.store), now=lambda: NOW)
        self.records = EntityRecordService(self.store, self.recorder, now=lambda: NOW)
        self.rollback = RollbackService(self.store, self.reader, self.recorder, now=lambda: NOW)

    async def rollback_to(self, entity_id: str, version: int, entity_type=AuditEntityType.CUSTOMER):
        return await self.rollback.rollback_to_version(
            RollbackRequest(entity_type=entity_type, entity_id=entity_id, target_version=version),
            ACTOR,
        )

    async def live(self, entity_id: str, entity_type=AuditEntityType.CUSTOMER):
        return await self.store.get(entity_type.collection_name, entity_id)


@pytest.fixture
def harness() -> Harness:
    return Harness()


@pytest.mark.asyncio
async def test_rollback_round_trip(harness: Harness):
    await harness.records.create_entity("Customer", {"name": "v1"}, ACTOR, entity_id="c1")
    await harness.records.update_entity("Customer", "c1", {"name": "v2"}, ACTOR)
    await harness.records.update_entity("Customer", "c1", {"name": "v3"}, ACTOR)

    result = await harness.rollback_to("c1", 1)

    assert result.success is True
    assert result.error is None
    assert result.new_version == 4
    assert result.restored_data["name"] == "v1"
    assert "id" not in result.restored_data
    assert (await harness.live("c1"))["name"] == "v1"

    entry = await harness.reader.get_history_by_version("Customer", "c1", 4)
    assert entry.operation == AuditOperation.ROLLBACK
    assert entry.rollback_from_version == 3
    assert entry.rollback_to_version == 1
    assert entry.changes == [FieldChange("name", "v3", "v1")]
    assert entry.snapshot["id"] == "c1"
    assert entry.snapshot["name"] == "v1"


@pytest.mark.asyncio
async def test_concrete_customer_scenario(harness: Harness):
    created = await harness.records.create_entity(
        "Customer", {"name": "田中", "phone": "090-0000-0000"}, ACTOR, entity_id="tanaka"
    )
    v1 = await harness.reader.get_history_by_version("Customer", "tanaka", 1)
    assert v1.snapshot == {
        "id": "tanaka", "name": "田中", "phone": "090-0000-0000", "createdAt": NOW, "updatedAt": NOW,
    }
    assert v1.snapshot == created

    await harness.records.update_entity("Customer", "tanaka", {"phone": "080-1111-1111"}, ACTOR)
    v2 = await harness.reader.get_history_by_version("Customer", "tanaka", 2)
    assert v2.changes == [FieldChange("phone", "090-0000-0000", "080-1111-1111")]

    result = await harness.rollback_to("tanaka", 1)

    assert result.success is True
    assert result.new_version == 3
    assert (await harness.live("tanaka"))["phone"] == "090-0000-0000"


@pytest.mark.asyncio
async def test_delete_then_restore(harness: Harness):
    await harness.records.create_entity("Deal", {"title": "墓所契約", "amount": 100}, ACTOR, entity_id="d1")
    await harness.records.update_entity("Deal", "d1", {"amount": 150}, ACTOR)
    await harness.records.delete_entity("Deal", "d1", ACTOR)

    tombstone = await harness.reader.get_history_by_version("Deal", "d1", 3)
    assert tombstone.operation == AuditOperation.DELETE
    assert tombstone.snapshot == {"deleted": True, "deletedAt": NOW}
    assert await harness.live("d1", AuditEntityType.DEAL) is None

    result = await harness.rollback.restore_deleted(AuditEntityType.DEAL, "d1", ACTOR)

    assert result.success is True
    assert result.new_version == 4
    live = await harness.live("d1", AuditEntityType.DEAL)
    assert live["amount"] == 150
    assert live["title"] == "墓所契約"

    entry = await harness.reader.get_history_by_version("Deal", "d1", 4)
    assert entry.operation == AuditOperation.ROLLBACK
    assert (entry.rollback_from_version, entry.rollback_to_version) == (3, 2)


@pytest.mark.asyncio
async def test_rollback_removes_fields_added_later(harness: Harness):
    await harness.records.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")
    await harness.records.update_entity("Customer", "c1", {"memo": "VIP"}, ACTOR)

    result = await harness.rollback_to("c1", 1)

    assert result.success is True
    assert "memo" not in result.restored_data
    live = await harness.live("c1")
    assert "memo" not in live
    assert live["name"] == "a"
    entry = await harness.reader.get_history_by_version("Customer", "c1", 3)
    assert entry.changes == [FieldChange("memo", "VIP", None)]


@pytest.mark.asyncio
async def test_rollback_to_current_version_is_rejected(harness: Harness):
    await harness.records.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")
    await harness.records.update_entity("Customer", "c1", {"name": "b"}, ACTOR)

    result = await harness.rollback_to("c1", 2)

    assert result.success is False
    assert result.error == SAME_VERSION_ERROR
    assert result.new_version == 2
    assert result.restored_data == {}
    assert await harness.reader.get_history_count("Customer", "c1") == 2
    assert (await harness.live("c1"))["name"] == "b"


@pytest.mark.asyncio
async def test_rollback_without_history(harness: Harness):
    assert await harness.reader.get_latest_version("Customer", "ghost") == 0

    result = await harness.rollback_to("ghost", 1)

    assert result.success is False
    assert result.error == NO_HISTORY_ERROR
    assert result.new_version == 0


@pytest.mark.asyncio
async def test_rollback_to_missing_version(harness: Harness):
    await harness.records.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")

    result = await harness.rollback_to("c1", 7)

    assert result.success is False
    assert result.error == "Version 7 not found"
    assert await harness.reader.get_history_count("Customer", "c1") == 1


@pytest.mark.asyncio
async def test_rollback_resurrects_deleted_entity(harness: Harness):
    await harness.records.create_entity("Relationship", {"kind": "spouse"}, ACTOR, entity_id="r1")
    await harness.records.delete_entity("Relationship", "r1", ACTOR)

    result = await harness.rollback_to("r1", 1, AuditEntityType.RELATIONSHIP)

    assert result.success is True
    live = await harness.live("r1", AuditEntityType.RELATIONSHIP)
    assert live["id"] == "r1"
    assert live["kind"] == "spouse"


@pytest.mark.asyncio
async def test_restore_without_history(harness: Harness):
    result = await harness.rollback.restore_deleted("Customer", "ghost", ACTOR)
    assert result.success is False
    assert result.error == NO_HISTORY_ERROR


@pytest.mark.asyncio
async def test_restore_with_only_deletes(harness: Harness):
    for _ in range(2):
        await harness.recorder.record_history(
            AuditEntityType.CUSTOMER, "c9", AuditOperation.DELETE, [], {"deleted": True}, ACTOR
        )

    result = await harness.rollback.restore_deleted("Customer", "c9", ACTOR)

    assert result.success is False
    assert result.error == NO_RESTORABLE_VERSION_ERROR
    assert await harness.reader.get_history_count("Customer", "c9") == 2


@pytest.mark.asyncio
async def test_rollback_reports_store_failure():
    store = BrokenWriteStore()
    harness = Harness(store)
    await harness.records.create_entity("Customer", {"name": "a"}, ACTOR, entity_id="c1")
    await harness.records.update_entity("Customer", "c1", {"name": "b"}, ACTOR)
    store.broken = True

    result = await harness.rollback_to("c1", 1)

    assert result.success is False
    assert result.error == "Rollback failed: deadline exceeded"
    assert result.new_version == 0
    assert result.restored_data == {}
    history = await harness.reader.get_history("Customer", "c1", HistoryQueryOptions())
    assert [e.version for e in history] == [2, 1]


@pytest.mark.asyncio
async def test_unknown_entity_type_is_a_failed_result(harness: Harness):
    result = await harness.rollback.rollback_to_version(
        RollbackRequest(entity_type="Temple", entity_id="t1", target_version=1), ACTOR
    )
    assert result.success is False
    assert result.error == "Rollback failed: Unknown entity type: Temple"
