import asyncio

import pytest

from notifier.domain.errors import (
    DuplicateTrackingId,
    InvalidStatusTransition,
    UnknownTrackingId,
)
from notifier.domain.models import DeliveryStatus, SendResult
from notifier.infrastructure.adapters import InMemoryDeliveryRecordStore


class TestInMemoryDeliveryRecordStore:
    @pytest.mark.asyncio
    async def test_create_and_get(self, store, welcome_request):
        created = await store.create("t-1", welcome_request)
        fetched = await store.get_status("t-1")

        assert created.status == DeliveryStatus.PENDING
        assert fetched.request == welcome_request
        assert fetched.attempts == []

    @pytest.mark.asyncio
    async def test_duplicate_tracking_id(self, store, welcome_request):
        await store.create("t-1", welcome_request)

        with pytest.raises(DuplicateTrackingId):
            await store.create("t-1", welcome_request)

    @pytest.mark.asyncio
    async def test_unknown_tracking_id(self, store):
        with pytest.raises(UnknownTrackingId):
            await store.get_status("missing")
        with pytest.raises(UnknownTrackingId):
            await store.append_attempt("missing", SendResult.ok())
        with pytest.raises(UnknownTrackingId):
            await store.update_status("missing", DeliveryStatus.SENT)

    @pytest.mark.asyncio
    async def test_returned_records_are_snapshots(self, store, welcome_request):
        await store.create("t-1", welcome_request)
        snapshot = await store.get_status("t-1")

        snapshot.attempts.append(SendResult.ok())

        assert (await store.get_status("t-1")).attempt_count == 0

    @pytest.mark.asyncio
    async def test_concurrent_appends_are_not_lost(self, store, welcome_request):
        await store.create("t-1", welcome_request)

        await asyncio.gather(
            *(store.append_attempt("t-1", SendResult.transient(f"e{i}")) for i in range(100))
        )

        record = await store.get_status("t-1")
        assert record.attempt_count == 100
        assert {a.error for a in record.attempts} == {f"e{i}" for i in range(100)}

    @pytest.mark.asyncio
    async def test_terminal_record_rejects_changes(self, store, welcome_request):
        await store.create("t-1", welcome_request)
        await store.append_attempt("t-1", SendResult.ok("ext"))
        await store.update_status("t-1", DeliveryStatus.SENT)

        with pytest.raises(InvalidStatusTransition):
            await store.append_attempt("t-1", SendResult.ok("again"))
        with pytest.raises(InvalidStatusTransition):
            await store.update_status("t-1", DeliveryStatus.FAILED)

        assert (await store.get_status("t-1")).status == DeliveryStatus.SENT

    @pytest.mark.asyncio
    async def test_len(self, welcome_request):
        store = InMemoryDeliveryRecordStore()
        await store.create("a", welcome_request)
        await store.create("b", welcome_request)

        assert len(store) == 2
