"""In-memory delivery record store.

Records live for the lifetime of the process. Expiry of old records is
left to whoever owns retention.
"""

import asyncio
from collections import defaultdict
from uuid import UUID

import structlog

from ...domain.errors import DuplicateTrackingId, UnknownTrackingId
from ...domain.models import DeliveryRecord, DeliveryStatus, SendRequest, SendResult
from ...domain.ports import DeliveryRecordStore

logger = structlog.get_logger()


class InMemoryDeliveryRecordStore(DeliveryRecordStore):
    """
    In-memory implementation of DeliveryRecordStore.

    Each tracking id has its own asyncio.Lock so concurrent mutations of
    one record are serialized while unrelated records never contend.
    Should be replaced with the SQLAlchemy store when records must
    survive a restart or be shared between workers.
    """

    def __init__(self) -> None:
        self._records: dict[str, DeliveryRecord] = {}
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create(
        self,
        tracking_id: str,
        request: SendRequest,
        message_id: UUID | None = None,
    ) -> DeliveryRecord:
        async with self._locks[tracking_id]:
            if tracking_id in self._records:
                raise DuplicateTrackingId(tracking_id)
            record = DeliveryRecord(
                tracking_id=tracking_id,
                request=request,
                message_id=message_id,
            )
            self._records[tracking_id] = record
            logger.debug("Created delivery record", tracking_id=tracking_id)
            return record.snapshot()

    async def append_attempt(self, tracking_id: str, result: SendResult) -> DeliveryRecord:
        async with self._locks[tracking_id]:
            record = self._get(tracking_id)
            record.record_attempt(result)
            return record.snapshot()

    async def update_status(
        self,
        tracking_id: str,
        status: DeliveryStatus,
        error: str | None = None,
    ) -> DeliveryRecord:
        async with self._locks[tracking_id]:
            record = self._get(tracking_id)
            record.transition_to(status, error)
            logger.debug(
                "Delivery status updated",
                tracking_id=tracking_id,
                status=status.value,
            )
            return record.snapshot()

    async def get_status(self, tracking_id: str) -> DeliveryRecord:
        async with self._locks[tracking_id]:
            return self._get(tracking_id).snapshot()

    def __len__(self) -> int:
        return len(self._records)

    def _get(self, tracking_id: str) -> DeliveryRecord:
        record = self._records.get(tracking_id)
        if record is None:
            # Don't keep a lock around for ids that were never created
            self._locks.pop(tracking_id, None)
            raise UnknownTrackingId(tracking_id)
        return record
