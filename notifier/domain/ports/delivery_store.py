"""
Outbound port for delivery record persistence.

This port defines the storage contract for tracked deliveries.
Implementations live in the infrastructure layer.
"""

from abc import ABC, abstractmethod
from uuid import UUID

from ..models import DeliveryRecord, DeliveryStatus, SendRequest, SendResult


class DeliveryRecordStore(ABC):
    """
    Outbound port for delivery record persistence.

    Mutations for the same tracking id must be serialized so no attempt
    is lost, and reads must reflect the most recently completed write.
    """

    @abstractmethod
    async def create(
        self,
        tracking_id: str,
        request: SendRequest,
        message_id: UUID | None = None,
    ) -> DeliveryRecord:
        """
        Create a PENDING record for a new dispatch.

        Raises:
            DuplicateTrackingId: If the tracking id already exists
        """
        ...

    @abstractmethod
    async def append_attempt(self, tracking_id: str, result: SendResult) -> DeliveryRecord:
        """
        Append one attempt result to a record.

        Raises:
            UnknownTrackingId: If the record does not exist
        """
        ...

    @abstractmethod
    async def update_status(
        self,
        tracking_id: str,
        status: DeliveryStatus,
        error: str | None = None,
    ) -> DeliveryRecord:
        """
        Move a record to a new status.

        Raises:
            UnknownTrackingId: If the record does not exist
            InvalidStatusTransition: If the record is already terminal
        """
        ...

    @abstractmethod
    async def get_status(self, tracking_id: str) -> DeliveryRecord:
        """
        Return a snapshot of a record.

        Raises:
            UnknownTrackingId: If the record does not exist
        """
        ...
