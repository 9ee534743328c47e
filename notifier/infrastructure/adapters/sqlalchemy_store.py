"""
SQLAlchemy implementation of the DeliveryRecordStore port.

Records and their attempts are kept in two tables so every attempt is an
append-only row. Works with any async driver SQLAlchemy supports
(asyncpg in production, aiosqlite in tests).
"""

import asyncio
from collections import defaultdict
from datetime import UTC, datetime
from uuid import UUID

import structlog
from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from ...domain.errors import DuplicateTrackingId, InvalidStatusTransition, UnknownTrackingId
from ...domain.models import (
    DeliveryRecord,
    DeliveryStatus,
    FailureKind,
    SendRequest,
    SendResult,
)
from ...domain.ports import DeliveryRecordStore

logger = structlog.get_logger()

metadata = MetaData()

delivery_records = Table(
    "delivery_records",
    metadata,
    Column("tracking_id", String(64), primary_key=True),
    Column("request", JSON, nullable=False),
    Column("message_id", String(36), nullable=True),
    Column("status", String(16), nullable=False),
    Column("last_error", Text, nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

delivery_attempts = Table(
    "delivery_attempts",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column(
        "tracking_id",
        String(64),
        ForeignKey("delivery_records.tracking_id"),
        nullable=False,
        index=True,
    ),
    Column("attempt_no", Integer, nullable=False),
    Column("success", Boolean, nullable=False),
    Column("external_id", String(255), nullable=True),
    Column("error", Text, nullable=True),
    Column("failure_kind", String(16), nullable=True),
    Column("attempted_at", DateTime(timezone=True), nullable=False),
)


class SqlAlchemyDeliveryRecordStore(DeliveryRecordStore):
    """
    SQLAlchemy implementation of DeliveryRecordStore.

    Each operation runs in its own transaction. Mutations of one tracking
    id are additionally serialized in-process with a per-id asyncio.Lock.
    """

    def __init__(self, engine: AsyncEngine) -> None:
        """
        Initialize with a database engine.

        Args:
            engine: SQLAlchemy async engine
        """
        self._engine = engine
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    async def create_schema(self) -> None:
        """Create the delivery tables if they do not exist."""
        async with self._engine.begin() as conn:
            await conn.run_sync(metadata.create_all)

    async def dispose(self) -> None:
        await self._engine.dispose()

    async def create(
        self,
        tracking_id: str,
        request: SendRequest,
        message_id: UUID | None = None,
    ) -> DeliveryRecord:
        now = datetime.now(UTC)
        async with self._locks[tracking_id]:
            async with self._engine.begin() as conn:
                existing = await conn.execute(
                    select(delivery_records.c.tracking_id).where(
                        delivery_records.c.tracking_id == tracking_id
                    )
                )
                if existing.first() is not None:
                    raise DuplicateTrackingId(tracking_id)

                await conn.execute(
                    insert(delivery_records).values(
                        tracking_id=tracking_id,
                        request=request.to_payload(),
                        message_id=str(message_id) if message_id else None,
                        status=DeliveryStatus.PENDING.value,
                        last_error=None,
                        created_at=now,
                        updated_at=now,
                    )
                )
                record = await self._load(conn, tracking_id)

        logger.debug("Created delivery record", tracking_id=tracking_id)
        return record

    async def append_attempt(self, tracking_id: str, result: SendResult) -> DeliveryRecord:
        async with self._locks[tracking_id]:
            async with self._engine.begin() as conn:
                record = await self._load(conn, tracking_id)
                if record.is_terminal:
                    raise InvalidStatusTransition(
                        f"Cannot record an attempt on {tracking_id} in {record.status.value} status"
                    )

                count = await conn.scalar(
                    select(func.count())
                    .select_from(delivery_attempts)
                    .where(delivery_attempts.c.tracking_id == tracking_id)
                )
                await conn.execute(
                    insert(delivery_attempts).values(
                        tracking_id=tracking_id,
                        attempt_no=(count or 0) + 1,
                        success=result.success,
                        external_id=result.external_id,
                        error=result.error,
                        failure_kind=result.failure_kind.value if result.failure_kind else None,
                        attempted_at=result.attempted_at,
                    )
                )

                values = {"updated_at": datetime.now(UTC)}
                if not result.success:
                    values["last_error"] = result.error
                await conn.execute(
                    update(delivery_records)
                    .where(delivery_records.c.tracking_id == tracking_id)
                    .values(**values)
                )
                return await self._load(conn, tracking_id)

    async def update_status(
        self,
        tracking_id: str,
        status: DeliveryStatus,
        error: str | None = None,
    ) -> DeliveryRecord:
        async with self._locks[tracking_id]:
            async with self._engine.begin() as conn:
                record = await self._load(conn, tracking_id)
                record.transition_to(status, error)
                await conn.execute(
                    update(delivery_records)
                    .where(delivery_records.c.tracking_id == tracking_id)
                    .values(
                        status=record.status.value,
                        last_error=record.last_error,
                        updated_at=record.updated_at,
                    )
                )

        logger.info(
            "Delivery status updated",
            tracking_id=tracking_id,
            status=status.value,
        )
        return record

    async def get_status(self, tracking_id: str) -> DeliveryRecord:
        async with self._engine.connect() as conn:
            return await self._load(conn, tracking_id)

    async def _load(self, conn: AsyncConnection, tracking_id: str) -> DeliveryRecord:
        row = (
            await conn.execute(
                select(delivery_records).where(delivery_records.c.tracking_id == tracking_id)
            )
        ).mappings().first()
        if row is None:
            raise UnknownTrackingId(tracking_id)

        attempt_rows = (
            await conn.execute(
                select(delivery_attempts)
                .where(delivery_attempts.c.tracking_id == tracking_id)
                .order_by(delivery_attempts.c.attempt_no)
            )
        ).mappings().all()

        return DeliveryRecord(
            tracking_id=row["tracking_id"],
            request=SendRequest.from_payload(row["request"]),
            message_id=UUID(row["message_id"]) if row["message_id"] else None,
            status=DeliveryStatus(row["status"]),
            attempts=[_attempt_from_row(a) for a in attempt_rows],
            created_at=_as_utc(row["created_at"]),
            updated_at=_as_utc(row["updated_at"]),
            last_error=row["last_error"],
        )


def _attempt_from_row(row) -> SendResult:
    return SendResult(
        success=bool(row["success"]),
        external_id=row["external_id"],
        error=row["error"],
        failure_kind=FailureKind(row["failure_kind"]) if row["failure_kind"] else None,
        attempted_at=_as_utc(row["attempted_at"]),
    )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
