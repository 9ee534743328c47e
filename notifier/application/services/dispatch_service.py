"""
Application service for notification dispatch.

This service orchestrates a send request end to end:
validate -> render -> route -> dispatch -> track.

Validation, templating and routing errors are raised synchronously from
submit(). Delivery itself runs in one background task per record, so
submit() returns the tracking id immediately and delivery failures are
only ever observed through the DeliveryRecord.
"""

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from uuid import uuid4

import structlog

from ...channels.base import result_from_exception
from ...domain.errors import (
    InvalidStatusTransition,
    NotificationError,
    UnknownTrackingId,
    ValidationError,
)
from ...domain.models import DeliveryRecord, DeliveryStatus, Message, SendRequest, SendResult
from ...domain.ports import ChannelSender, DeliveryRecordStore
from ...infrastructure.logging import Timer
from .channel_registry import ChannelRegistry
from .retry_policy import RetryPolicy
from .template_engine import TemplateEngine

logger = structlog.get_logger()

DeliveryListener = Callable[[DeliveryRecord], Awaitable[None]]


@dataclass
class _DeliveryJob:
    """Single owner of one record's attempt loop."""

    tracking_id: str
    message: Message
    sender: ChannelSender
    cancel_requested: asyncio.Event = field(default_factory=asyncio.Event)
    task: asyncio.Task | None = None


class DispatchService:
    """
    Orchestrates delivery of templated notifications.

    Following hexagonal architecture, this service depends on the
    ChannelSender and DeliveryRecordStore ports, never on concrete
    provider or storage implementations.
    """

    def __init__(
        self,
        template_engine: TemplateEngine,
        registry: ChannelRegistry,
        store: DeliveryRecordStore,
        retry_policy: RetryPolicy | None = None,
        send_timeout_seconds: float = 10.0,
        listeners: Iterable[DeliveryListener] = (),
    ) -> None:
        """
        Initialize with injected dependencies.

        Args:
            template_engine: Renders requests into messages
            registry: Resolves channel senders
            store: Persists delivery records
            retry_policy: Backoff and attempt budget for transient failures
            send_timeout_seconds: Upper bound for a single sender call
            listeners: Async callbacks invoked with each terminal record
        """
        if send_timeout_seconds <= 0:
            raise ValueError("send_timeout_seconds must be > 0")
        self._engine = template_engine
        self._registry = registry
        self._store = store
        self._policy = retry_policy or RetryPolicy()
        self._send_timeout = send_timeout_seconds
        self._listeners = list(listeners)
        self._jobs: dict[str, _DeliveryJob] = {}

    async def submit(self, request: SendRequest) -> str:
        """
        Submit a request for delivery.

        Args:
            request: Validated SendRequest

        Returns:
            Tracking id for status lookups

        Raises:
            ValidationError, TemplateNotFound, MissingVariable,
            TemplateRenderError, RecipientNotFound, NoSenderForChannel
        """
        if not isinstance(request, SendRequest):
            raise ValidationError(f"Expected SendRequest, got {type(request).__name__}")

        message = self._engine.render(request)
        sender = self._registry.resolve(request.preferred_channel)

        tracking_id = uuid4().hex
        await self._store.create(tracking_id, request, message_id=message.id)

        job = _DeliveryJob(tracking_id=tracking_id, message=message, sender=sender)
        self._jobs[tracking_id] = job
        job.task = asyncio.create_task(self._run(job), name=f"deliver-{tracking_id}")
        job.task.add_done_callback(lambda _t: self._jobs.pop(tracking_id, None))

        logger.info(
            "Notification submitted",
            tracking_id=tracking_id,
            template_code=request.template_code,
            channel=request.preferred_channel.value,
        )
        return tracking_id

    async def get_status(self, tracking_id: str) -> DeliveryRecord:
        """Return the current DeliveryRecord for a tracking id."""
        return await self._store.get_status(tracking_id)

    async def cancel(self, tracking_id: str) -> DeliveryRecord:
        """
        Cancel a pending or retrying delivery.

        Further retries are prevented. An attempt already in flight is
        awaited to completion, never interrupted, so a success it reports
        still wins.

        Returns:
            The record after cancellation took effect
        """
        record = await self._store.get_status(tracking_id)
        if record.is_terminal:
            return record

        job = self._jobs.get(tracking_id)
        if job is None:
            # Record outlived its task (e.g. store shared with another process),
            # or the task finished while the status above was being read
            try:
                return await self._store.update_status(tracking_id, DeliveryStatus.CANCELLED)
            except InvalidStatusTransition:
                return await self._store.get_status(tracking_id)

        logger.info("Cancellation requested", tracking_id=tracking_id)
        job.cancel_requested.set()
        if job.task is not None:
            await asyncio.wait({job.task})
        return await self._store.get_status(tracking_id)

    async def wait_for(self, tracking_id: str, timeout: float | None = None) -> DeliveryRecord:
        """
        Wait until a delivery reaches a terminal state.

        Raises:
            UnknownTrackingId: If the tracking id does not exist
            TimeoutError: If the delivery is still running after `timeout`
        """
        job = self._jobs.get(tracking_id)
        if job is not None and job.task is not None:
            done, _ = await asyncio.wait({job.task}, timeout=timeout)
            if not done:
                raise TimeoutError(f"Delivery {tracking_id} still in progress")
        return await self._store.get_status(tracking_id)

    async def drain(self) -> None:
        """Wait for every outstanding delivery task to finish."""
        tasks = {job.task for job in self._jobs.values() if job.task is not None}
        if tasks:
            await asyncio.wait(tasks)

    @property
    def in_flight(self) -> int:
        return len(self._jobs)

    async def _run(self, job: _DeliveryJob) -> None:
        with structlog.contextvars.bound_contextvars(
            tracking_id=job.tracking_id,
            channel=job.message.channel.value,
        ):
            try:
                record = await self._deliver(job)
            except Exception as e:
                logger.exception("Delivery task crashed", error=str(e))
                record = await self._fail_safely(job.tracking_id, f"Internal error: {e}")

            if record is not None:
                await self._notify(record)

    async def _deliver(self, job: _DeliveryJob) -> DeliveryRecord:
        attempt = 0
        while True:
            if job.cancel_requested.is_set():
                return await self._finish(job.tracking_id, DeliveryStatus.CANCELLED)

            attempt += 1
            result = await self._attempt(job, attempt)
            record = await self._store.append_attempt(job.tracking_id, result)

            if result.success:
                return await self._finish(job.tracking_id, DeliveryStatus.SENT)

            if not result.is_retryable:
                return await self._finish(job.tracking_id, DeliveryStatus.FAILED, result.error)

            if not self._policy.should_retry(record.attempt_count):
                logger.warning(
                    "Retry budget exhausted",
                    attempts=record.attempt_count,
                    error=result.error,
                )
                return await self._finish(job.tracking_id, DeliveryStatus.FAILED, result.error)

            if job.cancel_requested.is_set():
                return await self._finish(job.tracking_id, DeliveryStatus.CANCELLED)

            delay = self._policy.delay_for(attempt)
            await self._store.update_status(job.tracking_id, DeliveryStatus.RETRYING, result.error)
            logger.info(
                "Scheduling retry",
                attempt=attempt,
                max_retries=self._policy.max_retries,
                delay_seconds=round(delay, 3),
                error=result.error,
            )
            await self._wait_or_cancel(job, delay)

    async def _attempt(self, job: _DeliveryJob, attempt: int) -> SendResult:
        with Timer() as timer:
            try:
                result = await asyncio.wait_for(
                    job.sender.send(job.message),
                    timeout=self._send_timeout,
                )
            except TimeoutError:
                result = SendResult.transient(
                    f"Sender timed out after {self._send_timeout}s"
                )
            except Exception as e:
                result = result_from_exception(e)

        if not isinstance(result, SendResult):
            result = SendResult.transient(
                f"Sender returned {type(result).__name__} instead of SendResult"
            )

        if result.success:
            logger.info(
                "Delivery attempt succeeded",
                attempt=attempt,
                external_id=result.external_id,
                duration_ms=timer.duration_ms,
            )
        else:
            logger.warning(
                "Delivery attempt failed",
                attempt=attempt,
                failure_kind=result.failure_kind.value if result.failure_kind else None,
                error=result.error,
                duration_ms=timer.duration_ms,
            )
        return result

    async def _wait_or_cancel(self, job: _DeliveryJob, delay: float) -> None:
        """Sleep for `delay` without blocking the loop; return early on cancellation."""
        try:
            await asyncio.wait_for(job.cancel_requested.wait(), timeout=delay)
        except TimeoutError:
            pass

    async def _finish(
        self,
        tracking_id: str,
        status: DeliveryStatus,
        error: str | None = None,
    ) -> DeliveryRecord:
        record = await self._store.update_status(tracking_id, status, error)
        logger.info(
            "Delivery finished",
            status=status.value,
            attempts=record.attempt_count,
            error=record.last_error if status is not DeliveryStatus.SENT else None,
        )
        return record

    async def _fail_safely(self, tracking_id: str, error: str) -> DeliveryRecord | None:
        try:
            record = await self._store.get_status(tracking_id)
            if record.is_terminal:
                return record
            return await self._store.update_status(tracking_id, DeliveryStatus.FAILED, error)
        except UnknownTrackingId:
            logger.error("Record vanished while failing delivery", tracking_id=tracking_id)
            return None
        except NotificationError as e:
            logger.error("Could not mark delivery failed", error=str(e))
            return None

    async def _notify(self, record: DeliveryRecord) -> None:
        for listener in self._listeners:
            try:
                await listener(record)
            except Exception as e:
                logger.error("Delivery listener failed", error=str(e))
