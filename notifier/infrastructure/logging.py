"""
Structured logging for the notifier.

JSON lines through structlog. Every event carries the service name and,
when one is set, the run's correlation id. Destination addresses are
masked by a processor so delivery logs never carry a full email address
or phone number.
"""

import logging
import sys
import time
from contextvars import ContextVar
from uuid import uuid4

import structlog

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

# Event keys whose values are destination addresses
ADDRESS_KEYS = frozenset({"to", "recipient", "address"})


def configure_logging(service_name: str, log_level: str = "INFO") -> None:
    """
    Configure structlog and the stdlib root logger.

    Args:
        service_name: Added to every event as `service`
        log_level: Standard level name, unknown names fall back to INFO
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            _add_service_name(service_name),
            _add_correlation_id,
            _mask_addresses,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
    )


def _add_service_name(service_name: str):
    def processor(logger, method_name, event_dict):
        event_dict["service"] = service_name
        return event_dict

    return processor


def _add_correlation_id(logger, method_name, event_dict):
    cid = correlation_id.get()
    if cid:
        event_dict.setdefault("correlation_id", cid)
    return event_dict


def _mask_addresses(logger, method_name, event_dict):
    for key in ADDRESS_KEYS & event_dict.keys():
        value = event_dict[key]
        if isinstance(value, str):
            event_dict[key] = mask_address(value)
    return event_dict


def set_correlation_id(cid: str | None = None) -> str:
    """
    Set the correlation id for the current context.

    Delivery tasks created afterwards inherit it. A new id is generated
    when none is given.
    """
    cid = cid or uuid4().hex
    correlation_id.set(cid)
    return cid


def get_correlation_id() -> str:
    return correlation_id.get()


class Timer:
    """
    Measures one delivery attempt.

    Usage:
        with Timer() as t:
            result = await sender.send(message)
        logger.info("Attempt finished", duration_ms=t.duration_ms)
    """

    def __init__(self) -> None:
        self._start: float | None = None
        self._end: float | None = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        return self

    def __exit__(self, *args) -> None:
        self._end = time.perf_counter()

    @property
    def duration_ms(self) -> float:
        """Elapsed milliseconds, live while the block is still running."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 2)


def mask_address(address: str) -> str:
    """
    Mask a destination address for logs.

    Emails keep the first character of the local part and the domain,
    everything else keeps only its last four characters.
    """
    if not address:
        return ""
    local, sep, domain = address.partition("@")
    if sep and local and domain:
        return f"{local[0]}***@{domain}"
    if len(address) <= 4:
        return "*" * len(address)
    return "***" + address[-4:]
