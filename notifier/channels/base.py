import httpx

from ..domain.errors import PermanentDeliveryFailure, TransientDeliveryFailure
from ..domain.models import SendResult
from ..domain.ports import ChannelSender

# Provider statuses worth retrying; every other 4xx means the request itself was rejected
RETRYABLE_STATUS_CODES = frozenset({408, 425, 429})


def is_retryable_status(status_code: int) -> bool:
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


def result_from_exception(exc: BaseException) -> SendResult:
    """Classify an exception raised by a sender into a failed SendResult."""
    if isinstance(exc, PermanentDeliveryFailure):
        return SendResult.permanent(str(exc))
    if isinstance(exc, TransientDeliveryFailure):
        return SendResult.transient(str(exc))
    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return SendResult.transient(f"Timed out: {exc}" if str(exc) else "Timed out")
    if isinstance(exc, httpx.HTTPStatusError):
        status_code = exc.response.status_code
        error = f"Provider API error: {status_code}"
        if is_retryable_status(status_code):
            return SendResult.transient(error)
        return SendResult.permanent(error)
    if isinstance(exc, httpx.TransportError):
        return SendResult.transient(f"Transport error: {exc}")
    return SendResult.transient(f"{type(exc).__name__}: {exc}")


__all__ = [
    "ChannelSender",
    "RETRYABLE_STATUS_CODES",
    "is_retryable_status",
    "result_from_exception",
]
