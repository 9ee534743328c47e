from .base import (
    RETRYABLE_STATUS_CODES,
    ChannelSender,
    is_retryable_status,
    result_from_exception,
)
from .console import ConsoleSender

__all__ = [
    "ChannelSender",
    "ConsoleSender",
    "RETRYABLE_STATUS_CODES",
    "is_retryable_status",
    "result_from_exception",
]
