"""Multi-channel notification dispatcher: render, route, deliver, track."""

from .application.services import (
    ChannelRegistry,
    DispatchService,
    RetryPolicy,
    TemplateEngine,
)
from .domain import (
    ChannelType,
    DeliveryRecord,
    DeliveryStatus,
    FailureKind,
    Message,
    SendRequest,
    SendResult,
    Template,
)

__all__ = [
    "ChannelRegistry",
    "ChannelType",
    "DeliveryRecord",
    "DeliveryStatus",
    "DispatchService",
    "FailureKind",
    "Message",
    "RetryPolicy",
    "SendRequest",
    "SendResult",
    "Template",
    "TemplateEngine",
]
