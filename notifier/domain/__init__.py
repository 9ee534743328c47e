from .errors import (
    DeliveryFailure,
    DuplicateTrackingId,
    InvalidStatusTransition,
    MissingVariable,
    NoSenderForChannel,
    NotificationError,
    PermanentDeliveryFailure,
    RecipientNotFound,
    TemplateNotFound,
    TemplateRenderError,
    TransientDeliveryFailure,
    UnknownTrackingId,
    ValidationError,
)
from .models import (
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
    "ChannelType",
    "DeliveryFailure",
    "DeliveryRecord",
    "DeliveryStatus",
    "DuplicateTrackingId",
    "FailureKind",
    "InvalidStatusTransition",
    "Message",
    "MissingVariable",
    "NoSenderForChannel",
    "NotificationError",
    "PermanentDeliveryFailure",
    "RecipientNotFound",
    "SendRequest",
    "SendResult",
    "Template",
    "TemplateNotFound",
    "TemplateRenderError",
    "TransientDeliveryFailure",
    "UnknownTrackingId",
    "ValidationError",
]
