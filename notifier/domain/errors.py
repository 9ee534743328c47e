"""
Error taxonomy for notification dispatch.

Request, templating and wiring errors surface synchronously from submit
and are never retried. Delivery failures are recorded on the
DeliveryRecord and never raised back to the submitting caller.
"""


class NotificationError(Exception):
    """Base class for all notifier errors."""


class ValidationError(NotificationError):
    """The send request is malformed. The caller must fix it."""


class TemplateNotFound(NotificationError):
    def __init__(self, template_code: str) -> None:
        super().__init__(f"Template not found: {template_code}")
        self.template_code = template_code


class MissingVariable(NotificationError):
    def __init__(self, name: str, missing: list[str] | None = None) -> None:
        super().__init__(f"Missing template variable: {name}")
        self.name = name
        self.missing = missing or [name]


class TemplateRenderError(NotificationError):
    """The template itself is broken (syntax error, bad filter)."""


class RecipientNotFound(NotificationError):
    def __init__(self, user_id: str, channel: str) -> None:
        super().__init__(f"No {channel} address for user {user_id}")
        self.user_id = user_id
        self.channel = channel


class NoSenderForChannel(NotificationError):
    def __init__(self, channel: object) -> None:
        name = getattr(channel, "value", channel)
        super().__init__(f"No sender registered for channel: {name}")
        self.channel = channel


class UnknownTrackingId(NotificationError):
    def __init__(self, tracking_id: str) -> None:
        super().__init__(f"Unknown tracking id: {tracking_id}")
        self.tracking_id = tracking_id


class DuplicateTrackingId(NotificationError):
    def __init__(self, tracking_id: str) -> None:
        super().__init__(f"Tracking id already exists: {tracking_id}")
        self.tracking_id = tracking_id


class InvalidStatusTransition(NotificationError):
    """A delivery record was asked to leave a terminal state."""


class DeliveryFailure(NotificationError):
    """Raised by channel senders that prefer exceptions over results."""


class TransientDeliveryFailure(DeliveryFailure):
    """Network, timeout or provider overload. Retried per policy."""


class PermanentDeliveryFailure(DeliveryFailure):
    """Invalid destination or rejected content. Never retried."""
