"""
Domain model for notification dispatch.

SendRequest -> Message (1:1 render) -> SendResult (one per attempt),
with all attempts rolled up into a single DeliveryRecord.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

from .errors import InvalidStatusTransition, ValidationError


class ChannelType(str, Enum):
    """Supported delivery channels."""

    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    WEBHOOK = "webhook"
    WHATSAPP = "whatsapp"


class FailureKind(str, Enum):
    """Classification of a failed delivery attempt."""

    TRANSIENT = "transient"
    PERMANENT = "permanent"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    RETRYING = "retrying"
    SENT = "sent"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL_STATUSES


_TERMINAL_STATUSES = frozenset(
    {DeliveryStatus.SENT, DeliveryStatus.FAILED, DeliveryStatus.CANCELLED}
)

_ALLOWED_TRANSITIONS: dict[DeliveryStatus, frozenset[DeliveryStatus]] = {
    DeliveryStatus.PENDING: frozenset(
        {
            DeliveryStatus.RETRYING,
            DeliveryStatus.SENT,
            DeliveryStatus.FAILED,
            DeliveryStatus.CANCELLED,
        }
    ),
    DeliveryStatus.RETRYING: frozenset(
        {
            DeliveryStatus.RETRYING,
            DeliveryStatus.SENT,
            DeliveryStatus.FAILED,
            DeliveryStatus.CANCELLED,
        }
    ),
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SendRequest:
    """
    Immutable request describing a caller's intent to send a notification.

    Validated on construction so a malformed request never travels
    further than the caller that built it. Unhashable, since variables
    is a read-only view over a dict.
    """

    __hash__ = None

    template_code: str
    user_id: str
    preferred_channel: ChannelType
    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.template_code, str) or not self.template_code.strip():
            raise ValidationError("template_code must not be blank")
        if not isinstance(self.user_id, str) or not self.user_id.strip():
            raise ValidationError("user_id must not be blank")
        if self.preferred_channel is None:
            raise ValidationError("preferred_channel must not be None")
        if not isinstance(self.preferred_channel, ChannelType):
            try:
                channel = ChannelType(str(self.preferred_channel).lower())
            except ValueError:
                raise ValidationError(
                    f"Unknown channel: {self.preferred_channel!r}"
                ) from None
            object.__setattr__(self, "preferred_channel", channel)

        variables = self.variables if self.variables is not None else {}
        if not isinstance(variables, Mapping):
            raise ValidationError("variables must be a mapping of str to str")
        for key, value in variables.items():
            if not isinstance(key, str) or not isinstance(value, str):
                raise ValidationError(
                    f"variables must map str to str, got {key!r}: {type(value).__name__}"
                )
        object.__setattr__(self, "variables", MappingProxyType(dict(variables)))

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "SendRequest":
        """Build a request from a transport-shaped dictionary."""
        if not isinstance(payload, Mapping):
            raise ValidationError("payload must be a mapping")
        return cls(
            template_code=payload.get("template_code", ""),
            user_id=payload.get("user_id", ""),
            preferred_channel=payload.get("channel"),
            variables=payload.get("variables") or {},
        )

    def to_payload(self) -> dict[str, Any]:
        return {
            "template_code": self.template_code,
            "user_id": self.user_id,
            "channel": self.preferred_channel.value,
            "variables": dict(self.variables),
        }


@dataclass(frozen=True)
class Template:
    """A named, parameterized body resolved at render time."""

    code: str
    body: str
    subject: str | None = None


@dataclass(frozen=True)
class Message:
    """A rendered message ready for exactly one channel sender."""

    id: UUID
    channel: ChannelType
    to: str
    body: str
    headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "headers", MappingProxyType(dict(self.headers)))


@dataclass(frozen=True)
class SendResult:
    """Outcome of a single delivery attempt."""

    success: bool
    external_id: str | None = None
    error: str | None = None
    failure_kind: FailureKind | None = None
    attempted_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def ok(cls, external_id: str | None = None) -> "SendResult":
        return cls(success=True, external_id=external_id)

    @classmethod
    def transient(cls, error: str) -> "SendResult":
        return cls(success=False, error=error, failure_kind=FailureKind.TRANSIENT)

    @classmethod
    def permanent(cls, error: str) -> "SendResult":
        return cls(success=False, error=error, failure_kind=FailureKind.PERMANENT)

    @property
    def is_retryable(self) -> bool:
        # Unclassified failures are treated as transient
        return not self.success and self.failure_kind is not FailureKind.PERMANENT


@dataclass
class DeliveryRecord:
    """Tracked state of one submitted request across all of its attempts."""

    tracking_id: str
    request: SendRequest
    message_id: UUID | None = None
    status: DeliveryStatus = DeliveryStatus.PENDING
    attempts: list[SendResult] = field(default_factory=list)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    last_error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)

    def record_attempt(self, result: SendResult) -> None:
        if self.is_terminal:
            raise InvalidStatusTransition(
                f"Cannot record an attempt on {self.tracking_id} in {self.status.value} status"
            )
        self.attempts.append(result)
        if not result.success:
            self.last_error = result.error
        self.updated_at = _utcnow()

    def transition_to(self, status: DeliveryStatus, error: str | None = None) -> None:
        allowed = _ALLOWED_TRANSITIONS.get(self.status, frozenset())
        if status not in allowed:
            raise InvalidStatusTransition(
                f"Cannot move {self.tracking_id} from {self.status.value} to {status.value}"
            )
        self.status = status
        if error is not None:
            self.last_error = error
        self.updated_at = _utcnow()

    def snapshot(self) -> "DeliveryRecord":
        return replace(self, attempts=list(self.attempts))
