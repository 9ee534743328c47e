from uuid import uuid4

import structlog

from ..domain.models import ChannelType, Message, SendResult
from ..infrastructure.logging import mask_address
from .base import ChannelSender

logger = structlog.get_logger()


class ConsoleSender(ChannelSender):
    """Logs the message instead of delivering it. Used for local runs."""

    def __init__(self, channel: ChannelType) -> None:
        self._channel = ChannelType(channel)

    @property
    def channel_type(self) -> ChannelType:
        return self._channel

    async def send(self, message: Message) -> SendResult:
        external_id = f"console-{uuid4().hex[:12]}"
        logger.info(
            "Console delivery",
            channel=self._channel.value,
            recipient=mask_address(message.to),
            subject=message.headers.get("Subject"),
            body=message.body,
            external_id=external_id,
        )
        return SendResult.ok(external_id)
