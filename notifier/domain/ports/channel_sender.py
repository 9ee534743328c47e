"""
Outbound port for channel delivery.

This is the interface the dispatch orchestrator uses to deliver rendered
messages. One implementation exists per provider/protocol.
"""

from abc import ABC, abstractmethod

from ..models import ChannelType, Message, SendResult


class ChannelSender(ABC):
    """
    Outbound port for sending a rendered message through a channel.

    Implementations may be invoked more than once with the same message
    (retries) and must not assume the orchestrator deduplicates for them.
    """

    @property
    @abstractmethod
    def channel_type(self) -> ChannelType:
        """Return the channel type this sender handles."""
        ...

    @abstractmethod
    async def send(self, message: Message) -> SendResult:
        """
        Attempt delivery of a message.

        Args:
            message: Rendered message with destination and body

        Returns:
            SendResult with success flag, provider id and failure kind
        """
        ...
