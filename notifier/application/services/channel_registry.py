"""
Registry of channel senders.

Maps each channel type to the sender that delivers on it. Populated once
by the composition root and passed explicitly to the dispatch service.
"""

from ...domain.errors import NoSenderForChannel
from ...domain.models import ChannelType
from ...domain.ports import ChannelSender


class ChannelRegistry:
    """Maps channel types to ChannelSender implementations."""

    def __init__(self, senders: list[ChannelSender] | None = None) -> None:
        self._senders: dict[ChannelType, ChannelSender] = {}
        for sender in senders or []:
            self.register(sender)

    def register(self, sender: ChannelSender, channel: ChannelType | None = None) -> None:
        """
        Register a sender for a channel.

        Args:
            sender: Sender implementation
            channel: Channel to register under, defaults to sender.channel_type
        """
        channel_type = ChannelType(channel) if channel is not None else sender.channel_type
        self._senders[channel_type] = sender

    def unregister(self, channel: ChannelType) -> None:
        self._senders.pop(ChannelType(channel), None)

    def resolve(self, channel: ChannelType) -> ChannelSender:
        """
        Get the sender registered for a channel.

        Raises:
            NoSenderForChannel: If nothing is registered for the channel
        """
        sender = self._senders.get(channel)
        if sender is None:
            raise NoSenderForChannel(channel)
        return sender

    def channels(self) -> list[ChannelType]:
        return list(self._senders)

    def __contains__(self, channel: object) -> bool:
        return channel in self._senders
