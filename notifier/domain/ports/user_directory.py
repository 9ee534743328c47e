"""
Outbound port for user profile lookup.
"""

from abc import ABC, abstractmethod

from ..models import ChannelType


class UserDirectory(ABC):
    """Resolves a user to a destination address on a given channel."""

    @abstractmethod
    def resolve_address(self, user_id: str, channel: ChannelType) -> str | None:
        """
        Resolve the destination for a user on a channel.

        Args:
            user_id: Caller-facing user identifier
            channel: Channel the message will be delivered on

        Returns:
            Address (email, E.164 number, device token, ...) or None
        """
        ...
