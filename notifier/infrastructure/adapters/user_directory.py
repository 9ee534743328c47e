from collections.abc import Mapping

from ...domain.models import ChannelType
from ...domain.ports import UserDirectory


class InMemoryUserDirectory(UserDirectory):
    """
    User directory backed by a nested mapping.

    Example:
        InMemoryUserDirectory({"u1": {ChannelType.EMAIL: "ravi@example.com"}})
    """

    def __init__(
        self,
        addresses: Mapping[str, Mapping[ChannelType | str, str]] | None = None,
    ) -> None:
        self._addresses: dict[str, dict[ChannelType, str]] = {}
        for user_id, per_channel in (addresses or {}).items():
            for channel, address in per_channel.items():
                self.set_address(user_id, ChannelType(channel), address)

    def set_address(self, user_id: str, channel: ChannelType, address: str) -> None:
        self._addresses.setdefault(user_id, {})[ChannelType(channel)] = address

    def resolve_address(self, user_id: str, channel: ChannelType) -> str | None:
        return self._addresses.get(user_id, {}).get(channel)
