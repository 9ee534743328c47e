import asyncio
from collections import Counter

from notifier.domain.models import ChannelType, Message, SendResult
from notifier.domain.ports import ChannelSender


class ScriptedSender(ChannelSender):
    """Sender that plays back a script of results, repeating the last entry."""

    def __init__(self, channel: ChannelType, script: list | None = None) -> None:
        self._channel = channel
        self._script = list(script or [SendResult.ok("ext-1")])
        self.calls: list[Message] = []

    @property
    def channel_type(self) -> ChannelType:
        return self._channel

    async def send(self, message: Message) -> SendResult:
        index = min(len(self.calls), len(self._script) - 1)
        self.calls.append(message)
        step = self._script[index]
        if isinstance(step, BaseException):
            raise step
        return step

    def calls_per_message(self) -> Counter:
        return Counter(m.id for m in self.calls)


class GatedSender(ChannelSender):
    """Sender whose attempts block until the test releases them."""

    def __init__(self, channel: ChannelType, result: SendResult | None = None) -> None:
        self._channel = channel
        self._result = result or SendResult.ok("gated-1")
        self.started = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    @property
    def channel_type(self) -> ChannelType:
        return self._channel

    async def send(self, message: Message) -> SendResult:
        self.calls += 1
        self.started.set()
        await self.release.wait()
        return self._result


class SlowThenOkSender(ChannelSender):
    """First call hangs past any sane timeout, later calls succeed."""

    def __init__(self, channel: ChannelType, hang_seconds: float = 5.0) -> None:
        self._channel = channel
        self._hang_seconds = hang_seconds
        self.calls = 0

    @property
    def channel_type(self) -> ChannelType:
        return self._channel

    async def send(self, message: Message) -> SendResult:
        self.calls += 1
        if self.calls == 1:
            await asyncio.sleep(self._hang_seconds)
        return SendResult.ok(f"slow-{self.calls}")


async def wait_until(predicate, timeout: float = 2.0) -> None:
    """Poll a sync or async predicate until it holds."""

    async def _poll() -> None:
        while True:
            result = predicate()
            if asyncio.iscoroutine(result):
                result = await result
            if result:
                return
            await asyncio.sleep(0.001)

    await asyncio.wait_for(_poll(), timeout=timeout)
