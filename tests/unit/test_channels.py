import asyncio
from uuid import uuid4

import httpx
import pytest

from notifier.channels import ConsoleSender, is_retryable_status, result_from_exception
from notifier.domain.errors import PermanentDeliveryFailure, TransientDeliveryFailure
from notifier.domain.models import ChannelType, FailureKind, Message


def _status_error(status_code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("POST", "https://provider.example.com/send")
    response = httpx.Response(status_code, request=request)
    return httpx.HTTPStatusError("Error", request=request, response=response)


class TestResultFromException:
    @pytest.mark.parametrize("status_code", [500, 502, 503, 408, 429])
    def test_retryable_status_is_transient(self, status_code):
        result = result_from_exception(_status_error(status_code))

        assert result.success is False
        assert result.failure_kind == FailureKind.TRANSIENT
        assert str(status_code) in result.error

    @pytest.mark.parametrize("status_code", [400, 401, 403, 404, 422])
    def test_client_error_is_permanent(self, status_code):
        result = result_from_exception(_status_error(status_code))

        assert result.failure_kind == FailureKind.PERMANENT
        assert result.error == f"Provider API error: {status_code}"

    def test_connect_error_is_transient(self):
        exc = httpx.ConnectError("connection refused")

        result = result_from_exception(exc)

        assert result.failure_kind == FailureKind.TRANSIENT
        assert "connection refused" in result.error

    def test_read_timeout_is_transient(self):
        result = result_from_exception(httpx.ReadTimeout("read timed out"))

        assert result.failure_kind == FailureKind.TRANSIENT
        assert result.error.startswith("Timed out")

    def test_builtin_timeout_is_transient(self):
        result = result_from_exception(TimeoutError())

        assert result.failure_kind == FailureKind.TRANSIENT
        assert result.error == "Timed out"

    def test_asyncio_timeout_alias_is_transient(self):
        result = result_from_exception(asyncio.TimeoutError("slow"))

        assert result.failure_kind == FailureKind.TRANSIENT
        assert result.error == "Timed out: slow"

    def test_domain_failures_keep_their_kind(self):
        permanent = result_from_exception(PermanentDeliveryFailure("invalid number"))
        transient = result_from_exception(TransientDeliveryFailure("throttled"))

        assert permanent.failure_kind == FailureKind.PERMANENT
        assert permanent.error == "invalid number"
        assert transient.failure_kind == FailureKind.TRANSIENT

    def test_unknown_exception_is_transient(self):
        result = result_from_exception(RuntimeError("boom"))

        assert result.failure_kind == FailureKind.TRANSIENT
        assert result.error == "RuntimeError: boom"

    def test_is_retryable_status(self):
        assert is_retryable_status(503) is True
        assert is_retryable_status(429) is True
        assert is_retryable_status(404) is False
        assert is_retryable_status(200) is False


class TestConsoleSender:
    @pytest.mark.asyncio
    async def test_send_succeeds(self):
        sender = ConsoleSender(ChannelType.SMS)
        message = Message(uuid4(), ChannelType.SMS, "+15555550123", "Code: 1234")

        result = await sender.send(message)

        assert result.success is True
        assert result.external_id.startswith("console-")
        assert sender.channel_type is ChannelType.SMS

    def test_accepts_channel_name(self):
        assert ConsoleSender("push").channel_type is ChannelType.PUSH
