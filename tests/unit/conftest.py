import pytest

from notifier.application.services import (
    ChannelRegistry,
    DispatchService,
    RetryPolicy,
    TemplateEngine,
)
from notifier.domain.models import ChannelType, SendRequest, Template
from notifier.domain.ports import ChannelSender
from notifier.infrastructure.adapters import (
    InMemoryDeliveryRecordStore,
    InMemoryTemplateStore,
    InMemoryUserDirectory,
)


@pytest.fixture
def templates() -> InMemoryTemplateStore:
    return InMemoryTemplateStore(
        [
            Template(
                code="WELCOME_EMAIL",
                subject="Welcome, {{ firstName }}!",
                body="Hi {{ firstName }}, welcome aboard.",
            ),
            Template(code="OTP_SMS", body="Code: {{ code }}"),
        ]
    )


@pytest.fixture
def users() -> InMemoryUserDirectory:
    return InMemoryUserDirectory(
        {
            "u1": {
                ChannelType.EMAIL: "ravi@example.com",
                ChannelType.SMS: "+15555550123",
            },
        }
    )


@pytest.fixture
def engine(templates, users) -> TemplateEngine:
    return TemplateEngine(templates, users)


@pytest.fixture
def store() -> InMemoryDeliveryRecordStore:
    return InMemoryDeliveryRecordStore()


@pytest.fixture
def fast_policy() -> RetryPolicy:
    return RetryPolicy(
        max_retries=3,
        base_delay_seconds=0.001,
        max_delay_seconds=0.01,
        jitter_ratio=0.0,
    )


@pytest.fixture
def welcome_request() -> SendRequest:
    return SendRequest(
        template_code="WELCOME_EMAIL",
        user_id="u1",
        preferred_channel=ChannelType.EMAIL,
        variables={"firstName": "Ravi"},
    )


@pytest.fixture
def make_service(engine, store, fast_policy):
    """Build a DispatchService around the given senders."""

    def _make(*senders: ChannelSender, **kwargs) -> DispatchService:
        kwargs.setdefault("retry_policy", fast_policy)
        kwargs.setdefault("send_timeout_seconds", 1.0)
        kwargs.setdefault("store", store)
        return DispatchService(
            template_engine=engine,
            registry=ChannelRegistry(list(senders)),
            **kwargs,
        )

    return _make
