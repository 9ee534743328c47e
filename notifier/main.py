import argparse
import asyncio

import structlog
from sqlalchemy.ext.asyncio import create_async_engine

from .application.services import ChannelRegistry, DispatchService, RetryPolicy, TemplateEngine
from .channels import ConsoleSender
from .config import Settings, settings
from .domain.errors import NotificationError
from .domain.models import ChannelType, DeliveryStatus, SendRequest
from .domain.ports import DeliveryRecordStore, TemplateStore, UserDirectory
from .infrastructure.adapters import (
    DEFAULT_TEMPLATES,
    FileSystemTemplateStore,
    InMemoryDeliveryRecordStore,
    InMemoryTemplateStore,
    InMemoryUserDirectory,
    SqlAlchemyDeliveryRecordStore,
)
from .infrastructure.logging import configure_logging, set_correlation_id

configure_logging(settings.service_name, settings.log_level)

logger = structlog.get_logger()


def create_template_store(config: Settings) -> TemplateStore:
    """Create the template store based on configuration."""
    if config.templates_dir:
        logger.info("Loading templates from directory", templates_dir=config.templates_dir)
        return FileSystemTemplateStore(config.templates_dir)
    return InMemoryTemplateStore(DEFAULT_TEMPLATES)


async def create_record_store(config: Settings) -> DeliveryRecordStore:
    """Create the delivery record store based on configuration."""
    match config.store_backend:
        case "memory":
            return InMemoryDeliveryRecordStore()
        case "sqlalchemy":
            engine = create_async_engine(config.database_url, echo=False)
            store = SqlAlchemyDeliveryRecordStore(engine)
            await store.create_schema()
            return store
        case _:
            raise ValueError(f"Unsupported store backend: {config.store_backend}")


def create_registry(config: Settings) -> ChannelRegistry:
    """Register a console sender for every enabled channel."""
    registry = ChannelRegistry()
    for channel in config.enabled_channels:
        try:
            registry.register(ConsoleSender(ChannelType(channel.lower())))
        except ValueError:
            logger.warning("Skipping unknown channel", channel=channel)
    return registry


async def create_dispatch_service(
    config: Settings,
    users: UserDirectory,
    store: DeliveryRecordStore | None = None,
) -> DispatchService:
    """Wire up the dispatch service (composition root)."""
    engine = TemplateEngine(create_template_store(config), users)
    policy = RetryPolicy(
        max_retries=config.max_retries,
        base_delay_seconds=config.retry_base_delay_seconds,
        max_delay_seconds=config.retry_max_delay_seconds,
        jitter_ratio=config.retry_jitter_ratio,
    )
    return DispatchService(
        template_engine=engine,
        registry=create_registry(config),
        store=store or await create_record_store(config),
        retry_policy=policy,
        send_timeout_seconds=config.send_timeout_seconds,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Send one notification through console senders.")
    parser.add_argument("--template", default="WELCOME_EMAIL")
    parser.add_argument("--user", default="u1")
    parser.add_argument("--channel", default="email")
    parser.add_argument("--to", default="demo@example.com", help="Destination for --user")
    parser.add_argument(
        "--var",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Template variable, may be repeated",
    )
    return parser.parse_args(argv)


def parse_variables(pairs: list[str]) -> dict[str, str]:
    variables: dict[str, str] = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Expected KEY=VALUE, got {pair!r}")
        variables[key] = value
    return variables


async def main(argv: list[str] | None = None) -> int:
    """Main entry point: submit one request and report its final status."""
    args = parse_args(argv)
    set_correlation_id()
    logger.info("Starting notifier", service=settings.service_name)

    try:
        variables = parse_variables(args.var) or {"firstName": "Ravi"}
        request = SendRequest(
            template_code=args.template,
            user_id=args.user,
            preferred_channel=args.channel,
            variables=variables,
        )
    except (NotificationError, ValueError) as e:
        logger.error("Invalid request", error=str(e))
        return 1

    users = InMemoryUserDirectory({args.user: {request.preferred_channel: args.to}})
    store = await create_record_store(settings)
    try:
        service = await create_dispatch_service(settings, users, store)
        try:
            tracking_id = await service.submit(request)
        except NotificationError as e:
            logger.error("Submission rejected", error=str(e))
            return 1

        record = await service.wait_for(tracking_id)
        logger.info(
            "Notification finished",
            tracking_id=tracking_id,
            status=record.status.value,
            attempts=record.attempt_count,
        )
        return 0 if record.status is DeliveryStatus.SENT else 2
    finally:
        if isinstance(store, SqlAlchemyDeliveryRecordStore):
            await store.dispose()


def run() -> None:
    raise SystemExit(asyncio.run(main()))


if __name__ == "__main__":
    run()
