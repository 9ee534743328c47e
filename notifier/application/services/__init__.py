from .channel_registry import ChannelRegistry
from .dispatch_service import DeliveryListener, DispatchService
from .retry_policy import RetryPolicy
from .template_engine import TemplateEngine

__all__ = [
    "ChannelRegistry",
    "DeliveryListener",
    "DispatchService",
    "RetryPolicy",
    "TemplateEngine",
]
