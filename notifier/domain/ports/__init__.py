from .channel_sender import ChannelSender
from .delivery_store import DeliveryRecordStore
from .template_store import TemplateStore
from .user_directory import UserDirectory

__all__ = [
    "ChannelSender",
    "DeliveryRecordStore",
    "TemplateStore",
    "UserDirectory",
]
