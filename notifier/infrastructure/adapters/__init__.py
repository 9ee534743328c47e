from .in_memory_store import InMemoryDeliveryRecordStore
from .sqlalchemy_store import SqlAlchemyDeliveryRecordStore
from .template_store import DEFAULT_TEMPLATES, FileSystemTemplateStore, InMemoryTemplateStore
from .user_directory import InMemoryUserDirectory

__all__ = [
    "DEFAULT_TEMPLATES",
    "FileSystemTemplateStore",
    "InMemoryDeliveryRecordStore",
    "InMemoryTemplateStore",
    "InMemoryUserDirectory",
    "SqlAlchemyDeliveryRecordStore",
]
