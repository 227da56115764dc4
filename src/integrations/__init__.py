# I/O around the core: configuration, logging, storage, document extraction,
# export, and the registry session the dashboard drives.

from .config import Settings
from .logger import setup_logging
from .store import RegistryStore, JsonFileStore, InMemoryStore
from .extraction import DocumentExtractor
from .exporter import export_orders_csv, export_filename
from .registry_session import OrderRegistry, PendingDecisionError, SourceDocument

__all__ = [
    "Settings",
    "setup_logging",
    "RegistryStore",
    "JsonFileStore",
    "InMemoryStore",
    "DocumentExtractor",
    "export_orders_csv",
    "export_filename",
    "OrderRegistry",
    "PendingDecisionError",
    "SourceDocument",
]
