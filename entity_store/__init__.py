"""
entity_store -- In-memory object store with dual indexing and whole-file
JSON persistence.

Modules:
    errors          exception taxonomy (EntityStoreError and subclasses)
    utils           atomic JSON writes, JSONL appends, error formatting
    config          StoreConfig (environment + platformdirs defaults)
    data_store      DataStore: type -> primary key -> attribute bag, on disk
    entity_manager  EntityManager: identity cache, lifecycle, commit fan-out
    observers       CommitObserver protocol, audit logger, low stock alert
    models          Entity base classes, registry, InventoryItem
"""

from entity_store.data_store import DataStore
from entity_store.entity_manager import EntityManager
from entity_store.models import Entity, EntityAttributes, EntityRegistry, InventoryItem
from entity_store.observers import CommitObserver, FileLoggerObserver, LowStockAlertObserver

__all__ = [
    "CommitObserver",
    "DataStore",
    "Entity",
    "EntityAttributes",
    "EntityManager",
    "EntityRegistry",
    "FileLoggerObserver",
    "InventoryItem",
    "LowStockAlertObserver",
]
