"""
entity_store/models/ -- Entity classes backed by pydantic v2 attribute models.

Submodules:
    base        EntityAttributes and the Entity wrapper (name-checked access).
    registry    EntityRegistry, mapping stored type names back to classes.
    inventory   InventoryItem, the stock-keeping entity.
"""

from entity_store.models.base import Entity, EntityAttributes
from entity_store.models.inventory import InventoryAttributes, InventoryItem
from entity_store.models.registry import EntityRegistry, default_registry

__all__ = [
    "Entity",
    "EntityAttributes",
    "EntityRegistry",
    "InventoryAttributes",
    "InventoryItem",
    "default_registry",
]
