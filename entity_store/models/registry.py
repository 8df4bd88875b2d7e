"""
entity_store/models/registry.py -- Type-name to entity-class registry.

The data store keys records by type name, so reloading a store needs a way
back from that name to the class that knows the fields and the primary key.
Classes are registered once at import time; lookups are cached dict hits.

Usage::

    from entity_store.models.registry import EntityRegistry

    registry = EntityRegistry()

    @registry.register
    class Widget(Entity):
        ...

    cls = registry.resolve("Widget")
"""

from __future__ import annotations

import logging

from entity_store.errors import UnknownEntityType
from entity_store.models.base import Entity

logger = logging.getLogger(__name__)


class EntityRegistry:
    """Maps entity type names to ``Entity`` subclasses."""

    def __init__(self):
        self._classes: dict[str, type[Entity]] = {}

    def register(self, cls: type[Entity]) -> type[Entity]:
        """Register *cls* under its ``type_name``.  Usable as a decorator."""
        if not (isinstance(cls, type) and issubclass(cls, Entity)):
            raise TypeError(f"{cls!r} is not an Entity subclass")
        if not cls.primary_key_member:
            raise ValueError(f"{cls.__name__} does not declare a primary_key_member")
        if cls.primary_key_member not in cls.declared_members():
            raise ValueError(
                f"{cls.__name__}.primary_key_member '{cls.primary_key_member}' "
                f"is not one of its declared members"
            )

        existing = self._classes.get(cls.type_name)
        if existing is not None and existing is not cls:
            raise ValueError(
                f"Entity type '{cls.type_name}' is already registered to "
                f"{existing.__module__}.{existing.__name__}"
            )
        self._classes[cls.type_name] = cls
        logger.debug("Registered entity type %s", cls.type_name)
        return cls

    def resolve(self, entity_type) -> type[Entity]:
        """Return the class for a type name, or *entity_type* if it is a class.

        Raises
        ------
        UnknownEntityType
            If the name (or the class's ``type_name``) is not registered.
        """
        type_name = entity_type.type_name if isinstance(entity_type, type) else entity_type
        try:
            return self._classes[type_name]
        except KeyError:
            raise UnknownEntityType(str(type_name)) from None

    def names(self) -> list[str]:
        return list(self._classes)

    def __contains__(self, type_name) -> bool:
        return type_name in self._classes


default_registry = EntityRegistry()
