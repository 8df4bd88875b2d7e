"""
entity_store/entity_manager.py -- Identity cache, lifecycle and commit fan-out.

The EntityManager sits between callers and a ``DataStore``:

    - every live entity gets a process-lifetime surrogate ID and is indexed
      both by that ID and by its ``(type name, primary key)`` pair;
    - entities created or modified since the last successful commit are kept
      on an ordered pending list;
    - ``commit()`` stages the pending entities into the store, notifies the
      attached observers, then flushes the store to disk.

Observers run *before* the flush.  If the flush fails the pending list is
kept, so retrying ``commit()`` re-stages everything and the observers fire
a second time.

All public methods hold one re-entrant lock; ID assignment, index updates
and pending-list updates always happen together under it.

Usage::

    from entity_store.entity_manager import EntityManager

    manager = EntityManager.from_path("inventory.json")
    manager.attach(FileLoggerObserver("audit.jsonl"))

    item = manager.get_or_create("InventoryItem", {"sku": "abc-4589", "qoh": 0})
    item.items_received(4)
    manager.commit()
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterator, Mapping

from entity_store.data_store import DataStore
from entity_store.errors import (
    DuplicatePrimaryKey,
    InvalidAttributes,
    NotTracked,
    StoreCorrupt,
)
from entity_store.models.base import Entity
from entity_store.models.registry import EntityRegistry, default_registry

logger = logging.getLogger(__name__)


class EntityManager:
    """Tracks live entities backed by a ``DataStore`` and notifies observers.

    Parameters
    ----------
    data_store : DataStore
        The opened backing store.  Every record in it is loaded as a live
        entity on construction.
    registry : EntityRegistry, optional
        Resolves stored type names to entity classes.

    Raises
    ------
    UnknownEntityType
        If the store holds a type with no registered class.
    StoreCorrupt
        If a stored record does not validate against its entity class.
    """

    def __init__(self, data_store: DataStore, registry: EntityRegistry = default_registry):
        self._data_store = data_store
        self._registry = registry
        self._lock = threading.RLock()

        # Identity cache and the two halves of the primary-key index
        self._entities: dict[int, Entity] = {}
        self._id_to_primary: dict[int, tuple[str, str]] = {}
        self._primary_to_id: dict[tuple[str, str], int] = {}

        # Ordered set of surrogate IDs due for the next commit
        self._pending: dict[int, None] = {}
        self._observers: list = []

        self.bootstrap()

    @classmethod
    def from_path(cls, path, registry: EntityRegistry = default_registry) -> EntityManager:
        """Open (or create) the store at *path* and load it."""
        return cls(DataStore(path), registry=registry)

    @property
    def data_store(self) -> DataStore:
        return self._data_store

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def bootstrap(self) -> None:
        """Load every stored record as a live, already-durable entity.

        Calling it again reloads from the store: previously tracked entities
        are released and unsaved changes to them are discarded.
        """
        with self._lock:
            for entity in self._entities.values():
                entity.bind(None)
            self._entities.clear()
            self._id_to_primary.clear()
            self._primary_to_id.clear()
            self._pending.clear()

            loaded = 0
            for type_name in self._data_store.list_types():
                entity_cls = self._registry.resolve(type_name)
                for key in self._data_store.list_keys(type_name):
                    record = self._data_store.get_record(type_name, key)
                    try:
                        entity = entity_cls(record)
                    except InvalidAttributes as exc:
                        raise StoreCorrupt(
                            self._data_store.path,
                            f"record {type_name}/{key}: {exc}",
                        ) from exc
                    if entity.primary_key != key:
                        raise StoreCorrupt(
                            self._data_store.path,
                            f"record {type_name}/{key} carries primary key "
                            f"'{entity.primary_key}'",
                        )
                    self._track(entity)
                    loaded += 1
            logger.debug("Bootstrapped %d entities from %s", loaded, self._data_store.path)

    def _track(self, entity: Entity) -> int:
        """Assign a surrogate ID and index *entity*.  Does not mark it pending."""
        entity_id = self._data_store.next_auto_id()
        entity.surrogate_id = entity_id
        entity.bind(self.mark_dirty, self.update)

        index_key = (entity.type_name, entity.primary_key)
        self._entities[entity_id] = entity
        self._id_to_primary[entity_id] = index_key
        self._primary_to_id[index_key] = entity_id
        return entity_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def get_or_create(self, entity_type, attributes: Mapping[str, Any]) -> Entity:
        """Return the live entity with this primary key, creating it if needed.

        When an entity with the same type and primary key already exists it
        is returned unchanged and *attributes* is ignored.

        Parameters
        ----------
        entity_type : str or type[Entity]
            Registered type name or entity class.
        attributes : mapping
            Attribute bag.  Must contain the primary-key member.

        Raises
        ------
        UnknownEntityType
            If *entity_type* is not registered.
        InvalidAttributes
            If the primary-key member is missing or the bag fails validation.
        """
        entity_cls = self._registry.resolve(entity_type)
        pk_member = entity_cls.primary_key_member
        if pk_member not in attributes:
            raise InvalidAttributes(
                entity_cls.type_name, [f"'{pk_member}': primary key is required"]
            )

        with self._lock:
            existing = self.find_by_primary(str(attributes[pk_member]), entity_cls)
            if existing is not None:
                return existing

            entity = entity_cls(attributes)
            entity_id = self._track(entity)
            self._pending[entity_id] = None
            entity.validate_ready()
            logger.info("Created %s %s (id %d)", entity.type_name, entity.primary_key, entity_id)
            return entity

    def update(self, entity: Entity, new_attributes: Mapping[str, Any]) -> Entity:
        """Replace *entity*'s attribute bag, re-keying it if the key changed.

        A bag identical to the current one is a no-op and does not mark the
        entity pending.  Assigning the primary-key member of a live entity,
        or calling its ``replace_data``, ends up here too.

        Raises
        ------
        NotTracked
            If *entity* is not live in this manager.
        InvalidAttributes
            If *new_attributes* fails validation.  Nothing is changed.
        DuplicatePrimaryKey
            If the new key belongs to another live entity of the same type.
        """
        with self._lock:
            self._require_live(entity)
            new_bag = entity.build_attributes(new_attributes)
            if new_bag == entity.attributes:
                return entity

            old_key = self._id_to_primary[entity.surrogate_id]
            new_key = (entity.type_name, str(getattr(new_bag, entity.primary_key_member)))
            if new_key != old_key:
                holder = self._primary_to_id.get(new_key)
                if holder is not None and holder != entity.surrogate_id:
                    raise DuplicatePrimaryKey(entity.type_name, new_key[1])
                self._data_store.delete(*old_key)
                del self._primary_to_id[old_key]
                self._id_to_primary[entity.surrogate_id] = new_key
                self._primary_to_id[new_key] = entity.surrogate_id
                logger.info(
                    "Re-keyed %s %s -> %s", entity.type_name, old_key[1], new_key[1]
                )

            entity.assign_attributes(new_bag)
            return entity

    def delete(self, entity: Entity) -> None:
        """Forget *entity* and remove its record from the backing store.

        Raises
        ------
        NotTracked
            If *entity* is not live in this manager (never tracked, or
            already deleted).
        """
        with self._lock:
            self._require_live(entity)
            entity_id = entity.surrogate_id
            index_key = self._id_to_primary.pop(entity_id)

            self._pending.pop(entity_id, None)
            del self._entities[entity_id]
            del self._primary_to_id[index_key]
            entity.bind(None)

            self._data_store.delete(*index_key)
            logger.info("Deleted %s %s (id %d)", index_key[0], index_key[1], entity_id)

    def _require_live(self, entity: Entity) -> None:
        entity_id = entity.surrogate_id
        if entity_id is None or self._entities.get(entity_id) is not entity:
            raise NotTracked(entity_id)

    def mark_dirty(self, entity: Entity) -> None:
        """Put a live entity on the pending list for the next commit."""
        with self._lock:
            if self._entities.get(entity.surrogate_id) is entity:
                self._pending[entity.surrogate_id] = None

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_by_primary(self, primary_key: str, entity_type=None) -> Entity | None:
        """Return the live entity with *primary_key*, or ``None``.

        With *entity_type* the lookup is exact.  Without it, the first live
        entity of any type carrying that key is returned, in creation order.
        """
        with self._lock:
            if entity_type is not None:
                type_name = self._registry.resolve(entity_type).type_name
                entity_id = self._primary_to_id.get((type_name, str(primary_key)))
                return self._entities.get(entity_id) if entity_id is not None else None

            for entity_id, (_, key) in self._id_to_primary.items():
                if key == str(primary_key):
                    return self._entities[entity_id]
            return None

    def entity_by_id(self, entity_id: int) -> Entity | None:
        return self._entities.get(entity_id)

    def pending_save_ids(self) -> list[int]:
        """Return the surrogate IDs that the next commit will write, in order."""
        with self._lock:
            return list(self._pending)

    def __len__(self) -> int:
        return len(self._entities)

    def __iter__(self) -> Iterator[Entity]:
        with self._lock:
            return iter(list(self._entities.values()))

    def __contains__(self, entity) -> bool:
        return isinstance(entity, Entity) and self._entities.get(entity.surrogate_id) is entity

    # ------------------------------------------------------------------
    # Commit
    # ------------------------------------------------------------------

    def commit(self) -> None:
        """Stage pending entities, notify observers, then flush to disk.

        The pending list is cleared only after a successful flush.

        Raises
        ------
        StoreWriteFailed
            If the flush fails.  Observers have already been notified and
            the pending list is left as it was.
        """
        with self._lock:
            for entity_id in self._pending:
                entity = self._entities[entity_id]
                self._data_store.put(entity.type_name, entity.primary_key, entity.data())
            logger.debug("Staged %d pending entities", len(self._pending))

            self.notify()
            self._data_store.flush()

            committed = len(self._pending)
            self._pending.clear()
            logger.info("Committed %d entities to %s", committed, self._data_store.path)

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def attach(self, observer) -> None:
        """Register *observer*.  Attaching the same object twice is a no-op."""
        with self._lock:
            if not any(o is observer for o in self._observers):
                self._observers.append(observer)

    def detach(self, observer) -> None:
        """Unregister *observer*.  Unknown observers are ignored."""
        with self._lock:
            self._observers = [o for o in self._observers if o is not observer]

    def observers(self) -> list:
        return list(self._observers)

    def notify(self) -> None:
        """Call ``on_commit(self)`` on every observer, in attachment order."""
        for observer in list(self._observers):
            observer.on_commit(self)
