"""
entity_store/errors.py -- Exception taxonomy for the entity store.

Every error raised by the store derives from ``EntityStoreError`` so that
callers (and the command-line driver) can catch the whole family in one
place.  Nothing in the core retries; errors surface to the immediate caller.

Hierarchy::

    EntityStoreError
        StoreError
            StoreUnavailable      file cannot be created / made accessible
            StoreCorrupt          persisted content fails to decode
            StoreWriteFailed      flush I/O failure
        UnknownMember             (also AttributeError)
        InvalidAttributes         (also ValueError)
        IdentityNotSet
        NotTracked
        DuplicatePrimaryKey
        UnknownEntityType         (also KeyError)
        DomainError
            InsufficientStock
            InvalidPrice
        AlertDeliveryFailed
"""

from __future__ import annotations


class EntityStoreError(Exception):
    """Base class for every error raised by the entity store."""


# ---------------------------------------------------------------------------
# Backing store
# ---------------------------------------------------------------------------

class StoreError(EntityStoreError):
    """Raised when the backing data store file cannot be used.

    Attributes
    ----------
    path : str
        The data store file involved.
    detail : str
        Underlying cause, usually the text of an ``OSError`` or decode error.
    """

    action = "Data store operation failed"

    def __init__(self, path: str, detail: str = ""):
        self.path = str(path)
        self.detail = detail
        message = f"{self.action}: {self.path}"
        if detail:
            message += f". Details: {detail}"
        super().__init__(message)


class StoreUnavailable(StoreError):
    action = "Data store file is not available"


class StoreCorrupt(StoreError):
    action = "Data store file appears to be corrupted"


class StoreWriteFailed(StoreError):
    action = "Write of data store file failed"


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------

class UnknownMember(EntityStoreError, AttributeError):
    """Raised on get/set of a name the entity does not declare."""

    def __init__(self, entity_type: str, name: str, operation: str = "Get"):
        self.entity_type = entity_type
        self.name = name
        super().__init__(
            f"{operation} failed. Class {entity_type} does not have a member "
            f"named {name}."
        )


class InvalidAttributes(EntityStoreError, ValueError):
    """Raised when attribute values fail the entity's field validation."""

    def __init__(self, entity_type: str, problems: list[str]):
        self.entity_type = entity_type
        self.problems = list(problems)
        lines = "\n".join(f"  - {p}" for p in self.problems)
        super().__init__(f"Invalid attributes for {entity_type}:\n{lines}")


class IdentityNotSet(EntityStoreError):
    """Raised when an operation needs a surrogate ID that was never assigned."""

    def __init__(self, entity_type: str):
        self.entity_type = entity_type
        super().__init__(f"Entity ID is not set on {entity_type}.")


class NotTracked(EntityStoreError):
    """Raised when deleting an entity the manager is not tracking."""

    def __init__(self, surrogate_id: int | None):
        self.surrogate_id = surrogate_id
        super().__init__(f"Cannot delete entity id {surrogate_id}")


class DuplicatePrimaryKey(EntityStoreError):
    """Raised when re-keying an entity onto a key another live entity holds."""

    def __init__(self, entity_type: str, primary_key: str):
        self.entity_type = entity_type
        self.primary_key = primary_key
        super().__init__(
            f"Primary key '{primary_key}' is already used by another "
            f"{entity_type}."
        )


class UnknownEntityType(EntityStoreError, KeyError):
    """Raised when a type name has no registered entity class."""

    def __init__(self, type_name: str):
        self.type_name = type_name
        super().__init__(type_name)

    def __str__(self) -> str:
        return f"No entity class is registered for type '{self.type_name}'."


# ---------------------------------------------------------------------------
# Domain rules
# ---------------------------------------------------------------------------

class DomainError(EntityStoreError):
    """Base class for business-rule violations raised by entity operations."""


class InsufficientStock(DomainError):
    def __init__(self, sku: str, on_hand: int, requested: int):
        self.sku = sku
        self.on_hand = on_hand
        self.requested = requested
        super().__init__(
            f"You cannot ship more items than are in stock "
            f"(SKU {sku}: {on_hand} on hand, {requested} requested)."
        )


class InvalidPrice(DomainError):
    def __init__(self, price: float):
        self.price = price
        super().__init__(f"Sale price cannot be negative (got {price}).")


# ---------------------------------------------------------------------------
# Observers
# ---------------------------------------------------------------------------

class AlertDeliveryFailed(EntityStoreError):
    """Raised when an alert observer cannot deliver its notification."""

    def __init__(self, recipient: str, detail: str):
        self.recipient = recipient
        self.detail = detail
        super().__init__(f"Could not deliver alert to {recipient}: {detail}")
