"""
entity_store/models/base.py -- Base classes shared by every entity variant.

An entity is two things glued together:

    EntityAttributes   a pydantic model holding the persisted fields.  Each
                       variant declares its own subclass, so field names and
                       types are checked by pydantic, and ``model_fields`` is
                       the registry of declared members.
    Entity             the identity-bearing wrapper: surrogate ID, type name,
                       primary-key member and name-based get/set that refuses
                       anything the variant does not declare.

Usage::

    class WidgetAttributes(EntityAttributes):
        code: str
        colour: str = "red"

    class Widget(Entity):
        attributes_model = WidgetAttributes
        primary_key_member = "code"

    w = Widget({"code": "w-1"})
    w.colour = "blue"          # validated assignment
    w.get("weight")            # raises UnknownMember
"""

from __future__ import annotations

from typing import Any, ClassVar, Mapping

from pydantic import BaseModel, ConfigDict, ValidationError

from entity_store.errors import IdentityNotSet, InvalidAttributes, UnknownMember
from entity_store.utils import humanize_validation_errors


class EntityAttributes(BaseModel):
    """Base model for the persisted attribute bag of an entity.

    Unknown fields are rejected and every assignment is re-validated, so an
    attribute bag can never hold an undeclared name or a mistyped value.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        populate_by_name=True,
    )


class Entity:
    """Identity-bearing wrapper around an ``EntityAttributes`` instance.

    Class attributes
    ----------------
    type_name : str
        Outer storage key.  Defaults to the subclass name.
    attributes_model : type[EntityAttributes]
        The variant's attribute model.
    primary_key_member : str
        Name of the attribute used as the business primary key.
    """

    type_name: ClassVar[str] = "Entity"
    attributes_model: ClassVar[type[EntityAttributes]] = EntityAttributes
    primary_key_member: ClassVar[str] = ""

    # Non-data fields reachable through get()/set()
    _FIELDS: ClassVar[frozenset[str]] = frozenset({"surrogate_id"})
    _READ_ONLY_FIELDS: ClassVar[frozenset[str]] = frozenset({"type_name", "primary_key"})

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "type_name" not in cls.__dict__:
            cls.type_name = cls.__name__

    def __init__(self, attributes: Mapping[str, Any] | None = None):
        object.__setattr__(self, "surrogate_id", None)
        object.__setattr__(self, "_on_change", None)
        object.__setattr__(self, "_on_replace", None)
        object.__setattr__(self, "attributes", self.build_attributes(attributes or {}))

    # ------------------------------------------------------------------
    # Declared members
    # ------------------------------------------------------------------

    @classmethod
    def declared_members(cls) -> tuple[str, ...]:
        """Return the attribute names declared by this variant, in order."""
        return tuple(cls.attributes_model.model_fields)

    @classmethod
    def _member_names(cls) -> dict[str, str]:
        """Map both field names and their aliases to the field name."""
        names = {}
        for field_name, info in cls.attributes_model.model_fields.items():
            names[field_name] = field_name
            if info.alias:
                names[info.alias] = field_name
        return names

    @classmethod
    def build_attributes(cls, data: Mapping[str, Any]) -> EntityAttributes:
        """Validate *data* into this variant's attribute model.

        Raises
        ------
        InvalidAttributes
            If a field is missing, mistyped, or not declared.
        """
        try:
            return cls.attributes_model.model_validate(dict(data))
        except ValidationError as exc:
            raise InvalidAttributes(
                cls.type_name, humanize_validation_errors(exc.errors())
            ) from exc

    # ------------------------------------------------------------------
    # Name-based access
    # ------------------------------------------------------------------

    def get(self, name: str) -> Any:
        """Return a declared member or non-data field by name."""
        field_name = self._member_names().get(name)
        if field_name is not None:
            return getattr(self.attributes, field_name)
        if name in self._FIELDS or name in self._READ_ONLY_FIELDS:
            return object.__getattribute__(self, name)
        raise UnknownMember(self.type_name, name, "Get")

    def set(self, name: str, value: Any) -> None:
        """Assign a declared member (validated) or a non-data field.

        On a bound entity a new primary-key value goes through the owning
        manager, which re-keys its index or raises ``DuplicatePrimaryKey``.
        ``surrogate_id`` can be assigned once.
        """
        field_name = self._member_names().get(name)
        rekey = field_name is not None and field_name == self.primary_key_member
        if rekey and self._on_replace is not None:
            info = self.attributes_model.model_fields[field_name]
            data = self.data()
            data[info.alias or field_name] = value
            self._on_replace(self, data)
        elif field_name is not None:
            try:
                setattr(self.attributes, field_name, value)
            except ValidationError as exc:
                raise InvalidAttributes(
                    self.type_name, humanize_validation_errors(exc.errors())
                ) from exc
            self._changed()
        elif name in self._FIELDS:
            current = object.__getattribute__(self, name)
            if current is not None and current != value:
                raise AttributeError(f"{self.type_name}.{name} is already assigned")
            object.__setattr__(self, name, value)
        elif name in self._READ_ONLY_FIELDS:
            raise AttributeError(f"{self.type_name}.{name} is read-only")
        else:
            raise UnknownMember(self.type_name, name, "Set")

    def __getattr__(self, name: str) -> Any:
        # Only reached when normal lookup fails
        if name.startswith("__") or name in (
            "attributes", "_on_change", "_on_replace", "surrogate_id"
        ):
            raise AttributeError(name)
        return self.get(name)

    def __setattr__(self, name: str, value: Any) -> None:
        self.set(name, value)

    # ------------------------------------------------------------------
    # Attribute bag
    # ------------------------------------------------------------------

    def data(self) -> dict[str, Any]:
        """Return a plain-dict copy of the persisted attributes."""
        return self.attributes.model_dump(by_alias=True)

    def replace_data(self, data: Mapping[str, Any]) -> None:
        """Validate and replace the whole attribute bag.

        A bound entity hands the new bag to its manager so a changed primary
        key is re-indexed.
        """
        if self._on_replace is not None:
            self._on_replace(self, data)
        else:
            self.assign_attributes(self.build_attributes(data))

    def assign_attributes(self, bag: EntityAttributes) -> None:
        """Install an already-validated bag and fire the change hook."""
        object.__setattr__(self, "attributes", bag)
        self._changed()

    @property
    def primary_key(self) -> str:
        return str(getattr(self.attributes, self.primary_key_member))

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def validate_ready(self) -> None:
        """Raise ``IdentityNotSet`` unless a surrogate ID has been assigned."""
        if self.surrogate_id is None:
            raise IdentityNotSet(self.type_name)

    def bind(self, on_change, on_replace=None) -> None:
        """Install the manager callbacks.

        *on_change* runs after every attribute change.  *on_replace* receives
        ``(entity, data)`` for bag replacements and primary-key assignments,
        and is responsible for installing the new bag.
        """
        object.__setattr__(self, "_on_change", on_change)
        object.__setattr__(self, "_on_replace", on_replace)

    def _changed(self) -> None:
        if self._on_change is not None:
            self._on_change(self)

    def __repr__(self) -> str:
        if not self.primary_key_member:
            return f"<{self.type_name} id={self.surrogate_id}>"
        return (
            f"<{self.type_name} id={self.surrogate_id} "
            f"{self.primary_key_member}={self.primary_key!r}>"
        )
