"""Domain models used throughout the package."""

from dataclasses import dataclass
from enum import Enum

__all__ = ["BindingMode", "Option", "PropertyKey"]


class BindingMode(Enum):
    """How a property is bound after the instance has been constructed."""

    AUTO = "auto"
    """Use a setter, falling back to a field when field fallback is enabled."""

    FORCE_SETTER = "setter"
    """Only ever bind through a setter-like method."""

    FORCE_FIELD = "field"
    """Only ever bind by assigning a field."""


class Option(Enum):
    """Switches that relax how an :class:`~recipekit.recipe.ObjectRecipe` binds properties."""

    ALLOW_PRIVATE_ACCESS = "allow_private_access"
    """Underscore-prefixed setters and fields may be used."""

    IGNORE_MISSING_PROPERTIES = "ignore_missing_properties"
    """Properties with no usable accessor are recorded instead of failing the build."""

    FIELD_FALLBACK = "field_fallback"
    """AUTO properties may be assigned to fields when no setter fits."""


_MODE_LABELS = {
    BindingMode.AUTO: "",
    BindingMode.FORCE_SETTER: "[setter] ",
    BindingMode.FORCE_FIELD: "[field] ",
}


@dataclass(frozen=True, eq=False)
class PropertyKey:
    """Key of an entry in a recipe's property table.

    Keys compare equal by name alone, whatever their binding mode, and also
    compare equal to the bare name string. Adding a key to a table that already
    holds an equal key updates the value but keeps the stored key, so the mode
    of the first registration governs how the property is bound.

    Attributes:
        name: The property name.
        mode: The binding mode used when resolving an accessor for the property.

    Example:
        >>> PropertyKey("size") == PropertyKey("size", BindingMode.FORCE_FIELD)
        True
        >>> str(PropertyKey("size", BindingMode.FORCE_FIELD))
        '[field] size'
    """

    name: str
    mode: BindingMode = BindingMode.AUTO

    def __post_init__(self):
        if self.name is None:
            raise TypeError("name is None")

    def __eq__(self, other):
        if self is other:
            return True
        if isinstance(other, str):
            return self.name == other
        if isinstance(other, PropertyKey):
            return self.name == other.name
        return NotImplemented

    def __hash__(self):
        return hash(self.name)

    def __str__(self):
        return _MODE_LABELS[self.mode] + self.name
