"""Resolution of the setter or field that receives a property value.

For every property left over after construction exactly one accessor is
chosen. Setter-like methods are searched first: ``set_<name>``,
``set<Name>`` and properties called ``<name>``. Fields are searched when the
property forces field binding, or when field fallback is enabled and no
setter fits.

Candidates that are rejected are scored by how close they came to being
usable, and when nothing fits the closest miss is reported:

====  ==================================================================
1     the setter does not take exactly one value
2     the setter returns a value
3     the setter is abstract
4     the member is non-public (and private access is off) or static
5     the value is neither an instance of, nor convertible to, the slot type
6     the value is None and the slot is primitive
====  ==================================================================

A level of 0 means no member of the right name exists at all.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from itertools import chain
from typing import Any, Optional

from recipekit.conversion import ConverterRegistry, default_converters
from recipekit.domain import BindingMode, PropertyKey
from recipekit.errors import MissingAccessorError
from recipekit.introspection import FieldDescriptor, MethodDescriptor, TypeDescriptor
from recipekit.primitives import is_instance, is_primitive, type_name, value_type_name

__all__ = [
    "ResolvedMember",
    "MethodMember",
    "FieldMember",
    "setter_names",
    "find_setter",
    "find_field",
    "find_accessor",
]

logger = logging.getLogger(__name__)


class ResolvedMember(ABC):
    """An accessor chosen to receive a property value."""

    @property
    @abstractmethod
    def value_type(self) -> Any:
        """The declared type of the value the accessor accepts."""

    @abstractmethod
    def set_value(self, instance: Any, value: Any):
        """Assign ``value`` to ``instance`` through the accessor.

        Raises:
            InvocationError: If the underlying setter or assignment raises.
        """


@dataclass(frozen=True)
class MethodMember(ResolvedMember):
    method: MethodDescriptor

    @property
    def value_type(self) -> Any:
        return self.method.parameters[0].annotation

    def set_value(self, instance: Any, value: Any):
        self.method.invoke(instance, self.method.parameters[:1], [value])

    def __str__(self):
        return str(self.method)


@dataclass(frozen=True)
class FieldMember(ResolvedMember):
    field: FieldDescriptor

    @property
    def value_type(self) -> Any:
        return self.field.annotation

    def set_value(self, instance: Any, value: Any):
        self.field.assign(instance, value)

    def __str__(self):
        return str(self.field)


class _ClosestMiss:
    """Keeps the rejection with the highest match level; the first one wins ties."""

    def __init__(self):
        self.error: Optional[MissingAccessorError] = None

    def record(self, match_level: int, message: str):
        if self.error is None or match_level > self.error.match_level:
            self.error = MissingAccessorError(message, match_level)


def _check_name(name: str):
    if name is None:
        raise TypeError("name is None")
    if len(name) == 0:
        raise ValueError("name is an empty string")


def setter_names(name: str) -> tuple[str, str]:
    """The method names that count as setters for a property.

    Example:
        >>> setter_names("maxSize")
        ('set_maxSize', 'setMaxSize')
    """
    _check_name(name)
    return f"set_{name}", f"set{name[0].upper()}{name[1:]}"


def _is_setter_candidate(method: MethodDescriptor, name: str, names: tuple[str, str]) -> bool:
    if method.is_property:
        return method.name == name
    return method.name in names


def _required_count(method: MethodDescriptor) -> int:
    return sum(1 for p in method.parameters if p.required)


def find_setter(
    type_descriptor: TypeDescriptor,
    name: str,
    value: Any,
    allow_private: bool = False,
    converters: Optional[ConverterRegistry] = None,
) -> MethodMember:
    """Find the setter-like method that should receive a property value.

    Public methods (including inherited ones) are considered before the
    methods declared directly on the class; the first acceptable candidate
    wins.

    Args:
        type_descriptor: The class receiving the value.
        name: The property name.
        value: The value to be assigned.
        allow_private: Whether underscore-prefixed setters may be used.
        converters: Used to decide whether text values can be converted.

    Returns:
        The chosen setter.

    Raises:
        MissingAccessorError: If no candidate is acceptable; carries the closest miss.
    """
    names = setter_names(name)
    converters = converters or default_converters()
    miss = _ClosestMiss()

    for method in chain(type_descriptor.methods, type_descriptor.declared_methods):
        if not _is_setter_candidate(method, name, names):
            continue

        if len(method.parameters) == 0:
            miss.record(1, f"Setter takes no parameters: {method}")
            continue

        if _required_count(method) > 1:
            miss.record(1, f"Setter takes more than one parameter: {method}")
            continue

        if method.returns_value:
            miss.record(2, f"Setter returns a value: {method}")
            continue

        if method.abstract:
            miss.record(3, f"Setter is abstract: {method}")
            continue

        if not allow_private and not method.public:
            miss.record(4, f"Setter is not public: {method}")
            continue

        if method.static:
            miss.record(4, f"Setter is static: {method}")
            continue

        parameter_type = method.parameters[0].annotation
        if is_primitive(parameter_type) and value is None:
            miss.record(6, f"None can not be assigned to {type_name(parameter_type)}: {method}")
            continue

        if not is_instance(parameter_type, value) and not converters.is_convertible(parameter_type, value):
            miss.record(
                5,
                f"{value_type_name(value)} can not be assigned or converted to "
                f"{type_name(parameter_type)}: {method}",
            )
            continue

        return MethodMember(method)

    if miss.error is not None:
        raise miss.error
    raise MissingAccessorError(
        f"Unable to find a valid setter method: {type_descriptor.name}.{names[0]}({value_type_name(value)})",
        0,
    )


def find_field(
    type_descriptor: TypeDescriptor,
    name: str,
    value: Any,
    allow_private: bool = False,
    converters: Optional[ConverterRegistry] = None,
) -> FieldMember:
    """Find the field that should receive a property value.

    The class's own fields are considered before those of its ancestors.

    Raises:
        MissingAccessorError: If no field is acceptable; carries the closest miss.
    """
    _check_name(name)
    converters = converters or default_converters()
    miss = _ClosestMiss()

    for field in type_descriptor.fields:
        if field.name != name:
            continue

        if not allow_private and not field.public:
            miss.record(4, f"Field is not public: {field}")
            continue

        if field.static:
            miss.record(4, f"Field is static: {field}")
            continue

        if is_primitive(field.annotation) and value is None:
            miss.record(6, f"None can not be assigned to {type_name(field.annotation)}: {field}")
            continue

        if not is_instance(field.annotation, value) and not converters.is_convertible(field.annotation, value):
            miss.record(
                5,
                f"{value_type_name(value)} can not be assigned or converted to "
                f"{type_name(field.annotation)}: {field}",
            )
            continue

        return FieldMember(field)

    if miss.error is not None:
        raise miss.error
    raise MissingAccessorError(
        f"Unable to find a valid field: {type_descriptor.name}.{name}: {value_type_name(value)}",
        0,
    )


def find_accessor(
    type_descriptor: TypeDescriptor,
    key: PropertyKey,
    value: Any,
    allow_private: bool = False,
    field_fallback: bool = False,
    converters: Optional[ConverterRegistry] = None,
) -> ResolvedMember:
    """Find the accessor for a property according to its binding mode.

    AUTO properties use a setter if one fits. Otherwise, with ``field_fallback``
    set, a field is tried, and if that fails too the failure with the higher
    match level is raised (the setter failure on a tie).

    Raises:
        MissingAccessorError: If no accessor fits.
    """
    if key.mode is BindingMode.FORCE_SETTER:
        return find_setter(type_descriptor, key.name, value, allow_private, converters)
    if key.mode is BindingMode.FORCE_FIELD:
        return find_field(type_descriptor, key.name, value, allow_private, converters)

    try:
        return find_setter(type_descriptor, key.name, value, allow_private, converters)
    except MissingAccessorError as no_setter:
        if not field_fallback:
            raise
        setter_error = no_setter

    try:
        return find_field(type_descriptor, key.name, value, allow_private, converters)
    except MissingAccessorError as no_field:
        field_error = no_field

    logger.debug(
        "No accessor for %s on %s (setter level %d, field level %d)",
        key.name, type_descriptor.name, setter_error.match_level, field_error.match_level,
    )
    raise field_error if field_error.match_level > setter_error.match_level else setter_error
