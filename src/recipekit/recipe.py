"""Recipes: declarative descriptions of how to build one object.

An :class:`ObjectRecipe` names a class (or a factory method on it), the
properties passed as constructor arguments, and further properties assigned
after construction. Property values may themselves be recipes, which are built
first, so a tree of recipes describes a whole object graph.

Example:
    >>> recipe = ObjectRecipe("myapp.db.ConnectionPool", constructor_arg_names=["url"])
    >>> recipe.set_property("url", "postgres://localhost/app")
    >>> recipe.set_property("maxSize", "20")
    >>> recipe.set_property("metrics", ObjectRecipe("myapp.metrics.Registry"))
    >>> pool = recipe.create()
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Mapping, Optional, Sequence

from recipekit.accessors import ResolvedMember, find_accessor
from recipekit.domain import BindingMode, Option, PropertyKey
from recipekit.errors import (
    ConfigurationTypeError,
    ConversionError,
    InvocationError,
    MissingAccessorError,
)
from recipekit.introspection import TypeDescriptor
from recipekit.loading import LoadingContext, TypeId
from recipekit.selection import extract_arguments, select_constructor, select_factory

__all__ = ["Recipe", "ObjectRecipe"]

logger = logging.getLogger(__name__)


class Recipe(ABC):
    """Something that can manufacture an object."""

    @abstractmethod
    def create(self, context: Optional[LoadingContext] = None) -> Any:
        """Build the object.

        Args:
            context: The loading context to build against; a default, import-based
                context is used when omitted.

        Raises:
            ConstructionError: If the object cannot be built.
        """


def _unwrap(error: Exception) -> BaseException:
    if isinstance(error, InvocationError) and error.__cause__ is not None:
        return error.__cause__
    return error


class ObjectRecipe(Recipe):
    """Recipe building an instance of a class and setting its properties.

    Args:
        type: The class to build, or its name (see :data:`~recipekit.loading.TypeId`).
        factory_method: Name of a static or class method to call instead of the constructor.
        constructor_arg_names: Properties passed to the constructor or factory, in order.
        constructor_arg_types: Types of those arguments. When omitted, the constructor is
            chosen by the number of names alone. Entries may be classes or type names.
        properties: Initial property values.

    Raises:
        ValueError: If argument types are given but do not match the argument names in number.
    """

    def __init__(
        self,
        type: TypeId,
        factory_method: Optional[str] = None,
        constructor_arg_names: Optional[Sequence[str]] = None,
        constructor_arg_types: Optional[Sequence[TypeId]] = None,
        properties: Optional[Mapping[str, Any]] = None,
    ):
        self._type = type
        self._factory_method = factory_method
        self._constructor_arg_names = list(constructor_arg_names or [])
        self._constructor_arg_types = list(constructor_arg_types or [])
        if self._constructor_arg_types and len(self._constructor_arg_types) != len(self._constructor_arg_names):
            raise ValueError(
                f"{len(self._constructor_arg_names)} constructor argument names given "
                f"with {len(self._constructor_arg_types)} types"
            )
        self._properties: dict[PropertyKey, Any] = {}
        self._options: set[Option] = set()
        self._unset_properties: dict[str, Any] = {}
        if properties is not None:
            self.set_all_properties(properties)

    @property
    def type(self) -> TypeId:
        return self._type

    @property
    def factory_method(self) -> Optional[str]:
        return self._factory_method

    @property
    def constructor_arg_names(self) -> list[str]:
        return list(self._constructor_arg_names)

    @property
    def options(self) -> frozenset[Option]:
        return frozenset(self._options)

    def allow(self, option: Option):
        self._options.add(option)

    def disallow(self, option: Option):
        self._options.discard(option)

    def get_property(self, name: str) -> Any:
        """Return the value registered for a property, or None."""
        return self._properties.get(PropertyKey(name))

    def set_property(self, name: str, value: Any):
        """Set a property bound through a setter, or a field when field fallback is on."""
        self._put(PropertyKey(name), value)

    def set_field_property(self, name: str, value: Any):
        """Set a property that is only ever assigned to a field.

        This also switches on :attr:`~recipekit.domain.Option.FIELD_FALLBACK`.
        """
        self._put(PropertyKey(name, BindingMode.FORCE_FIELD), value)
        self._options.add(Option.FIELD_FALLBACK)

    def set_method_property(self, name: str, value: Any):
        """Set a property that is only ever bound through a setter."""
        self._put(PropertyKey(name, BindingMode.FORCE_SETTER), value)

    def set_all_properties(self, properties: Mapping[str, Any]):
        if properties is None:
            raise TypeError("properties is None")
        for name, value in properties.items():
            self.set_property(name, value)

    def _put(self, key: PropertyKey, value: Any):
        # an equal key already in the table is kept, along with its binding mode
        self._properties[key] = value

    def get_unset_properties(self) -> dict[str, Any]:
        """Properties skipped by the most recent :meth:`create` call.

        Only populated when :attr:`~recipekit.domain.Option.IGNORE_MISSING_PROPERTIES`
        is allowed; values are as registered, before conversion.
        """
        return dict(self._unset_properties)

    def create(self, context: Optional[LoadingContext] = None) -> Any:
        """Build the instance.

        Nested recipes are built first, in property order. The constructor or
        factory is then selected and called with its arguments, which are removed
        from the properties still to bind. Each remaining property is bound through
        the accessor chosen for it.

        Every call starts from scratch: nothing is cached between calls, and
        nested recipes are built again each time.

        Args:
            context: The loading context to build against.

        Returns:
            The new instance.

        Raises:
            ConfigurationTypeError: If the type cannot be loaded or is not concrete and public.
            SelectionAmbiguityError: If the constructor or factory cannot be chosen by count.
            MissingAccessorError: If a property has no accessor and missing properties
                are not ignored.
            ConversionError: If a text value cannot be converted.
            InvocationError: If the constructor, factory or an accessor raises.
            ConstructionError: For any other reason the instance cannot be built.
        """
        context = context or LoadingContext.default()
        unset_properties: dict[str, Any] = {}
        self._unset_properties = unset_properties
        options = frozenset(self._options)

        type_descriptor = context.describe(context.load(self._type))
        _check_constructable(type_descriptor)

        property_values = dict(self._properties)
        for key, value in property_values.items():
            if isinstance(value, Recipe):
                property_values[key] = value.create(context)

        instance = self._create_instance(type_descriptor, property_values, context)

        allow_private = Option.ALLOW_PRIVATE_ACCESS in options
        field_fallback = Option.FIELD_FALLBACK in options
        ignore_missing = Option.IGNORE_MISSING_PROPERTIES in options

        for key, value in property_values.items():
            try:
                member = find_accessor(
                    type_descriptor, key, value, allow_private, field_fallback, context.converters
                )
            except MissingAccessorError as e:
                if not ignore_missing:
                    raise
                logger.info("Property %s of %s left unset: %s", key.name, type_descriptor.name, e)
                unset_properties[key.name] = value
                continue

            _bind(instance, member, value, context)

        return instance

    def _create_instance(
        self, type_descriptor: TypeDescriptor, property_values: dict[PropertyKey, Any], context: LoadingContext
    ) -> Any:
        arg_types = [context.load(t) if isinstance(t, str) else t for t in self._constructor_arg_types]

        if self._factory_method is not None:
            method, shape = select_factory(
                type_descriptor, self._factory_method, self._constructor_arg_names, arg_types
            )
            arguments = extract_arguments(shape, self._constructor_arg_names, property_values, context.converters)
            logger.debug("Creating %s with factory method %s", type_descriptor.name, method)
            try:
                return method.invoke(type_descriptor.cls, shape, arguments)
            except Exception as e:
                raise InvocationError(f"Error invoking factory method: {method}") from _unwrap(e)

        constructor, shape = select_constructor(type_descriptor, self._constructor_arg_names, arg_types)
        arguments = extract_arguments(shape, self._constructor_arg_names, property_values, context.converters)
        logger.debug("Creating %s with constructor %s", type_descriptor.name, constructor)
        try:
            return constructor.invoke(shape, arguments)
        except Exception as e:
            raise InvocationError(f"Error invoking constructor: {constructor}") from _unwrap(e)

    def __repr__(self):
        return f"ObjectRecipe({self._type!r}, properties={[str(k) for k in self._properties]})"


def _check_constructable(type_descriptor: TypeDescriptor):
    if not type_descriptor.public:
        raise ConfigurationTypeError(f"Class is not public: {type_descriptor.name}")
    if type_descriptor.interface:
        raise ConfigurationTypeError(f"Class is an interface: {type_descriptor.name}")
    if type_descriptor.abstract:
        raise ConfigurationTypeError(f"Class is abstract: {type_descriptor.name}")


def _bind(instance: Any, member: ResolvedMember, value: Any, context: LoadingContext):
    try:
        value = context.converters.convert_value(member.value_type, value)
    except ConversionError as e:
        raise ConversionError(f"Error setting property: {member}: {e}") from e

    try:
        member.set_value(instance, value)
    except Exception as e:
        raise InvocationError(f"Error setting property: {member}") from _unwrap(e)
    logger.debug("Set %s", member)
