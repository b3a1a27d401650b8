"""Selection of the constructor or factory method that creates an instance.

Two regimes are supported:

- With argument types (an empty list when there are no argument names), the
  overload whose parameters have exactly those types is used. A primitive
  slot (``bool``, ``int``, ``float``, ``complex``) only matches its own type.
- With argument names only, the overload taking that many arguments is used.
  It must be the only one: argument values are never inspected to tell
  overloads apart.

Callables whose trailing parameters have defaults offer one overload per
number of arguments they can be called with (see
:func:`~recipekit.introspection.call_shapes`).
"""

import logging
from typing import Any, Optional, Sequence

from recipekit.conversion import ConverterRegistry
from recipekit.domain import PropertyKey
from recipekit.errors import ConstructionError, SelectionAmbiguityError
from recipekit.introspection import (
    ConstructorDescriptor,
    MethodDescriptor,
    ParameterDescriptor,
    TypeDescriptor,
    call_shapes,
)
from recipekit.primitives import (
    default_value,
    is_assignable_all,
    is_generic,
    is_instance,
    is_primitive,
    primitive_kind,
    type_name,
    unwrap_optional,
    value_type_name,
)

__all__ = [
    "Shape",
    "select_constructor",
    "select_factory",
    "check_factory",
    "extract_arguments",
]

logger = logging.getLogger(__name__)

Shape = tuple[ParameterDescriptor, ...]


def _argument_list(names: Sequence[str]) -> str:
    return "(" + ", ".join(f"<{name}>" for name in names) + ")"


def _parameter_list(types: Sequence[Any]) -> str:
    return "(" + ", ".join(type_name(t) for t in types) + ")"


def _same_type(declared, given) -> bool:
    kind = primitive_kind(declared)
    if kind is not None:
        return given is kind.value
    if is_generic(declared):
        return is_generic(given)
    return declared == given or unwrap_optional(declared)[0] == unwrap_optional(given)[0]


def _matches_exactly(shape: Shape, arg_types: Sequence[Any]) -> bool:
    if len(shape) != len(arg_types):
        return False
    return all(_same_type(p.annotation, t) for p, t in zip(shape, arg_types))


def _shapes_of(members, count: Optional[int] = None):
    for member in members:
        for shape in call_shapes(member.parameters):
            if count is None or len(shape) == count:
                yield member, shape


def select_constructor(
    type_descriptor: TypeDescriptor,
    arg_names: Sequence[str],
    arg_types: Sequence[Any],
) -> tuple[ConstructorDescriptor, Shape]:
    """Select the constructor used to create an instance.

    Args:
        type_descriptor: The class being constructed.
        arg_names: Names of the properties passed as constructor arguments.
        arg_types: Types of those arguments, or an empty sequence to select by count.

    Returns:
        The constructor and the parameter list it will be called with.

    Raises:
        SelectionAmbiguityError: If selecting by count finds no constructor, or several.
        ConstructionError: If no constructor has exactly the given types.
    """
    if arg_names and not arg_types:
        matches = list(_shapes_of(type_descriptor.constructors, len(arg_names)))
        if len(matches) < 1:
            raise SelectionAmbiguityError(
                "No parameter types supplied; unable to find a potentially valid constructor: "
                f"constructor= {type_descriptor.name}{_argument_list(arg_names)}"
            )
        if len(matches) > 1:
            raise SelectionAmbiguityError(
                "No parameter types supplied; found too many potentially valid constructors: "
                f"constructor= {type_descriptor.name}{_argument_list(arg_names)}"
            )
        return matches[0]

    for constructor, shape in _shapes_of(type_descriptor.constructors):
        if _matches_exactly(shape, arg_types):
            return constructor, shape

    for constructor, shape in _shapes_of(type_descriptor.declared_constructors):
        if not constructor.public and is_assignable_all(arg_types, [p.annotation for p in shape]):
            raise ConstructionError(f"Constructor is not public: {constructor}")

    raise ConstructionError(
        f"Unable to find a valid constructor: constructor= {type_descriptor.name}{_parameter_list(arg_types)}"
    )


def check_factory(method: MethodDescriptor):
    """Check that a method can be used as a factory.

    Raises:
        ConstructionError: If the method is not public, not static, returns None or a primitive.
    """
    if not method.public:
        raise ConstructionError(f"Factory method is not public: {method}")
    if not method.static or method.is_property:
        raise ConstructionError(f"Factory method is not static: {method}")
    if method.returns_nothing:
        raise ConstructionError(f"Factory method does not return anything: {method}")
    if is_primitive(method.return_annotation):
        raise ConstructionError(f"Factory method returns a primitive type: {method}")


def _is_factory(method: MethodDescriptor) -> bool:
    try:
        check_factory(method)
    except ConstructionError:
        return False
    return True


def select_factory(
    type_descriptor: TypeDescriptor,
    factory_name: str,
    arg_names: Sequence[str],
    arg_types: Sequence[Any],
) -> tuple[MethodDescriptor, Shape]:
    """Select the static or class method used to create an instance.

    Args:
        type_descriptor: The class declaring the factory.
        factory_name: The name of the factory method.
        arg_names: Names of the properties passed as factory arguments.
        arg_types: Types of those arguments, or an empty sequence to select by count.

    Returns:
        The factory method and the parameter list it will be called with.

    Raises:
        SelectionAmbiguityError: If selecting by count finds no factory, or several.
        ConstructionError: If no factory has exactly the given types, or the one
            found is not a usable factory.
    """
    named = [m for m in type_descriptor.methods if m.name == factory_name]

    if arg_names and not arg_types:
        matches = list(_shapes_of([m for m in named if _is_factory(m)], len(arg_names)))
        if len(matches) < 1:
            raise SelectionAmbiguityError(
                "No parameter types supplied; unable to find a potentially valid factory method: "
                f"{type_descriptor.name}.{factory_name}{_argument_list(arg_names)}"
            )
        if len(matches) > 1:
            raise SelectionAmbiguityError(
                "No parameter types supplied; found too many potentially valid factory methods: "
                f"{type_descriptor.name}.{factory_name}{_argument_list(arg_names)}"
            )
        return matches[0]

    for method, shape in _shapes_of(named):
        if _matches_exactly(shape, arg_types):
            check_factory(method)
            return method, shape

    declared = [m for m in type_descriptor.declared_methods if m.name == factory_name]
    for method, shape in _shapes_of(declared):
        if not method.public and is_assignable_all(arg_types, [p.annotation for p in shape]):
            raise ConstructionError(f"Factory method is not public: {method}")

    raise ConstructionError(
        "Unable to find a valid factory method: "
        f"{type_descriptor.name}.{factory_name}{_parameter_list(arg_types)}"
    )


def extract_arguments(
    shape: Shape,
    arg_names: Sequence[str],
    property_values: dict[PropertyKey, Any],
    converters: ConverterRegistry,
) -> list:
    """Take the constructor arguments out of the working property table.

    Each named property is removed from ``property_values`` so it is not bound
    again after construction. Text is converted to the parameter type.
    Arguments missing from the table are passed as the zero value of primitive
    parameters, or None.

    Args:
        shape: The parameters of the selected constructor or factory.
        arg_names: The property names, one per parameter, in order.
        property_values: The working property table; consumed entries are removed.
        converters: The text conversion registry.

    Returns:
        The argument values in parameter order.

    Raises:
        ConstructionError: If a value can be neither used nor converted.
        ConversionError: If text conversion fails.
    """
    if len(shape) != len(arg_names):
        raise ConstructionError(
            f"Expected {len(shape)} argument names for {_parameter_list([p.annotation for p in shape])}, "
            f"got {_argument_list(arg_names)}"
        )

    arguments = []
    for index, (name, parameter) in enumerate(zip(arg_names, shape)):
        key = PropertyKey(name)
        parameter_type = parameter.annotation
        if key in property_values:
            value = property_values.pop(key)
            if not is_instance(parameter_type, value) and not converters.is_convertible(parameter_type, value):
                raise ConstructionError(
                    "Invalid and non-convertible constructor parameter type: "
                    f"name={name}, index={index}, expected={type_name(parameter_type)}, "
                    f"actual={value_type_name(value)}"
                )
            value = converters.convert_value(parameter_type, value)
        else:
            value = default_value(parameter_type)
            logger.debug("No value for argument %s; passing %r", name, value)
        arguments.append(value)
    return arguments
