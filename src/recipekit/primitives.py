"""Slot type checks shared by the accessor resolver and the constructor selector.

Python has no primitive types, but configuration-driven construction still
needs the distinction: a slot annotated with ``bool``, ``int``, ``float`` or
``complex`` (and not ``Optional``) cannot hold ``None``, has a zero value that
is supplied when a constructor argument is omitted, and only accepts values of
its exact kind (``True`` is not an ``int`` slot value even though ``bool``
subclasses ``int``). Every other slot is a reference slot that accepts ``None``.
"""

import inspect
import types
from enum import Enum
from typing import Any, Optional, Union, Literal, get_args, get_origin

__all__ = [
    "PrimitiveKind",
    "primitive_kind",
    "is_primitive",
    "is_generic",
    "unwrap_optional",
    "is_union",
    "is_instance",
    "is_assignable",
    "is_assignable_all",
    "default_value",
    "type_name",
    "value_type_name",
]


class PrimitiveKind(Enum):
    """The closed set of primitive slot kinds."""

    BOOLEAN = bool
    INTEGER = int
    FLOAT = float
    COMPLEX = complex


_ZERO_VALUES = {
    PrimitiveKind.BOOLEAN: False,
    PrimitiveKind.INTEGER: 0,
    PrimitiveKind.FLOAT: 0.0,
    PrimitiveKind.COMPLEX: 0j,
}

_INSTANCE_CHECKS = {
    PrimitiveKind.BOOLEAN: lambda v: isinstance(v, bool),
    PrimitiveKind.INTEGER: lambda v: isinstance(v, int) and not isinstance(v, bool),
    # ints are acceptable floats, as in the numeric tower
    PrimitiveKind.FLOAT: lambda v: isinstance(v, (int, float)) and not isinstance(v, bool),
    PrimitiveKind.COMPLEX: lambda v: isinstance(v, (int, float, complex)) and not isinstance(v, bool),
}

_UNION_TYPES = (Union, types.UnionType)


def is_union(annotation) -> bool:
    return get_origin(annotation) in _UNION_TYPES


def is_generic(annotation) -> bool:
    """Return True for slots that carry no usable type: unannotated, ``Any`` or ``object``."""
    return annotation in (inspect.Parameter.empty, Any, object)


def unwrap_optional(annotation):
    """Strip ``Optional`` from an annotation.

    Returns:
        A pair of the annotation without ``None`` and whether ``None`` was part of it.

    Example:
        >>> unwrap_optional(Optional[int])
        (<class 'int'>, True)
        >>> unwrap_optional(int)
        (<class 'int'>, False)
    """
    if not is_union(annotation):
        return annotation, False
    args = get_args(annotation)
    remaining = tuple(a for a in args if a is not type(None))
    if len(remaining) == len(args):
        return annotation, False
    if len(remaining) == 1:
        return remaining[0], True
    return Union[remaining], True


def primitive_kind(annotation) -> Optional[PrimitiveKind]:
    """The primitive kind of a non-nullable primitive slot, or None for reference slots."""
    if isinstance(annotation, type):
        for kind in PrimitiveKind:
            if annotation is kind.value:
                return kind
    return None


def is_primitive(annotation) -> bool:
    return primitive_kind(annotation) is not None


def is_instance(annotation, value: Any) -> bool:
    """Check whether a value can be placed in a slot as-is.

    Reference slots accept ``None``; primitive slots never do and require a
    value of their exact kind.

    Args:
        annotation: The slot's annotation.
        value: The candidate value.

    Returns:
        True if the value needs no conversion to fit the slot.
    """
    if is_generic(annotation):
        return True

    kind = primitive_kind(annotation)
    if kind is not None:
        return value is not None and _INSTANCE_CHECKS[kind](value)

    if value is None:
        return True

    annotation, _ = unwrap_optional(annotation)
    kind = primitive_kind(annotation)
    if kind is not None:
        return _INSTANCE_CHECKS[kind](value)
    if is_union(annotation):
        return any(is_instance(arm, value) for arm in get_args(annotation))

    origin = get_origin(annotation)
    if origin is Literal:
        return value in get_args(annotation)
    if origin is not None:
        annotation = origin

    if isinstance(annotation, type):
        return isinstance(value, annotation)
    # TypeVars, NewTypes and other typing constructs are not checked
    return True


def is_assignable(expected, actual) -> bool:
    """Check whether a slot of type ``expected`` accepts values of type ``actual``.

    Primitive slots only accept their own kind exactly.
    """
    kind = primitive_kind(expected)
    if kind is not None:
        return actual is kind.value
    if is_generic(expected):
        return True

    expected, _ = unwrap_optional(expected)
    actual, _ = unwrap_optional(actual)
    if is_union(expected):
        return any(is_assignable(arm, actual) for arm in get_args(expected))

    expected = get_origin(expected) or expected
    actual = get_origin(actual) or actual
    if isinstance(expected, type) and isinstance(actual, type):
        return issubclass(actual, expected)
    return expected == actual


def is_assignable_all(expected_types, actual_types) -> bool:
    if len(expected_types) != len(actual_types):
        return False
    return all(is_assignable(e, a) for e, a in zip(expected_types, actual_types))


def default_value(annotation) -> Any:
    """The value supplied for an omitted argument: the zero value of primitive slots, else None."""
    kind = primitive_kind(annotation)
    if kind is None:
        return None
    return _ZERO_VALUES[kind]


def type_name(annotation) -> str:
    """A readable, module-qualified name for a type or annotation."""
    if annotation is inspect.Parameter.empty:
        return "object"
    if isinstance(annotation, type):
        if annotation.__module__ == "builtins":
            return annotation.__qualname__
        return f"{annotation.__module__}.{annotation.__qualname__}"
    return repr(annotation).replace("typing.", "")


def value_type_name(value: Any) -> str:
    if value is None:
        return "None"
    return type_name(type(value))
