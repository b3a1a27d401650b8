"""Conversion of configuration text into typed values.

Recipes are usually fed from text-based sources, so every property or
constructor argument given as a string is converted to the declared type of the
slot it ends up in. The :class:`ConverterRegistry` maps target types to
callables taking the text and returning the typed value.

Example:
    >>> converters = default_converters()
    >>> converters.convert(int, "123")
    123
    >>> converters.register(Colour, Colour.from_hex)
"""

import datetime
import uuid
from decimal import Decimal, InvalidOperation
from enum import Enum
from fractions import Fraction
from pathlib import Path, PurePath
from typing import Any, Callable, Optional, get_args, get_origin

from recipekit.errors import ConversionError
from recipekit.primitives import is_generic, is_union, type_name, unwrap_optional

__all__ = ["Converter", "ConverterRegistry", "default_converters"]


Converter = Callable[[str], Any]
"""A callable turning configuration text into a typed value."""


_TRUE_WORDS = frozenset({"true", "yes", "on", "1"})
_FALSE_WORDS = frozenset({"false", "no", "off", "0"})


def _to_bool(text: str) -> bool:
    word = text.strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"{text!r} is not a boolean")


def _to_int(text: str) -> int:
    # accepts 0x / 0o / 0b prefixes as well as plain decimals
    text = text.strip()
    try:
        return int(text)
    except ValueError:
        return int(text, 0)


def _to_decimal(text: str) -> Decimal:
    try:
        return Decimal(text.strip())
    except InvalidOperation as e:
        raise ValueError(f"{text!r} is not a decimal") from e


class ConverterRegistry:
    """Registry of text converters keyed by target type.

    Lookup tries the exact type first, then enumerations (converted by member
    name, then by value), then registered base classes in method resolution
    order. ``Optional[X]`` converts as ``X``; other unions try each arm in turn.
    """

    def __init__(self, converters: dict[type, Converter] = None):
        self._converters: dict[type, Converter] = dict(converters or {})

    def register(self, target: type, converter: Converter):
        """Register (or replace) the converter for a type.

        Args:
            target: The type produced by the converter.
            converter: A callable taking the text and returning an instance of ``target``.
        """
        self._converters[target] = converter

    def copy(self) -> "ConverterRegistry":
        return ConverterRegistry(self._converters)

    def can_convert(self, target) -> bool:
        """Return True if text can be converted to the given type or annotation."""
        if is_generic(target):
            return False
        target, _ = unwrap_optional(target)
        if is_union(target):
            return any(self.can_convert(arm) for arm in get_args(target))
        return self._lookup(target) is not None

    def is_convertible(self, target, value: Any) -> bool:
        """Return True if ``value`` is text that can be converted to ``target``."""
        return isinstance(value, str) and self.can_convert(target)

    def convert_value(self, target, value: Any) -> Any:
        """Convert ``value`` for a slot of type ``target`` if it is text.

        Non-text values, values for untyped slots and text for slots with no
        converter are returned unchanged.
        """
        if self.is_convertible(target, value):
            return self.convert(target, value)
        return value

    def convert(self, target, text: str) -> Any:
        """Convert text to the given type.

        Args:
            target: The type or annotation of the slot receiving the value.
            text: The configuration text.

        Returns:
            The converted value.

        Raises:
            ConversionError: If no converter exists or the converter rejects the text.
        """
        target, _ = unwrap_optional(target)
        if is_union(target):
            failures = []
            for arm in get_args(target):
                if not self.can_convert(arm):
                    continue
                try:
                    return self.convert(arm, text)
                except ConversionError as e:
                    failures.append(str(e))
            raise ConversionError(
                f"Unable to convert {text!r} to {type_name(target)}: {'; '.join(failures) or 'no converter'}"
            )

        converter = self._lookup(target)
        if converter is None:
            raise ConversionError(f"No converter registered for {type_name(target)}")
        try:
            return converter(text)
        except (ValueError, TypeError, KeyError) as e:
            raise ConversionError(f"Unable to convert {text!r} to {type_name(target)}") from e

    def _lookup(self, target) -> Optional[Converter]:
        target = get_origin(target) or target
        if not isinstance(target, type):
            return None
        if target in self._converters:
            return self._converters[target]
        if issubclass(target, Enum):
            return _enum_converter(target)
        for base in target.__mro__[1:]:
            if base is not object and base in self._converters:
                return self._converters[base]
        return None


def _enum_converter(enum_type: type[Enum]) -> Converter:
    def convert(text: str) -> Enum:
        if text in enum_type.__members__:
            return enum_type[text]
        return enum_type(text)

    return convert


def default_converters() -> ConverterRegistry:
    """Create a registry holding converters for the common scalar types.

    Returns:
        A new registry; changes to it do not affect other registries.
    """
    return ConverterRegistry({
        str: str,
        bool: _to_bool,
        int: _to_int,
        float: float,
        complex: complex,
        Decimal: _to_decimal,
        Fraction: Fraction,
        bytes: str.encode,
        Path: Path,
        PurePath: PurePath,
        uuid.UUID: uuid.UUID,
        datetime.date: datetime.date.fromisoformat,
        datetime.datetime: datetime.datetime.fromisoformat,
        datetime.time: datetime.time.fromisoformat,
    })
